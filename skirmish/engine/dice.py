# skirmish/engine/dice.py
import random
from typing import Optional


def rng_for(seed: Optional[int] = None) -> random.Random:
    # fresh source per resolution; a seed makes it reproducible
    if seed is None:
        return random.Random()
    return random.Random(seed)


def parse(dice: str) -> tuple:
    # supports "d20", "2d6", "1d4" etc.
    count, sep, sides = dice.partition("d")
    if not sep or not sides.isdigit():
        raise ValueError("dice must be like 'd20' or '2d6'")
    if count and not count.isdigit():
        raise ValueError("dice must be like 'd20' or '2d6'")
    n = int(count) if count else 1
    s = int(sides)
    if n < 1 or s < 1:
        raise ValueError("dice must be like 'd20' or '2d6'")
    return n, s


def roll(dice: str, r: random.Random) -> int:
    n, sides = parse(dice)
    return sum(r.randint(1, sides) for _ in range(n))


def d20(r: random.Random) -> int:
    return r.randint(1, 20)
