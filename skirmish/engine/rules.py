# skirmish/engine/rules.py
import math

from ..content.balance import ABILITY_FALLBACK_STAT, FALLBACK_DIVISOR


def clamp(x, lo, hi):
    return max(lo, min(hi, x))


def score_modifier(score: int) -> int:
    return math.floor((score - 10) / 2)


def ability_modifier(entity, ability: str) -> int:
    """Modifier for a named ability, or a fallback scaled off the legacy flat stats."""
    if entity.ability_scores:
        return score_modifier(int(entity.ability_scores.get(ability, 10)))
    stat = ABILITY_FALLBACK_STAT.get(ability)
    if not stat:
        return 0
    return int(entity.stats.get(stat, 0)) // FALLBACK_DIVISOR


def save_dc(caster, ability: str, proficiency: int) -> int:
    return 8 + ability_modifier(caster, ability) + proficiency


def scale_damage(base: int, factor: float) -> int:
    return max(0, math.floor(base * factor))


def consume_action_point(points: float) -> float:
    # keeps the fractional part: 2.6 -> 1.6
    return max(0.0, points - 1.0)


def accrue_action_points(points: float, max_points: int, elapsed_ms: float, recharge_ms: float) -> float:
    if recharge_ms <= 0 or elapsed_ms <= 0:
        return points
    return min(float(max_points), points + elapsed_ms / recharge_ms)


def attack_modifier(entity) -> int:
    return ability_modifier(entity, "strength")

