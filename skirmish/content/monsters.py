# skirmish/content/monsters.py
RECHARGE_MULT = 3

MONSTERS = {
    "goblin": {
        "name": "Goblin",
        "hp": 30,
        "stats": {"attack": 8, "defense": 3},
        "ac": 12,
        "action_recharge_ms": 6000 * RECHARGE_MULT,
    },
    "orc": {
        "name": "Orc",
        "hp": 50,
        "stats": {"attack": 12, "defense": 6},
        "ac": 13,
        "action_recharge_ms": 7000 * RECHARGE_MULT,
    },
    "troll": {
        "name": "Troll",
        "hp": 70,
        "stats": {"attack": 15, "defense": 8},
        "ac": 13,
        "action_recharge_ms": 8000 * RECHARGE_MULT,
    },
}
