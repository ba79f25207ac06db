# skirmish/content/balance.py
DEFAULTS = {
    "hp": 100,
    "energy": 100,
    "action_points": 3,
    "action_recharge_ms": 5000,
    "level": 1,
    "base_ac": 10,
    "stats": {"attack": 10, "defense": 5, "magic_power": 8},
    "monster_energy": 100,
    "monster_magic_power": 5,
}

TIMING = {
    "tick_interval_ms": 1000,
    "pump_interval_ms": 100,
    "end_grace_ms": 500,
    "retention_ms": 60000,
}

RULES = {
    "spell_cost": 20,
    "spell_proficiency": 2,
    "shield_magnitude": 5,
    "shield_duration": 3,
    "defend_duration": 2,
    "monster_count_multiplier": 1.5,
    "damage_spread": (0.75, 1.25),
}

# ability -> legacy flat stat used when an entity has no ability scores
ABILITY_FALLBACK_STAT = {
    "strength": "attack",
    "dexterity": "defense",
    "constitution": "defense",
    "intelligence": "magic_power",
    "wisdom": "magic_power",
    "charisma": "magic_power",
}

FALLBACK_DIVISOR = 5
