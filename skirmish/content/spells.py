# skirmish/content/spells.py
# "classes": None means any caster; otherwise the class ids allowed to cast it.
SPELLS = {
    "heal": {
        "name": "Healing Word",
        "description": "Restore 1d4 + WIS health to an ally.",
        "dice": "1d4",
        "ability": "wisdom",
        "target": "ally",
        "classes": None,
    },
    "fireball": {
        "name": "Fireball",
        "description": "Deal 2d6 + INT fire damage to an enemy.",
        "dice": "2d6",
        "ability": "intelligence",
        "save": "dexterity",
        "target": "enemy",
        "classes": None,
    },
    "shield": {
        "name": "Shield",
        "description": "Increase your AC by 5 for 3 rounds.",
        "effect": "ac_buff",
        "target": "self",
        "classes": None,
    },
    "second_wind": {
        "name": "Second Wind",
        "description": "Recover 1d10 + level hit points.",
        "dice": "1d10",
        "target": "self",
        "classes": ["FIGHTER"],
    },
    "cunning_action": {
        "name": "Cunning Action",
        "description": "Take an extra action this turn.",
        "target": "self",
        "classes": ["ROGUE"],
    },
}
