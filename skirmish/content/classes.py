# skirmish/content/classes.py
CLASSES = {
    "FIGHTER": {
        "name": "Fighter",
        "description": "Masters of martial combat, skilled with a variety of weapons and armor.",
        "ability_scores": {
            "strength": 15,
            "dexterity": 12,
            "constitution": 14,
            "intelligence": 8,
            "wisdom": 10,
            "charisma": 10,
        },
        "base_ac": 15,  # chain mail
        "base_health": 70,
        "hit_die": "d10",
        "abilities": ["Second Wind", "Action Surge"],
    },
    "WIZARD": {
        "name": "Wizard",
        "description": "Scholarly magic-users capable of manipulating the structures of reality.",
        "ability_scores": {
            "strength": 8,
            "dexterity": 14,
            "constitution": 12,
            "intelligence": 15,
            "wisdom": 10,
            "charisma": 10,
        },
        "base_ac": 12,  # mage armor
        "base_health": 40,
        "hit_die": "d6",
        "abilities": ["Arcane Recovery", "Spell Mastery"],
    },
    "ROGUE": {
        "name": "Rogue",
        "description": "Skilled tricksters who use stealth and cunning to overcome obstacles.",
        "ability_scores": {
            "strength": 10,
            "dexterity": 15,
            "constitution": 12,
            "intelligence": 13,
            "wisdom": 10,
            "charisma": 12,
        },
        "base_ac": 14,  # leather armor + dex
        "base_health": 50,
        "hit_die": "d8",
        "abilities": ["Sneak Attack", "Cunning Action"],
    },
}
