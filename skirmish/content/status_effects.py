# skirmish/content/status_effects.py
# effect kind -> stat it modifies and the sign applied to its magnitude
STATUS_EFFECTS = {
    "defense_buff": {"name": "Defense Up", "stat": "defense", "sign": 1},
    "defense_debuff": {"name": "Defense Down", "stat": "defense", "sign": -1},
    "ac_buff": {"name": "Shielded", "stat": "armor_class", "sign": 1},
    "ac_debuff": {"name": "Exposed", "stat": "armor_class", "sign": -1},
    "attack_buff": {"name": "Empowered", "stat": "attack", "sign": 1},
    "attack_debuff": {"name": "Weakened", "stat": "attack", "sign": -1},
}
