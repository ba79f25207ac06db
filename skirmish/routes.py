# skirmish/routes.py
from flask import Blueprint, abort, current_app, jsonify

skirmish_bp = Blueprint("skirmish", __name__, url_prefix="/skirmish")


def _manager():
    return current_app.extensions["skirmish"]


@skirmish_bp.route("/combat/<room_id>")
def combat_snapshot(room_id):
    snapshot = _manager().snapshot(room_id)
    if snapshot is None:
        abort(404)
    return jsonify(snapshot)


@skirmish_bp.route("/rules")
def rules():
    config = _manager().config
    return jsonify({
        "classes": {
            class_id: {
                "name": data["name"],
                "description": data["description"],
                "baseHealth": data["base_health"],
                "armorClass": data["base_ac"],
                "abilityScores": dict(data["ability_scores"]),
                "hitDie": data["hit_die"],
                "abilities": list(data["abilities"]),
                "spells": [
                    spell_id
                    for spell_id, spell in config.spells.items()
                    if not spell.get("classes") or class_id in spell["classes"]
                ],
            }
            for class_id, data in config.classes.items()
        },
        "spells": {
            spell_id: {
                "name": data["name"],
                "description": data["description"],
                "classes": list(data["classes"]) if data.get("classes") else None,
                "energyCost": config.spell_cost,
            }
            for spell_id, data in config.spells.items()
        },
        "monsters": {
            monster_id: {"name": data["name"], "health": data["hp"], "armorClass": data["ac"]}
            for monster_id, data in config.monsters.items()
        },
    })
