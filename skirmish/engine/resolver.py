# skirmish/engine/resolver.py
from __future__ import annotations

import random
import time
from typing import Any, Callable, Dict, Optional

from .dice import d20, rng_for, roll
from .effects import apply_effect, armor_class, build_effect
from .models import ActionIntent, ActionResult, Combat, Entity
from .rules import ability_modifier, attack_modifier, clamp, consume_action_point, save_dc, scale_damage

SELF_TARGETED_SPELLS = ("shield", "second_wind", "cunning_action")


def now_ms() -> int:
    return int(time.time() * 1000)


def new_result(actor: Entity, target: Entity, intent: ActionIntent) -> ActionResult:
    return ActionResult(
        actor_id=actor.id,
        actor_name=actor.name,
        target_id=target.id,
        target_name=target.name,
        kind=intent.kind,
        spell_id=intent.spell_id,
    )


def apply_damage(target: Entity, amount: int, result: ActionResult) -> Dict[str, int]:
    before = target.health
    target.health = max(0, target.health - max(0, amount))
    if before > 0 and target.health == 0:
        result.defeated.append(target.id)
    return {"targetHealthBefore": before, "targetHealthAfter": target.health}


def apply_heal(target: Entity, amount: int) -> Dict[str, int]:
    before = target.health
    target.health = clamp(target.health + max(0, amount), 0, target.max_health)
    return {
        "targetHealthBefore": before,
        "targetHealthAfter": target.health,
        "actualHealAmount": target.health - before,
    }


def spend_energy(actor: Entity, cost: int) -> Dict[str, int]:
    before = actor.energy
    actor.energy = max(0, actor.energy - cost)
    return {"energyCost": cost, "actorEnergyBefore": before, "actorEnergyAfter": actor.energy}


def resolve_attack(combat, actor, target, intent, config, r, now) -> ActionResult:
    result = new_result(actor, target, intent)
    natural = d20(r)
    modifier = attack_modifier(actor)
    total = natural + modifier
    target_ac = armor_class(target, config.status_effects)
    critical = natural == 20
    fumble = natural == 1
    hit = critical or (not fumble and total >= target_ac)

    details: Dict[str, Any] = {
        "roll": natural,
        "modifier": modifier,
        "totalRoll": total,
        "targetAC": target_ac,
        "hit": hit,
        "critical": critical,
        "fumble": fumble,
        "damage": 0,
        "actorType": actor.kind,
    }

    if not hit:
        details.update({"targetHealthBefore": target.health, "targetHealthAfter": target.health})
        result.details = details
        if fumble:
            result.message = f"{actor.name} swings wildly at {target.name} and misses! (natural 1)"
        else:
            result.message = f"{actor.name} attacks {target.name} but misses! ({total} vs AC {target_ac})"
        return result

    lo, hi = config.damage_spread
    base = scale_damage(actor.effective_stat("attack", config.status_effects), r.uniform(lo, hi))
    damage = base * 2 if critical else base
    details["damage"] = damage
    details.update(apply_damage(target, damage, result))
    result.details = details
    if critical:
        result.message = f"{actor.name} lands a CRITICAL HIT on {target.name} for {damage} damage!"
    else:
        result.message = f"{actor.name} attacked {target.name} for {damage} damage!"
    return result


def resolve_defend(combat, actor, target, intent, config, r, now) -> ActionResult:
    result = new_result(actor, actor, intent)
    value = int(actor.stats.get("defense", 0)) // 2
    effect = build_effect("defense_buff", value, config.defend_duration, now)
    apply_effect(actor, effect)
    result.details = {
        "buffValue": value,
        "buffDuration": effect.duration,
        "effectId": effect.id,
        "actorType": actor.kind,
    }
    result.message = f"{actor.name} takes a defensive stance, increasing defense!"
    return result


def cast_fireball(actor, target, result, spell, config, r, now) -> None:
    ability = spell.get("ability", "intelligence")
    spell_mod = ability_modifier(actor, ability)
    natural = d20(r)
    details = result.details
    details.update({"roll": natural, "modifier": spell_mod, "totalRoll": natural + spell_mod})
    details.update(spend_energy(actor, config.spell_cost))

    if natural == 1:
        details.update({
            "fizzled": True,
            "critical": False,
            "spellDamage": 0,
            "targetHealthBefore": target.health,
            "targetHealthAfter": target.health,
        })
        result.message = f"{actor.name}'s fireball fizzles out before reaching {target.name}!"
        return

    rolled = max(0, roll(spell.get("dice", "2d6"), r) + spell_mod)
    details["rolledDamage"] = rolled
    details["fizzled"] = False

    if natural == 20:
        damage = rolled * 2
        details["critical"] = True
        details["saved"] = False
        result.message = f"{actor.name}'s fireball CRITICALLY engulfs {target.name} for {damage} damage!"
    else:
        dc = save_dc(actor, ability, config.spell_proficiency)
        save_roll = d20(r)
        save_total = save_roll + ability_modifier(target, spell.get("save", "dexterity"))
        saved = save_total >= dc
        damage = rolled // 2 if saved else rolled
        details.update({
            "critical": False,
            "saveDC": dc,
            "saveRoll": save_roll,
            "saveTotal": save_total,
            "saved": saved,
        })
        if saved:
            result.message = f"{target.name} dodges part of {actor.name}'s fireball and takes {damage} damage!"
        else:
            result.message = f"{actor.name}'s fireball engulfs {target.name} for {damage} damage!"

    details["spellDamage"] = damage
    details.update(apply_damage(target, damage, result))


def cast_heal(actor, target, result, spell, config, r, now) -> None:
    heal_roll = roll(spell.get("dice", "1d4"), r)
    modifier = ability_modifier(actor, spell.get("ability", "wisdom"))
    amount = max(0, heal_roll + modifier)
    details = result.details
    details.update({"healRoll": heal_roll, "modifier": modifier, "healAmount": amount})
    details.update(spend_energy(actor, config.spell_cost))
    details.update(apply_heal(target, amount))
    if target is actor:
        result.message = f"{actor.name} heals themselves for {details['actualHealAmount']} health."
    else:
        result.message = f"{actor.name} heals {target.name} for {details['actualHealAmount']} health."


def cast_shield(actor, target, result, spell, config, r, now) -> None:
    effect = build_effect(spell.get("effect", "ac_buff"), config.shield_magnitude, config.shield_duration, now)
    apply_effect(actor, effect)
    result.details.update(spend_energy(actor, config.spell_cost))
    result.details.update({"buffValue": effect.magnitude, "buffDuration": effect.duration, "effectId": effect.id})
    result.message = f"{actor.name} conjures a shimmering shield (+{effect.magnitude} AC)!"


def cast_second_wind(actor, target, result, spell, config, r, now) -> None:
    heal_roll = roll(spell.get("dice", "1d10"), r)
    amount = heal_roll + actor.level
    details = result.details
    details.update({"healRoll": heal_roll, "level": actor.level, "healAmount": amount})
    details.update(spend_energy(actor, config.spell_cost))
    details.update(apply_heal(actor, amount))
    result.message = f"{actor.name} catches a second wind, recovering {details['actualHealAmount']} health!"


def cast_cunning_action(actor, target, result, spell, config, r, now) -> None:
    before = actor.action_points
    actor.action_points = min(float(actor.max_action_points), actor.action_points + 1.0)
    result.details.update(spend_energy(actor, config.spell_cost))
    result.details.update({"actionPointsBefore": before, "actionPointsAfter": actor.action_points})
    result.message = f"{actor.name} darts about with cunning, gaining an extra action!"


SPELL_HANDLERS: Dict[str, Callable[..., None]] = {
    "fireball": cast_fireball,
    "heal": cast_heal,
    "shield": cast_shield,
    "second_wind": cast_second_wind,
    "cunning_action": cast_cunning_action,
}


def resolve_cast(combat, actor, target, intent, config, r, now) -> ActionResult:
    spell = config.spells[intent.spell_id]
    result = new_result(actor, target, intent)
    result.details = {"spellType": intent.spell_id, "actorType": actor.kind}

    if actor.energy < config.spell_cost:
        result.success = False
        result.details.update({"energyCost": config.spell_cost, "actorEnergy": actor.energy})
        result.message = f"{actor.name} doesn't have enough energy to cast {spell.get('name', intent.spell_id)}!"
        return result

    SPELL_HANDLERS[intent.spell_id](actor, target, result, spell, config, r, now)
    return result


ACTION_HANDLERS: Dict[str, Callable[..., ActionResult]] = {
    "attack": resolve_attack,
    "cast": resolve_cast,
    "defend": resolve_defend,
}


def can_cast(actor: Entity, spell_id: Optional[str], config) -> bool:
    spell = config.spells.get(spell_id or "")
    if not spell or spell_id not in SPELL_HANDLERS:
        return False
    allowed = spell.get("classes")
    return not allowed or actor.character_class in allowed


def available_spells(actor: Entity, config) -> list:
    return [spell_id for spell_id in config.spells if can_cast(actor, spell_id, config)]


def pick_target(combat: Combat, actor: Entity, intent: ActionIntent) -> Optional[Entity]:
    if intent.kind == "defend" or (intent.kind == "cast" and intent.spell_id in SELF_TARGETED_SPELLS):
        return actor
    target = combat.entity(intent.target_id)
    if not target or not target.is_alive():
        return None
    return target


def resolve(
    combat: Combat,
    actor: Entity,
    intent: ActionIntent,
    config,
    rng: Optional[random.Random] = None,
    now: Optional[int] = None,
) -> Optional[ActionResult]:
    """
    Applies one intent to the combat's entities and describes what happened.

    Returns None, without touching anything, for an unknown action kind, a missing
    or dead target, or a spell the actor's class may not use. A cast without enough
    energy comes back as a result with success=False and nothing mutated.
    """
    handler = ACTION_HANDLERS.get(intent.kind)
    if handler is None or not actor.is_alive():
        return None
    if intent.kind == "cast" and not can_cast(actor, intent.spell_id, config):
        return None
    target = pick_target(combat, actor, intent)
    if target is None:
        return None
    r = rng if rng is not None else rng_for()
    return handler(combat, actor, target, intent, config, r, now if now is not None else now_ms())


def spend_action_point(actor: Entity, now: int) -> None:
    actor.action_points = consume_action_point(actor.action_points)
    actor.last_action_time = now
