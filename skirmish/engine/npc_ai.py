# skirmish/engine/npc_ai.py
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List

from .models import MONSTER, PLAYER, ActionIntent, ActionResult, Combat, log_entry
from .resolver import resolve, spend_action_point

logger = logging.getLogger(__name__)


def run_monster_phase(combat: Combat, config, rng_factory: Callable, now: int) -> List[ActionResult]:
    """
    Every living monster holding a whole action point attacks a random living
    player through the normal resolver. Returns the results in resolution order.
    """
    results: List[ActionResult] = []
    for monster in combat.living(MONSTER):
        if monster.action_points < 1:
            continue
        players = combat.living(PLAYER)
        if not players:
            break
        r = rng_factory()
        target = r.choice(players)
        intent = ActionIntent(kind="attack", target_id=target.id)
        result = resolve(combat, monster, intent, config, rng=r, now=now)
        if result is None:
            continue
        spend_action_point(monster, now)
        logger.debug("room %s: %s", combat.room_id, result.message)
        results.append(result)
    return results


def action_log_entry(result: ActionResult, actor_type: str, now: int) -> Dict[str, Any]:
    return log_entry(
        now,
        result.message,
        actor=result.actor_name,
        actorId=result.actor_id,
        actorType=actor_type,
        action=result.kind,
        spellId=result.spell_id,
        target=result.target_name,
        targetId=result.target_id,
        details=dict(result.details),
    )
