# skirmish/engine/regen.py
from __future__ import annotations

from .effects import tick_status
from .models import Combat, Entity
from .rules import accrue_action_points


def accrued_points(entity: Entity, now: int) -> float:
    """Action points the entity would hold at `now`, without changing it."""
    elapsed = now - entity.last_action_time
    return accrue_action_points(
        entity.action_points, entity.max_action_points, elapsed, entity.action_recharge_ms
    )


def regenerate(entity: Entity, now: int) -> bool:
    """
    Folds the time since the last baseline into action points and moves the
    baseline to `now`. Partial points stay on the entity, so nothing accrued
    below the cap is lost between ticks; time spent at the cap is not banked.
    """
    if now <= entity.last_action_time:
        return False
    before = entity.action_points
    entity.action_points = accrued_points(entity, now)
    entity.last_action_time = now
    return entity.action_points != before


def regenerate_all(combat: Combat, now: int) -> bool:
    changed = False
    for entity in combat.entities:
        if regenerate(entity, now):
            changed = True
    return changed


def tick_all_status(combat: Combat) -> bool:
    changed = False
    for entity in combat.entities:
        if tick_status(entity):
            changed = True
    return changed
