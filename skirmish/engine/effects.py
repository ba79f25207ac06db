# skirmish/engine/effects.py
from __future__ import annotations

import uuid
from typing import Any, List, Mapping, Optional

from .models import Entity, StatusEffect


def build_effect(kind: str, magnitude: int, duration: int, now: int, effect_id: Optional[str] = None) -> StatusEffect:
    return StatusEffect(
        id=effect_id or str(uuid.uuid4()),
        kind=kind,
        magnitude=int(magnitude),
        duration=int(duration),
        applied_at=int(now),
    )


def apply_effect(target: Entity, effect: StatusEffect) -> None:
    target.status_effects.append(effect)


def has_effect(target: Entity, kind: str) -> bool:
    return any(effect.kind == kind for effect in target.status_effects)


def tick_durations(effects: List[StatusEffect]) -> List[StatusEffect]:
    """Decrement every duration by one; drop the ones that reach zero."""
    new_list: List[StatusEffect] = []
    for e in effects:
        d = e.duration - 1
        if d > 0:
            new_list.append(StatusEffect(id=e.id, kind=e.kind, magnitude=e.magnitude, duration=d, applied_at=e.applied_at))
    return new_list


def tick_status(entity: Entity) -> bool:
    if not entity.status_effects:
        return False
    entity.status_effects = tick_durations(entity.status_effects)
    return True


def armor_class(entity: Entity, registry: Mapping[str, Mapping[str, Any]]) -> int:
    """
    AC used to gate attack rolls: base AC plus the signed sum of armor_class and
    defense effects. Only the final value is floored at zero.
    """
    value = entity.base_ac
    value += entity.effect_modifier("armor_class", registry)
    value += entity.effect_modifier("defense", registry)
    return max(0, value)
