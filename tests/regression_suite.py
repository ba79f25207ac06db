"""Regression scenarios for the skirmish combat engine.

Builds combats directly (no sockets), drives them with a scripted dice source
and a manual clock, and checks the end-to-end lifecycle.
"""

from __future__ import annotations

import random
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from skirmish.config import RulesConfig, freeze
from skirmish.content.monsters import MONSTERS
from skirmish.engine.models import (
    ACTIVE,
    DEFEAT,
    ENDED,
    ENDING,
    MONSTER,
    PLAYER,
    VICTORY,
    Combat,
    Entity,
)
from skirmish.engine.orchestrator import CombatManager
from skirmish.state import RoomDirectory


class ScriptedRandom:
    """Dice source that hands out queued values first, then falls back to a seeded RNG."""

    def __init__(self, ints: Iterable[int] = (), floats: Iterable[float] = (), picks: Iterable[int] = (), seed: int = 0):
        self.ints = list(ints)
        self.floats = list(floats)
        self.picks = list(picks)
        self._fallback = random.Random(seed)

    def randint(self, a: int, b: int) -> int:
        if self.ints:
            value = self.ints.pop(0)
            assert a <= value <= b, f"scripted roll {value} outside {a}..{b}"
            return value
        return self._fallback.randint(a, b)

    def uniform(self, a: float, b: float) -> float:
        if self.floats:
            return self.floats.pop(0)
        return self._fallback.uniform(a, b)

    def choice(self, seq):
        if self.picks:
            return seq[self.picks.pop(0)]
        return seq[0]


class ManualClock:
    def __init__(self, now: int = 1_000_000):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


class RecordingBroadcaster:
    def __init__(self):
        self.events: List[Tuple[str, str, Dict[str, Any]]] = []

    def combat_initiated(self, room_id, snapshot):
        self.events.append(("combatInitiated", room_id, snapshot))

    def combat_updated(self, room_id, snapshot):
        self.events.append(("combatUpdated", room_id, snapshot))

    def combat_ended(self, room_id, payload):
        self.events.append(("combatEnded", room_id, payload))

    def names(self) -> List[str]:
        return [name for name, _, _ in self.events]


def make_entity(entity_id: str = "p1", kind: str = PLAYER, **overrides) -> Entity:
    fields: Dict[str, Any] = dict(
        id=entity_id,
        name=entity_id.title(),
        kind=kind,
        health=100,
        max_health=100,
        energy=100,
        max_energy=100,
        action_points=3.0,
        max_action_points=3,
        action_recharge_ms=5000,
        last_action_time=1_000_000,
        stats={"attack": 10, "defense": 5, "magic_power": 8},
        base_ac=10,
    )
    fields.update(overrides)
    return Entity(**fields)


def make_combat(*entities: Entity, room_id: str = "room-1") -> Combat:
    return Combat(id="combat-1", room_id=room_id, start_time=1_000_000, entities=list(entities))


def goblin_only_config(**overrides) -> RulesConfig:
    return RulesConfig(monsters=freeze({"goblin": MONSTERS["goblin"]}), **overrides)


def make_manager(
    players: Iterable[Tuple[str, str, Optional[str]]] = (("p1", "Alice", "FIGHTER"),),
    rng: Optional[ScriptedRandom] = None,
    config: Optional[RulesConfig] = None,
    room_id: str = "room-1",
):
    config = config or goblin_only_config()
    rooms = RoomDirectory(classes=config.classes)
    for sid, username, class_id in players:
        rooms.join(sid, username, room_id, class_id)
    clock = ManualClock()
    broadcaster = RecordingBroadcaster()
    rng = rng or ScriptedRandom()
    manager = CombatManager(rooms, config, broadcaster=broadcaster, clock=clock, rng_factory=lambda: rng)
    return manager, rooms, clock, broadcaster, rng


# ---------------------------------------------------------------------------
# scenarios
# ---------------------------------------------------------------------------


def scenario_fighter_defeats_goblin() -> None:
    # d20 20 -> crit for 2 x 10; d20 15 (+2 STR) vs AC 12 -> hit for 10
    rng = ScriptedRandom(ints=[20, 15], floats=[1.0, 1.0])
    manager, rooms, clock, broadcaster, _ = make_manager(rng=rng)
    combat = manager.start_combat("room-1")
    assert combat is not None
    fighter = combat.entity("p1")
    goblin = combat.monsters()[0]
    assert fighter.max_health == 70 and goblin.health == 30

    first = manager.handle_action("p1", {"kind": "attack", "targetId": goblin.id})
    assert first.details["critical"] and first.details["damage"] == 20
    second = manager.handle_action("p1", {"kind": "attack", "targetId": goblin.id})
    assert second.details["hit"] and goblin.health == 0

    defeats = [e for e in combat.log if e.get("type") == "defeat"]
    assert len(defeats) == 1 and defeats[0]["entityId"] == goblin.id
    assert combat.phase == ENDING and combat.active
    assert broadcaster.names()[-1] == "combatUpdated"

    clock.advance(manager.config.end_grace_ms)
    manager.pump()
    assert combat.phase == ENDED
    assert combat.result == VICTORY and not combat.active
    assert combat.log[-1]["message"].startswith("Victory!")
    assert broadcaster.events[-1][0] == "combatEnded"
    assert broadcaster.events[-1][2]["result"] == VICTORY
    assert not rooms.is_room_in_combat("room-1")


def scenario_monsters_wipe_party() -> None:
    # goblin: d20 18 (+1 from attack 8) hits AC 10, 8 x 1.0 damage
    rng = ScriptedRandom(ints=[18], floats=[1.0])
    manager, rooms, clock, broadcaster, _ = make_manager(players=[("p1", "Alice", None)], rng=rng)
    combat = manager.start_combat("room-1")
    player = combat.entity("p1")
    player.health = 5

    assert manager.tick() == 1
    assert player.health == 0
    monster_entries = [e for e in combat.log if e.get("actorType") == MONSTER]
    assert monster_entries and monster_entries[0]["targetId"] == "p1"
    assert combat.phase == ENDING

    clock.advance(manager.config.end_grace_ms)
    manager.pump()
    assert combat.result == DEFEAT


def scenario_late_read_then_eviction() -> None:
    rng = ScriptedRandom(ints=[20], floats=[1.25])
    manager, rooms, clock, broadcaster, _ = make_manager(rng=rng)
    combat = manager.start_combat("room-1")
    goblin = combat.monsters()[0]
    goblin.health = 1
    manager.handle_action("p1", {"kind": "attack", "targetId": goblin.id})
    clock.advance(manager.config.end_grace_ms)
    manager.pump()
    frozen = manager.snapshot("room-1")
    assert frozen["result"] == VICTORY and frozen["active"] is False

    clock.advance(manager.config.retention_ms - 1)
    manager.pump()
    assert manager.snapshot("room-1") == frozen
    clock.advance(1)
    manager.pump()
    assert manager.snapshot("room-1") is None


def scenario_restart_before_eviction() -> None:
    rng = ScriptedRandom(ints=[20], floats=[1.0])
    manager, rooms, clock, broadcaster, _ = make_manager(rng=rng)
    old = manager.start_combat("room-1")
    old.monsters()[0].health = 1
    manager.handle_action("p1", {"kind": "attack", "targetId": old.monsters()[0].id})
    clock.advance(manager.config.end_grace_ms)
    manager.pump()
    assert old.phase == ENDED

    new = manager.start_combat("room-1")
    assert new is not None and new.id != old.id
    clock.advance(manager.config.retention_ms)
    manager.pump()
    assert manager.get_combat("room-1") is new
    assert new.phase == ACTIVE


SCENARIOS: List[Tuple[str, Callable[[], None]]] = [
    ("fighter_defeats_goblin", scenario_fighter_defeats_goblin),
    ("monsters_wipe_party", scenario_monsters_wipe_party),
    ("late_read_then_eviction", scenario_late_read_then_eviction),
    ("restart_before_eviction", scenario_restart_before_eviction),
]


def run_all(names: Optional[Iterable[str]] = None) -> List[Tuple[str, bool, str]]:
    """Runs every scenario, or only the named ones; unknown names raise KeyError."""
    names = list(names or ())
    selected = SCENARIOS
    if names:
        known = dict(SCENARIOS)
        missing = [name for name in names if name not in known]
        if missing:
            raise KeyError(f"unknown scenario(s): {', '.join(missing)}")
        selected = [(name, known[name]) for name in names]

    results = []
    for name, fn in selected:
        try:
            fn()
        except AssertionError as exc:
            results.append((name, False, str(exc) or "assertion failed"))
        else:
            results.append((name, True, ""))
    return results
