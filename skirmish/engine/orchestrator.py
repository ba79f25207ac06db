# skirmish/engine/orchestrator.py
from __future__ import annotations

import logging
import math
import threading
import uuid
from typing import Any, Callable, Dict, List, Mapping, Optional

from .dice import rng_for
from .errors import SnapshotError
from .models import (
    ACTIVE,
    ENDED,
    ENDING,
    MONSTER,
    PLAYER,
    VICTORY,
    ActionIntent,
    ActionResult,
    Combat,
    Entity,
    log_entry,
)
from .npc_ai import action_log_entry, run_monster_phase
from .regen import regenerate, regenerate_all, tick_all_status
from .resolver import now_ms, resolve, spend_action_point
from .timers import Timers

logger = logging.getLogger(__name__)


class NullBroadcaster:
    def combat_initiated(self, room_id: str, snapshot: Dict[str, Any]) -> None:
        pass

    def combat_updated(self, room_id: str, snapshot: Dict[str, Any]) -> None:
        pass

    def combat_ended(self, room_id: str, payload: Dict[str, Any]) -> None:
        pass


def check_outcome(combat: Combat) -> Optional[str]:
    return combat.outcome()


def defeat_entries(combat: Combat, result: ActionResult, now: int) -> List[Dict[str, Any]]:
    entries = []
    for entity_id in result.defeated:
        entity = combat.entity(entity_id)
        if not entity:
            continue
        entries.append(log_entry(
            now,
            f"{entity.name} has been defeated!",
            type="defeat",
            entityId=entity.id,
            entityType=entity.kind,
        ))
    return entries


class CombatManager:
    """
    Owns every live combat, keyed by room. Player intents, the regeneration
    tick and the end/evict timers all mutate a combat under that combat's lock;
    broadcasts go out after the lock is released. Creating and evicting a
    room's combat is serialized by one manager-wide lock.
    """

    def __init__(
        self,
        rooms,
        config,
        broadcaster=None,
        clock: Optional[Callable[[], int]] = None,
        rng_factory: Optional[Callable[[], Any]] = None,
        timers: Optional[Timers] = None,
    ):
        self.rooms = rooms
        self.config = config
        self.broadcaster = broadcaster or NullBroadcaster()
        self.clock = clock or now_ms
        self.rng_factory = rng_factory or rng_for
        self.timers = timers or Timers()
        self.combats: Dict[str, Combat] = {}
        self._locks: Dict[str, threading.RLock] = {}
        self._guard = threading.Lock()
        # start and evict read then replace self.combats[room_id]
        self._lifecycle = threading.RLock()
        self._last_tick: Optional[int] = None

    # -- lookups ---------------------------------------------------------

    def _lock(self, combat: Combat) -> threading.RLock:
        with self._guard:
            return self._locks.setdefault(combat.id, threading.RLock())

    def get_combat(self, room_id: str) -> Optional[Combat]:
        return self.combats.get(room_id)

    def snapshot(self, room_id: str) -> Optional[Dict[str, Any]]:
        combat = self.combats.get(room_id)
        if not combat:
            return None
        with self._lock(combat):
            return combat.to_dict()

    def active_combats(self) -> List[Combat]:
        return [c for c in list(self.combats.values()) if c.phase == ACTIVE]

    # -- NONE -> ACTIVE --------------------------------------------------

    def build_player(self, player: Mapping[str, Any], now: int) -> Entity:
        if not isinstance(player, Mapping) or not player.get("id"):
            logger.warning("room collaborator returned a player without an id: %r", player)
            raise SnapshotError(f"room player record without an id: {player!r}")
        defaults = self.config.defaults
        class_id = player.get("characterClass")
        template = self.config.classes.get(str(class_id).upper()) if class_id else None
        health = int(template["base_health"]) if template else int(defaults["hp"])
        entity = Entity(
            id=str(player["id"]),
            name=str(player.get("username") or player["id"]),
            kind=PLAYER,
            health=health,
            max_health=health,
            energy=int(defaults["energy"]),
            max_energy=int(defaults["energy"]),
            action_points=float(defaults["action_points"]),
            max_action_points=int(defaults["action_points"]),
            action_recharge_ms=int(defaults["action_recharge_ms"]),
            last_action_time=now,
            stats=dict(defaults["stats"]),
            ability_scores=dict(template["ability_scores"]) if template else None,
            base_ac=int(template["base_ac"]) if template else int(defaults["base_ac"]),
            level=int(defaults["level"]),
            character_class=str(class_id).upper() if template else None,
        )
        return entity

    def generate_monsters(self, player_count: int, now: int) -> List[Entity]:
        count = max(1, math.floor(player_count * self.config.monster_count_multiplier))
        r = self.rng_factory()
        type_ids = list(self.config.monsters)
        defaults = self.config.defaults
        monsters = []
        for i in range(count):
            kind = self.config.monsters[r.choice(type_ids)]
            monsters.append(Entity(
                id=f"monster-{uuid.uuid4()}",
                name=f"{kind['name']} {i + 1}",
                kind=MONSTER,
                health=int(kind["hp"]),
                max_health=int(kind["hp"]),
                energy=int(defaults["monster_energy"]),
                max_energy=int(defaults["monster_energy"]),
                action_points=float(defaults["action_points"]),
                max_action_points=int(defaults["action_points"]),
                action_recharge_ms=int(kind["action_recharge_ms"]),
                last_action_time=now,
                stats={
                    "attack": int(kind["stats"]["attack"]),
                    "defense": int(kind["stats"]["defense"]),
                    "magic_power": int(defaults["monster_magic_power"]),
                },
                base_ac=int(kind.get("ac", defaults["base_ac"])),
            ))
        return monsters

    def start_combat(self, room_id: str) -> Optional[Combat]:
        with self._lifecycle:
            if self.rooms.is_room_in_combat(room_id):
                logger.debug("room %s already in combat; start ignored", room_id)
                return None
            current = self.combats.get(room_id)
            if current and current.phase != ENDED:
                return None
            players = self.rooms.get_players_in_room(room_id)
            if not players:
                return None

            now = self.clock()
            entities = [self.build_player(p, now) for p in players]
            entities.extend(self.generate_monsters(len(entities), now))
            combat = Combat(
                id=str(uuid.uuid4()),
                room_id=room_id,
                start_time=now,
                entities=entities,
                log=[log_entry(now, "Combat has begun!")],
            )
            self.combats[room_id] = combat
            self.rooms.set_room_combat_status(room_id, True)
            snapshot = combat.to_dict()

        logger.info(
            "combat %s started in room %s: %d players vs %d monsters",
            combat.id, room_id, len(players), len(entities) - len(players),
        )
        self.broadcaster.combat_initiated(room_id, snapshot)
        return combat

    # -- ACTIVE: intents -------------------------------------------------

    def handle_action(self, connection_id: str, payload: Any) -> Optional[ActionResult]:
        """
        Resolves one player intent. Returns None when the intent was dropped,
        a result with success=False for a soft failure, or the applied result.
        Only applied results are logged and broadcast.
        """
        room_id = self.rooms.get_room_for_connection(connection_id)
        combat = self.combats.get(room_id) if room_id else None
        if not combat or combat.phase != ACTIVE:
            return None
        intent = ActionIntent.from_payload(payload)
        if intent is None:
            logger.debug("room %s: malformed intent from %s dropped", room_id, connection_id)
            return None

        with self._lock(combat):
            if combat.phase != ACTIVE:
                return None
            actor = combat.entity(connection_id)
            if not actor or actor.kind != PLAYER or not actor.is_alive():
                return None
            now = self.clock()
            saved = (actor.action_points, actor.last_action_time)
            regenerate(actor, now)
            if actor.action_points < 1:
                actor.action_points, actor.last_action_time = saved
                logger.debug("room %s: %s has no action point", room_id, actor.name)
                return None

            result = resolve(combat, actor, intent, self.config, rng=self.rng_factory(), now=now)
            if result is None or not result.success:
                actor.action_points, actor.last_action_time = saved
                return result

            spend_action_point(actor, now)
            combat.append_log(action_log_entry(result, PLAYER, now))
            for entry in defeat_entries(combat, result, now):
                combat.append_log(entry)
            self._check_end(combat, now)
            snapshot = combat.to_dict()

        self.broadcaster.combat_updated(room_id, snapshot)
        return result

    # -- ACTIVE: regeneration tick ---------------------------------------

    def tick_combat(self, combat: Combat, now: int) -> bool:
        with self._lock(combat):
            if combat.phase != ACTIVE:
                return False
            changed = regenerate_all(combat, now)
            if tick_all_status(combat):
                changed = True
            for result in run_monster_phase(combat, self.config, self.rng_factory, now):
                combat.append_log(action_log_entry(result, MONSTER, now))
                for entry in defeat_entries(combat, result, now):
                    combat.append_log(entry)
                changed = True
            if self._check_end(combat, now):
                changed = True
            snapshot = combat.to_dict() if changed else None

        if snapshot is not None:
            self.broadcaster.combat_updated(combat.room_id, snapshot)
        return changed

    def tick(self, now: Optional[int] = None) -> int:
        now = self.clock() if now is None else now
        self._last_tick = now
        updated = 0
        for combat in self.active_combats():
            if self.tick_combat(combat, now):
                updated += 1
        return updated

    def pump(self, now: Optional[int] = None) -> None:
        """One pass of the game loop: due timers, then the tick when it is due."""
        now = self.clock() if now is None else now
        self.timers.run_due(now)
        if self._last_tick is None or now - self._last_tick >= self.config.tick_interval_ms:
            self.tick(now)

    # -- ACTIVE -> ENDING -> ENDED ---------------------------------------

    def _check_end(self, combat: Combat, now: int) -> bool:
        outcome = check_outcome(combat)
        if outcome is None or combat.phase != ACTIVE:
            return False
        combat.phase = ENDING
        combat.pending_result = outcome
        self.timers.schedule(
            f"{combat.id}:end",
            now + self.config.end_grace_ms,
            lambda: self.end_combat(combat.room_id, combat.id),
        )
        logger.debug("combat %s in room %s is ending: %s", combat.id, combat.room_id, outcome)
        return True

    def end_combat(self, room_id: str, combat_id: str) -> Optional[str]:
        combat = self.combats.get(room_id)
        if not combat or combat.id != combat_id:
            return None
        with self._lock(combat):
            if combat.phase != ENDING:
                return None
            now = self.clock()
            result = combat.pending_result
            combat.phase = ENDED
            combat.active = False
            combat.end_time = now
            combat.result = result
            combat.pending_result = None
            message = (
                "Victory! All enemies have been defeated!"
                if result == VICTORY
                else "Defeat! All players have fallen!"
            )
            combat.append_log(log_entry(now, message))
            self.timers.schedule(
                f"{combat.id}:evict",
                now + self.config.retention_ms,
                lambda: self.evict(room_id, combat_id),
            )
            snapshot = combat.to_dict()

        self.rooms.set_room_combat_status(room_id, False)
        logger.info("combat %s ended in room %s with %s", combat_id, room_id, result)
        self.broadcaster.combat_ended(room_id, {"result": result, "combat": snapshot})
        return result

    def evict(self, room_id: str, combat_id: str) -> bool:
        with self._lifecycle:
            combat = self.combats.get(room_id)
            if not combat or combat.id != combat_id:
                return False
            del self.combats[room_id]
        with self._guard:
            self._locks.pop(combat_id, None)
        logger.info("combat %s evicted from room %s", combat_id, room_id)
        return True

