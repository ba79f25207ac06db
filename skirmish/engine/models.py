# skirmish/engine/models.py
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from .errors import SnapshotError

PLAYER = "player"
MONSTER = "monster"
ENTITY_KINDS = (PLAYER, MONSTER)

# combat phases
ACTIVE = "active"
ENDING = "ending"
ENDED = "ended"

VICTORY = "victory"
DEFEAT = "defeat"


def _require(data: Mapping[str, Any], key: str, what: str) -> Any:
    if not isinstance(data, Mapping):
        raise SnapshotError(f"{what} snapshot must be a mapping, got {type(data).__name__}")
    if key not in data:
        raise SnapshotError(f"{what} snapshot is missing '{key}'")
    return data[key]


def _as_int(value: Any, key: str, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SnapshotError(f"{what} '{key}' must be a number, got {value!r}")
    if isinstance(value, float) and not value.is_integer():
        raise SnapshotError(f"{what} '{key}' must be an integer, got {value!r}")
    return int(value)


def _as_float(value: Any, key: str, what: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or math.isnan(value):
        raise SnapshotError(f"{what} '{key}' must be a number, got {value!r}")
    return float(value)


@dataclass
class StatusEffect:
    id: str
    kind: str
    magnitude: int
    duration: int
    applied_at: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind,
            "magnitude": self.magnitude,
            "duration": self.duration,
            "appliedAt": self.applied_at,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "StatusEffect":
        what = "status effect"
        return cls(
            id=str(_require(data, "id", what)),
            kind=str(_require(data, "kind", what)),
            magnitude=_as_int(_require(data, "magnitude", what), "magnitude", what),
            duration=_as_int(_require(data, "duration", what), "duration", what),
            applied_at=_as_int(data.get("appliedAt", 0), "appliedAt", what),
        )


@dataclass
class Entity:
    id: str
    name: str
    kind: str                                   # "player" | "monster"
    health: int
    max_health: int
    energy: int
    max_energy: int
    action_points: float
    max_action_points: int
    action_recharge_ms: int                     # time to regenerate one action point
    last_action_time: int                       # ms timestamp
    stats: Dict[str, int] = field(default_factory=dict)      # attack/defense/magic_power
    ability_scores: Optional[Dict[str, int]] = None
    base_ac: int = 10
    level: int = 1
    character_class: Optional[str] = None
    status_effects: List[StatusEffect] = field(default_factory=list)

    def is_alive(self) -> bool:
        return self.health > 0

    def can_act(self) -> bool:
        return self.is_alive() and self.action_points >= 1

    def health_ratio(self) -> float:
        return self.health / self.max_health if self.max_health else 0.0

    def energy_ratio(self) -> float:
        return self.energy / self.max_energy if self.max_energy else 0.0

    def action_point_fill(self) -> float:
        """Progress towards the next whole action point, in [0, 1)."""
        return self.action_points - math.floor(self.action_points)

    def effect_modifier(self, stat: str, registry: Mapping[str, Mapping[str, Any]]) -> int:
        """Signed sum of every registered effect aimed at `stat`, unclamped."""
        total = 0
        for effect in self.status_effects:
            entry = registry.get(effect.kind)
            if not entry or entry.get("stat") != stat:
                continue
            total += int(entry.get("sign", 1)) * effect.magnitude
        return total

    def effective_stat(self, stat: str, registry: Mapping[str, Mapping[str, Any]]) -> int:
        """Base stat plus the signed magnitude of every registered effect aimed at it."""
        if stat == "armor_class":
            value = self.base_ac
        else:
            value = int(self.stats.get(stat, 0))
        return max(0, value + self.effect_modifier(stat, registry))

    def check_invariants(self) -> None:
        what = f"entity {self.id!r}"
        if self.kind not in ENTITY_KINDS:
            raise SnapshotError(f"{what} has unknown kind {self.kind!r}")
        if not 0 <= self.health <= self.max_health:
            raise SnapshotError(f"{what} health {self.health} outside [0, {self.max_health}]")
        if not 0 <= self.energy <= self.max_energy:
            raise SnapshotError(f"{what} energy {self.energy} outside [0, {self.max_energy}]")
        if self.max_action_points <= 0:
            raise SnapshotError(f"{what} maxActionPoints must be positive")
        if not 0 <= self.action_points <= self.max_action_points:
            raise SnapshotError(
                f"{what} actionPoints {self.action_points} outside [0, {self.max_action_points}]"
            )
        if self.action_recharge_ms <= 0:
            raise SnapshotError(f"{what} actionRechargeRate must be positive")

    def apply_update(self, data: Mapping[str, Any]) -> None:
        """
        Authoritative overwrite of vitals, stats and effects from a snapshot.
        Nothing is merged: fields absent from the snapshot are an error, and a
        snapshot that would break the vitals invariants leaves the entity untouched.
        """
        fresh = Entity.from_dict({**self.to_dict(), **_vitals_only(data)})
        if fresh.id != self.id:
            raise SnapshotError(f"snapshot for {fresh.id!r} applied to {self.id!r}")
        self.health = fresh.health
        self.max_health = fresh.max_health
        self.energy = fresh.energy
        self.max_energy = fresh.max_energy
        self.action_points = fresh.action_points
        self.max_action_points = fresh.max_action_points
        self.action_recharge_ms = fresh.action_recharge_ms
        self.last_action_time = fresh.last_action_time
        self.stats = fresh.stats
        self.ability_scores = fresh.ability_scores
        self.base_ac = fresh.base_ac
        self.status_effects = fresh.status_effects

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "kind": self.kind,
            "health": self.health,
            "maxHealth": self.max_health,
            "energy": self.energy,
            "maxEnergy": self.max_energy,
            "actionPoints": self.action_points,
            "maxActionPoints": self.max_action_points,
            "actionRechargeRate": self.action_recharge_ms,
            "lastActionTime": self.last_action_time,
            "stats": {
                "attack": int(self.stats.get("attack", 0)),
                "defense": int(self.stats.get("defense", 0)),
                "magicPower": int(self.stats.get("magic_power", 0)),
            },
            "abilityScores": dict(self.ability_scores) if self.ability_scores else None,
            "armorClass": self.base_ac,
            "level": self.level,
            "characterClass": self.character_class,
            "statusEffects": [effect.to_dict() for effect in self.status_effects],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Entity":
        what = "entity"
        stats_in = _require(data, "stats", what)
        if not isinstance(stats_in, Mapping):
            raise SnapshotError("entity 'stats' must be a mapping")
        scores_in = data.get("abilityScores")
        if scores_in is not None and not isinstance(scores_in, Mapping):
            raise SnapshotError("entity 'abilityScores' must be a mapping or null")
        effects_in = _require(data, "statusEffects", what)
        if not isinstance(effects_in, list):
            raise SnapshotError("entity 'statusEffects' must be a list")

        entity = cls(
            id=str(_require(data, "id", what)),
            name=str(_require(data, "name", what)),
            kind=str(_require(data, "kind", what)),
            health=_as_int(_require(data, "health", what), "health", what),
            max_health=_as_int(_require(data, "maxHealth", what), "maxHealth", what),
            energy=_as_int(_require(data, "energy", what), "energy", what),
            max_energy=_as_int(_require(data, "maxEnergy", what), "maxEnergy", what),
            action_points=_as_float(_require(data, "actionPoints", what), "actionPoints", what),
            max_action_points=_as_int(_require(data, "maxActionPoints", what), "maxActionPoints", what),
            action_recharge_ms=_as_int(_require(data, "actionRechargeRate", what), "actionRechargeRate", what),
            last_action_time=_as_int(_require(data, "lastActionTime", what), "lastActionTime", what),
            stats={
                "attack": _as_int(stats_in.get("attack", 0), "attack", what),
                "defense": _as_int(stats_in.get("defense", 0), "defense", what),
                "magic_power": _as_int(stats_in.get("magicPower", 0), "magicPower", what),
            },
            ability_scores=(
                {str(k): _as_int(v, str(k), what) for k, v in scores_in.items()} if scores_in else None
            ),
            base_ac=_as_int(data.get("armorClass", 10), "armorClass", what),
            level=_as_int(data.get("level", 1), "level", what),
            character_class=data.get("characterClass"),
            status_effects=[StatusEffect.from_dict(e) for e in effects_in],
        )
        entity.check_invariants()
        return entity


_VITAL_KEYS = (
    "health", "maxHealth", "energy", "maxEnergy", "actionPoints", "maxActionPoints",
    "actionRechargeRate", "lastActionTime", "stats", "abilityScores", "armorClass", "statusEffects",
)


def _vitals_only(data: Mapping[str, Any]) -> Dict[str, Any]:
    if not isinstance(data, Mapping):
        raise SnapshotError(f"entity snapshot must be a mapping, got {type(data).__name__}")
    for key in ("id", "health", "maxHealth", "energy", "maxEnergy", "actionPoints", "statusEffects"):
        if key not in data:
            raise SnapshotError(f"entity snapshot is missing '{key}'")
    out = {key: data[key] for key in _VITAL_KEYS if key in data}
    out["id"] = data["id"]
    return out


@dataclass
class ActionIntent:
    kind: str                       # "attack" | "cast" | "defend"
    target_id: Optional[str] = None
    spell_id: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> Optional["ActionIntent"]:
        """Accepts {kind|type, spellId|spellType, targetId}; anything else is None."""
        if not isinstance(payload, Mapping):
            return None
        kind = payload.get("kind") or payload.get("type")
        if not isinstance(kind, str) or not kind:
            return None
        spell_id = payload.get("spellId") or payload.get("spellType")
        if kind.startswith("cast:"):
            kind, spell_id = "cast", kind.split(":", 1)[1]
        target_id = payload.get("targetId")
        return cls(
            kind=kind,
            target_id=str(target_id) if target_id is not None else None,
            spell_id=str(spell_id) if spell_id else None,
        )


@dataclass
class ActionResult:
    actor_id: str
    actor_name: str
    target_id: str
    target_name: str
    kind: str
    message: str = ""
    spell_id: Optional[str] = None
    success: bool = True
    details: Dict[str, Any] = field(default_factory=dict)
    defeated: List[str] = field(default_factory=list)   # entity ids brought to 0 hp


def log_entry(time: int, message: str, **fields: Any) -> Dict[str, Any]:
    entry: Dict[str, Any] = {"time": time, "message": message}
    entry.update({k: v for k, v in fields.items() if v is not None})
    return entry


@dataclass
class Combat:
    id: str
    room_id: str
    start_time: int
    entities: List[Entity] = field(default_factory=list)
    log: List[Dict[str, Any]] = field(default_factory=list)
    active: bool = True
    result: Optional[str] = None
    end_time: Optional[int] = None
    phase: str = ACTIVE                 # "active" | "ending" | "ended"
    pending_result: Optional[str] = None

    def entity(self, entity_id: Optional[str]) -> Optional[Entity]:
        if entity_id is None:
            return None
        for entity in self.entities:
            if entity.id == entity_id:
                return entity
        return None

    def players(self) -> List[Entity]:
        return [e for e in self.entities if e.kind == PLAYER]

    def monsters(self) -> List[Entity]:
        return [e for e in self.entities if e.kind == MONSTER]

    def living(self, kind: str) -> List[Entity]:
        return [e for e in self.entities if e.kind == kind and e.is_alive()]

    def outcome(self) -> Optional[str]:
        # defeat is checked first, so a mutual wipe is a defeat
        if not self.living(PLAYER):
            return DEFEAT
        if not self.living(MONSTER):
            return VICTORY
        return None

    def append_log(self, entry: Dict[str, Any]) -> None:
        self.log.append(entry)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "roomId": self.room_id,
            "startTime": self.start_time,
            "entities": [e.to_dict() for e in self.entities],
            "log": [dict(entry) for entry in self.log],
            "active": self.active,
        }
        if self.result is not None:
            out["result"] = self.result
        if self.end_time is not None:
            out["endTime"] = self.end_time
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Combat":
        what = "combat"
        entities = _require(data, "entities", what)
        log = _require(data, "log", what)
        if not isinstance(entities, list) or not isinstance(log, list):
            raise SnapshotError("combat 'entities' and 'log' must be lists")
        result = data.get("result")
        if result not in (None, VICTORY, DEFEAT):
            raise SnapshotError(f"combat result {result!r} is not victory/defeat")
        active = bool(_require(data, "active", what))
        end_time = data.get("endTime")
        combat = cls(
            id=str(_require(data, "id", what)),
            room_id=str(_require(data, "roomId", what)),
            start_time=_as_int(_require(data, "startTime", what), "startTime", what),
            entities=[Entity.from_dict(e) for e in entities],
            log=[dict(entry) for entry in log],
            active=active,
            result=result,
            end_time=_as_int(end_time, "endTime", what) if end_time is not None else None,
            phase=ACTIVE if active else ENDED,
        )
        # a still-active snapshot whose outcome is decided was taken during the grace delay
        if active:
            combat.pending_result = combat.outcome()
            if combat.pending_result is not None:
                combat.phase = ENDING
        return combat
