# skirmish/config.py
from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional

from .content.balance import DEFAULTS, RULES, TIMING
from .content.classes import CLASSES
from .content.monsters import MONSTERS
from .content.spells import SPELLS
from .content.status_effects import STATUS_EFFECTS
from .engine.errors import ConfigError


def freeze(value: Any) -> Any:
    """Read-only deep copy: dicts become mapping proxies, lists become tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({k: freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(v) for v in value)
    return value


def thaw(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: thaw(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [thaw(v) for v in value]
    return value


@dataclass(frozen=True)
class RulesConfig:
    classes: Mapping[str, Any] = field(default_factory=lambda: freeze(CLASSES))
    monsters: Mapping[str, Any] = field(default_factory=lambda: freeze(MONSTERS))
    spells: Mapping[str, Any] = field(default_factory=lambda: freeze(SPELLS))
    status_effects: Mapping[str, Any] = field(default_factory=lambda: freeze(STATUS_EFFECTS))
    defaults: Mapping[str, Any] = field(default_factory=lambda: freeze(DEFAULTS))

    spell_cost: int = RULES["spell_cost"]
    spell_proficiency: int = RULES["spell_proficiency"]
    shield_magnitude: int = RULES["shield_magnitude"]
    shield_duration: int = RULES["shield_duration"]
    defend_duration: int = RULES["defend_duration"]
    monster_count_multiplier: float = RULES["monster_count_multiplier"]
    damage_spread: tuple = RULES["damage_spread"]

    tick_interval_ms: int = TIMING["tick_interval_ms"]
    pump_interval_ms: int = TIMING["pump_interval_ms"]
    end_grace_ms: int = TIMING["end_grace_ms"]
    retention_ms: int = TIMING["retention_ms"]

    def with_overrides(self, overrides: Optional[Mapping[str, Any]] = None) -> "RulesConfig":
        if not overrides:
            return self
        known = {f.name for f in dataclasses.fields(self)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ConfigError(f"unknown rules setting(s): {', '.join(unknown)}")
        changes = {}
        for key, value in overrides.items():
            current = getattr(self, key)
            if isinstance(current, Mapping):
                if not isinstance(value, Mapping):
                    raise ConfigError(f"rules setting '{key}' must be a mapping")
                merged = thaw(current)
                merged.update(value)
                changes[key] = freeze(merged)
            elif isinstance(current, tuple):
                if not isinstance(value, (list, tuple)) or len(value) != len(current):
                    raise ConfigError(f"rules setting '{key}' must be a pair: {value!r}")
                changes[key] = tuple(value)
            else:
                if isinstance(value, bool) or not isinstance(value, (int, float)):
                    raise ConfigError(f"rules setting '{key}' must be a number: {value!r}")
                changes[key] = value
        config = dataclasses.replace(self, **changes)
        config.validate()
        return config

    def validate(self) -> None:
        for name in ("spell_cost", "tick_interval_ms", "pump_interval_ms", "end_grace_ms", "retention_ms"):
            if getattr(self, name) < 0:
                raise ConfigError(f"rules setting '{name}' must not be negative")
        if self.tick_interval_ms == 0 or self.pump_interval_ms == 0:
            raise ConfigError("tick and pump intervals must be positive")
        lo, hi = self.damage_spread
        if not 0 < lo <= hi:
            raise ConfigError("damage_spread must be (low, high) with 0 < low <= high")
        if not self.monsters:
            raise ConfigError("at least one monster type is required")


def default_config() -> RulesConfig:
    return RulesConfig()


def load_config(overrides: Optional[Mapping[str, Any]] = None) -> RulesConfig:
    return default_config().with_overrides(overrides)
