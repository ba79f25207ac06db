# skirmish/engine/errors.py


class SkirmishError(Exception):
    pass


class SnapshotError(SkirmishError, ValueError):
    """Entity or combat data that would break vitals invariants if applied."""


class ConfigError(SkirmishError, ValueError):
    pass
