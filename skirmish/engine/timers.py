# skirmish/engine/timers.py
from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, List


@dataclass(order=True)
class _Pending:
    due: int
    seq: int
    key: str = field(compare=False)
    callback: Callable[[], None] = field(compare=False)


class Timers:
    """
    Deferred callbacks keyed by name. Nothing runs on its own: the owner calls
    run_due(now) from its loop, so callbacks fire on the same path as ticks.
    Scheduling an existing key replaces it.
    """

    def __init__(self):
        self._pending: Dict[str, _Pending] = {}
        self._seq = itertools.count()
        self._lock = threading.Lock()

    def schedule(self, key: str, due: int, callback: Callable[[], None]) -> None:
        with self._lock:
            self._pending[key] = _Pending(due=due, seq=next(self._seq), key=key, callback=callback)

    def cancel(self, key: str) -> bool:
        with self._lock:
            return self._pending.pop(key, None) is not None

    def pending(self, key: str) -> bool:
        return key in self._pending

    def due_at(self, key: str):
        entry = self._pending.get(key)
        return entry.due if entry else None

    def run_due(self, now: int) -> List[str]:
        with self._lock:
            ready = sorted(p for p in self._pending.values() if p.due <= now)
            for p in ready:
                del self._pending[p.key]
        for p in ready:
            p.callback()
        return [p.key for p in ready]

    def __len__(self) -> int:
        return len(self._pending)
