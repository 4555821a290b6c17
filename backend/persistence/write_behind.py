from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable

from loguru import logger

Writer = Callable[[str, Any], None]
PayloadFn = Callable[[], Any]


@dataclass
class _Pending:
    due: float
    produce: PayloadFn


class WriteBehindQueue:
    """
    Coalescing, debounced writer with one timer per overlay kind.

    - `schedule(kind, produce)` (re)arms the kind's timer; the payload is produced at
      write time, so a burst of edits turns into one write of the final state
    - `pump(now)` writes every kind whose timer has run out
    - `flush()` writes everything pending now; `cancel()` drops pending writes
    - a failed write is logged and dropped, never retried and never raised
    """

    def __init__(
        self,
        writer: Writer,
        *,
        debounce_seconds: dict[str, float] | None = None,
        default_seconds: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.writer = writer
        self.debounce_seconds = dict(debounce_seconds or {})
        self.default_seconds = float(default_seconds)
        self.clock = clock
        self._pending: dict[str, _Pending] = {}

    def delay_for(self, kind: str) -> float:
        return float(self.debounce_seconds.get(kind, self.default_seconds))

    def schedule(self, kind: str, produce: PayloadFn) -> None:
        self._pending[kind] = _Pending(
            due=self.clock() + self.delay_for(kind), produce=produce
        )

    def pending(self) -> list[str]:
        return sorted(self._pending)

    def pump(self, now: float | None = None) -> list[str]:
        now = self.clock() if now is None else now
        due = [k for k, p in self._pending.items() if p.due <= now]
        return [k for k in due if self._write(k)]

    def flush(self) -> list[str]:
        return [k for k in list(self._pending) if self._write(k)]

    def cancel(self, kind: str | None = None) -> None:
        if kind is None:
            self._pending.clear()
        else:
            self._pending.pop(kind, None)

    def _write(self, kind: str) -> bool:
        entry = self._pending.pop(kind)
        try:
            self.writer(kind, entry.produce())
        except Exception as e:
            logger.warning(f"Persisting '{kind}' failed, change kept locally only: {e}")
            return False
        return True
