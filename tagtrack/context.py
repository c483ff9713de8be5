"""Per-context correlation state and elapsed-time tracking."""

import threading
import time
from collections.abc import Hashable

from tagtrack.models import Activity


class ElapsedClock:
    """Monotonic 'time since last hit' in microseconds."""

    def __init__(self, clock=None):
        self._clock = clock or time.monotonic_ns
        self._last = self._clock()

    def hit(self) -> int:
        """Return microseconds since the previous hit (or creation) and reset."""
        now = self._clock()
        elapsed = max(0, now - self._last)
        self._last = now
        return elapsed // 1000


class RecordClock:
    """Clock driven by the timestamps of replayed records instead of wall time."""

    def __init__(self, start_ms: int = 0):
        self._now_ms = start_ms

    def update(self, timestamp_ms: int) -> None:
        self._now_ms = timestamp_ms

    def ns(self) -> int:
        return self._now_ms * 1_000_000

    def seconds(self) -> float:
        return self._now_ms / 1000


class CorrelationContext:
    """Current activity of one execution context. Not shared between threads."""

    def __init__(self, name: str = "", clock=None):
        self.name = name
        self.activity: Activity | None = None
        self.timer = ElapsedClock(clock)

    @property
    def is_noop(self) -> bool:
        return self.activity is None


class ContextRegistry:
    """Creates and hands out one CorrelationContext per key (e.g. thread id)."""

    def __init__(self, clock=None):
        self._clock = clock
        self._contexts: dict[Hashable, CorrelationContext] = {}
        self._lock = threading.Lock()

    def get(self, key: Hashable, name: str = "") -> CorrelationContext:
        with self._lock:
            ctx = self._contexts.get(key)
            if ctx is None:
                ctx = CorrelationContext(name or str(key), self._clock)
                self._contexts[key] = ctx
            return ctx

    def contexts(self) -> list[CorrelationContext]:
        with self._lock:
            return list(self._contexts.values())

    def keys(self) -> list[Hashable]:
        with self._lock:
            return list(self._contexts)

    def discard(self, key: Hashable) -> CorrelationContext | None:
        """Forget the context for *key*. Returns it, or None if unknown."""
        with self._lock:
            return self._contexts.pop(key, None)

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._contexts

    def __len__(self) -> int:
        with self._lock:
            return len(self._contexts)
