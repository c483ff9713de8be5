"""Decides when a logged event should carry a metrics snapshot."""

import threading


class MetricsScheduler:
    """Shared across all contexts; the last-snapshot time is only changed by should_snapshot."""

    def __init__(self, frequency_seconds: float = 60, on_exception: bool = True):
        self._frequency = frequency_seconds
        self._on_exception = on_exception
        self._last_snapshot = 0.0
        self._lock = threading.Lock()

    @property
    def last_snapshot(self) -> float:
        with self._lock:
            return self._last_snapshot

    def should_snapshot(self, has_error: bool, now: float) -> bool:
        """Return True if a snapshot is due at *now* (epoch seconds) and record it."""
        with self._lock:
            due = (has_error and self._on_exception) or (
                now - self._last_snapshot >= self._frequency
            )
            if due:
                self._last_snapshot = now
            return due
