"""Thread-safe counters for items handed to the sink."""

import threading
import time
from collections import defaultdict, deque

from tagtrack.models import Activity, Event


class SinkStats:
    def __init__(self, max_recent: int = 100):
        self._lock = threading.Lock()
        self._events = 0
        self._activities = 0
        self._datagrams = 0
        self._severity_counts: dict[str, int] = defaultdict(int)
        self._status_counts: dict[str, int] = defaultdict(int)
        self._recent: deque[dict] = deque(maxlen=max_recent)
        self._start_time = time.monotonic()

    def record(self, item: Event | Activity):
        """Count one emitted item."""
        with self._lock:
            self._severity_counts[item.severity.name] += 1
            if isinstance(item, Activity):
                self._activities += 1
                self._events += item.item_count
                self._status_counts[item.status.value] += 1
                self._recent.append({
                    "id": item.id,
                    "name": item.name,
                    "status": item.status.value,
                    "severity": item.severity.name,
                    "items": item.item_count,
                    "elapsed_us": item.elapsed_us,
                })
            else:
                self._events += 1
                self._datagrams += 1

    def get_recent(self, n: int = 10) -> list[dict]:
        """Return the N most recent activity summaries."""
        with self._lock:
            return list(self._recent)[-n:] if n > 0 else []

    def snapshot(self) -> dict:
        with self._lock:
            return {
                "events": self._events,
                "activities": self._activities,
                "datagrams": self._datagrams,
                "severity_distribution": dict(self._severity_counts),
                "status_distribution": dict(self._status_counts),
                "uptime_seconds": round(time.monotonic() - self._start_time, 2),
            }
