"""Tests for correlation contexts and the elapsed clock."""

import threading

from tagtrack.context import ContextRegistry, CorrelationContext, ElapsedClock, RecordClock
from tagtrack.models import Activity


class TestElapsedClock:
    def test_hit_returns_microseconds_since_creation(self, clock):
        clock.now_ns = 5_000
        timer = ElapsedClock(clock)
        clock.advance_us(250)
        assert timer.hit() == 250

    def test_hit_resets(self, clock):
        timer = ElapsedClock(clock)
        clock.advance_us(10)
        timer.hit()
        clock.advance_us(30)
        assert timer.hit() == 30
        assert timer.hit() == 0

    def test_never_negative(self, clock):
        clock.now_ns = 10_000
        timer = ElapsedClock(clock)
        clock.now_ns = 0
        assert timer.hit() == 0


class TestRecordClock:
    def test_follows_record_timestamps(self):
        clock = RecordClock()
        clock.update(1_700_000_000_250)
        assert clock.seconds() == 1_700_000_000.25
        assert clock.ns() == 1_700_000_000_250_000_000

    def test_drives_elapsed_clock(self):
        clock = RecordClock(start_ms=1_000)
        timer = ElapsedClock(clock.ns)
        clock.update(601_000)
        assert timer.hit() == 600_000_000
        clock.update(500_000)
        assert timer.hit() == 0


class TestCorrelationContext:
    def test_starts_noop(self):
        ctx = CorrelationContext("t1")
        assert ctx.is_noop
        assert ctx.activity is None

    def test_open_activity(self):
        ctx = CorrelationContext("t1")
        ctx.activity = Activity(name="Order")
        assert not ctx.is_noop


class TestContextRegistry:
    def test_same_key_same_context(self):
        registry = ContextRegistry()
        assert registry.get("a") is registry.get("a")
        assert registry.get("a") is not registry.get("b")
        assert len(registry) == 2

    def test_name_defaults_to_key(self):
        registry = ContextRegistry()
        assert registry.get(7).name == "7"
        assert registry.get(8, "worker-8").name == "worker-8"

    def test_contexts_listing(self):
        registry = ContextRegistry()
        registry.get("a")
        registry.get("b")
        assert {c.name for c in registry.contexts()} == {"a", "b"}

    def test_concurrent_get_creates_one_context(self):
        registry = ContextRegistry()
        seen = []
        barrier = threading.Barrier(6)

        def worker():
            barrier.wait()
            seen.append(registry.get("shared"))

        threads = [threading.Thread(target=worker) for _ in range(6)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5)

        assert len({id(c) for c in seen}) == 1
