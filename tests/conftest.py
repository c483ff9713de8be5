import pytest

from tagtrack.config import Config
from tagtrack.context import CorrelationContext
from tagtrack.models import RawRecord, SourceLocation
from tagtrack.sinks import MemorySink

BASE_MILLIS = 1_700_000_000_000


class FakeClock:
    """Manually advanced nanosecond clock."""

    def __init__(self, start_ns: int = 0):
        self.now_ns = start_ns

    def __call__(self) -> int:
        return self.now_ns

    def advance_us(self, usec: int):
        self.now_ns += usec * 1000


class FakeTime:
    """Manually advanced epoch-seconds clock."""

    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


def _make_record(message: str, level="INFO", error=None, timestamp=BASE_MILLIS,
                thread="worker-1", logger_name="orders.service", location=True) -> RawRecord:
    return RawRecord(
        timestamp=timestamp,
        level=level,
        thread=thread,
        logger_name=logger_name,
        message=message,
        error=error,
        location=SourceLocation("service.py", "process_order", 42) if location else None,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fake_time():
    return FakeTime()


@pytest.fixture
def context(clock):
    return CorrelationContext("worker-1", clock=clock)


@pytest.fixture
def config():
    return Config(sink="memory", snapshot_category="Logging")


@pytest.fixture
def sink():
    return MemorySink()


@pytest.fixture
def base_millis():
    return BASE_MILLIS


@pytest.fixture
def make_record():
    """Factory for RawRecords with sensible defaults, overridable per field."""
    return _make_record
