"""Tracking data model: enums, events, activities, snapshots."""

import uuid
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any


class OpLevel(IntEnum):
    NONE = 0
    TRACE = 1
    DEBUG = 2
    INFO = 3
    NOTICE = 4
    WARNING = 5
    ERROR = 6
    CRITICAL = 7
    FAILURE = 8
    FATAL = 9
    HALT = 10


class OpCompCode(IntEnum):
    SUCCESS = 0
    WARNING = 1
    ERROR = 2


class OpType(IntEnum):
    OTHER = 0
    START = 1
    OPEN = 2
    SEND = 3
    RECEIVE = 4
    CLOSE = 5
    END = 6
    INQUIRE = 7
    SET = 8
    CALL = 9
    URL = 10
    BROWSE = 11
    ACTIVITY = 12
    EVENT = 13
    DATAGRAM = 14
    REQUEST = 15
    RESPONSE = 16
    LOG = 17


class ActivityStatus(str, Enum):
    NOOP = "NOOP"
    STARTED = "STARTED"
    EXCEPTION = "EXCEPTION"
    END = "END"


class SourceType(str, Enum):
    APPL = "APPL"
    SERVER = "SERVER"
    PROCESS = "PROCESS"
    RUNTIME = "RUNTIME"
    USER = "USER"
    GENERIC = "GENERIC"


class PropertyType(str, Enum):
    """Declared type of a user-defined field, keyed by its type letter."""

    STRING = "s"
    INTEGER = "i"
    LONG = "l"
    FLOAT = "f"
    NUMBER = "n"
    DOUBLE = "d"
    BOOLEAN = "b"


@dataclass(frozen=True)
class SourceLocation:
    file: str
    method: str
    line: int

    def __str__(self) -> str:
        return f"{self.file}:{self.line}"


@dataclass(frozen=True)
class RawRecord:
    timestamp: int          # epoch millis
    level: str | int
    thread: str
    logger_name: str
    message: str
    error: BaseException | None = None
    location: SourceLocation | None = None


@dataclass(frozen=True)
class Property:
    key: str
    value: Any
    type: PropertyType = PropertyType.STRING
    value_type: str | None = None


@dataclass(frozen=True)
class Snapshot:
    category: str
    owner: str
    properties: tuple[Property, ...] = ()

    def get(self, key: str) -> Property | None:
        for prop in self.properties:
            if prop.key == key:
                return prop
        return None


def new_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class Event:
    id: str
    name: str
    severity: OpLevel
    comp_code: OpCompCode
    start_us: int
    end_us: int
    reason_code: int = 0
    op_type: OpType = OpType.EVENT
    resource: str = ""
    source: str = ""
    tag: str | None = None
    correlator: str | None = None
    user: str | None = None
    location: str | None = None
    message: str = ""
    exception: str | None = None
    message_age: int | None = None
    snapshots: tuple[Snapshot, ...] = ()
    error: BaseException | None = None

    @property
    def elapsed_us(self) -> int:
        return self.end_us - self.start_us


@dataclass
class Activity:
    """A correlated group of events; mutated until stopped, then emitted."""

    name: str
    severity: OpLevel = OpLevel.INFO
    resource: str = ""
    source: str = ""
    id: str = field(default_factory=new_id)
    status: ActivityStatus = ActivityStatus.NOOP
    events: list[Event] = field(default_factory=list)
    start_us: int = 0
    end_us: int = 0
    error: BaseException | None = None
    snapshots: list[Snapshot] = field(default_factory=list)

    @property
    def item_count(self) -> int:
        return len(self.events)

    @property
    def elapsed_us(self) -> int:
        return max(0, self.end_us - self.start_us)

    def start(self, start_us: int) -> None:
        self.start_us = start_us
        self.end_us = start_us
        self.status = ActivityStatus.STARTED

    def add(self, event: Event) -> None:
        self.events.append(event)

    def stop(self, end_us: int, error: BaseException | None = None) -> None:
        """Close the activity; status reflects whether an error was attached."""
        self.end_us = max(self.start_us, end_us)
        self.error = error
        self.status = ActivityStatus.EXCEPTION if error is not None else ActivityStatus.END


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


def _error_text(error: BaseException | None) -> str | None:
    if error is None:
        return None
    return f"{type(error).__name__}: {error}"


def snapshot_to_dict(snapshot: Snapshot) -> dict[str, Any]:
    return {
        "category": snapshot.category,
        "owner": snapshot.owner,
        "properties": [
            {
                "key": p.key,
                "value": p.value,
                "type": p.type.name,
                **({"value_type": p.value_type} if p.value_type else {}),
            }
            for p in snapshot.properties
        ],
    }


def event_to_dict(event: Event) -> dict[str, Any]:
    data = {
        "kind": "event",
        "id": event.id,
        "name": event.name,
        "severity": event.severity.name,
        "comp_code": event.comp_code.name,
        "reason_code": event.reason_code,
        "op_type": event.op_type.name,
        "resource": event.resource,
        "source": event.source,
        "tag": event.tag,
        "correlator": event.correlator,
        "user": event.user,
        "location": event.location,
        "message": event.message,
        "exception": event.exception,
        "start_us": event.start_us,
        "end_us": event.end_us,
        "elapsed_us": event.elapsed_us,
        "message_age": event.message_age,
        "snapshots": [snapshot_to_dict(s) for s in event.snapshots],
    }
    return {k: v for k, v in data.items() if v is not None}


def activity_to_dict(activity: Activity) -> dict[str, Any]:
    data = {
        "kind": "activity",
        "id": activity.id,
        "name": activity.name,
        "status": activity.status.value,
        "severity": activity.severity.name,
        "resource": activity.resource,
        "source": activity.source,
        "start_us": activity.start_us,
        "end_us": activity.end_us,
        "elapsed_us": activity.elapsed_us,
        "item_count": activity.item_count,
        "exception": _error_text(activity.error),
        "events": [event_to_dict(e) for e in activity.events],
        "snapshots": [snapshot_to_dict(s) for s in activity.snapshots],
    }
    return {k: v for k, v in data.items() if v is not None}


def item_to_dict(item: Event | Activity) -> dict[str, Any]:
    """Convert an Event or Activity to a JSON-ready dict, dropping None values."""
    if isinstance(item, Activity):
        return activity_to_dict(item)
    return event_to_dict(item)
