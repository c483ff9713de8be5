"""Builds structured Events from raw records and their annotations.

Every field starts from what the raw record already carries (level, thread,
logger name, source location, elapsed time since the previous record) and is
then overridden by whatever annotations are present. A bad annotation value
only loses that one field.
"""

import logging
from dataclasses import dataclass, field

from tagtrack.config import Config
from tagtrack.context import CorrelationContext
from tagtrack.models import (
    Event,
    OpCompCode,
    OpLevel,
    OpType,
    Property,
    RawRecord,
    Snapshot,
    new_id,
)
from tagtrack.severity import map_level, parse_comp_code, parse_op_type, parse_severity
from tagtrack.tags import CONTROL_KEYS, ParsedMessage, to_property

logger = logging.getLogger(__name__)


@dataclass
class _EventDraft:
    name: str
    severity: OpLevel
    comp_code: OpCompCode
    elapsed_us: int
    resource: str
    source: str
    tag: str | None
    location: str | None
    message: str
    exception: str | None
    reason_code: int = 0
    op_type: OpType = OpType.EVENT
    correlator: str | None = None
    user: str | None = None
    message_age: int | None = None
    start_us: int = 0
    end_us: int = 0
    properties: list[Property] = field(default_factory=list)


def _text(attr: str):
    def apply(draft: _EventDraft, value: str) -> None:
        setattr(draft, attr, value)
    return apply


def _converted(attr: str, convert):
    def apply(draft: _EventDraft, value: str) -> None:
        setattr(draft, attr, convert(value))
    return apply


def _int(value: str) -> int:
    return int(value.strip())


def _duration(value: str) -> int:
    usec = _int(value)
    if usec < 0:
        raise ValueError("duration must not be negative")
    return usec


_FIELD_HANDLERS = {
    "cid": _text("correlator"),
    "tag": _text("tag"),
    "loc": _text("location"),
    "rsn": _text("resource"),
    "usr": _text("user"),
    "opn": _text("name"),
    "exc": _text("exception"),
    "msg": _text("message"),
    "app": _text("source"),
    "elt": _converted("elapsed_us", _duration),
    "age": _converted("message_age", _duration),
    "stt": _converted("start_us", _int),
    "ent": _converted("end_us", _int),
    "rcd": _converted("reason_code", _int),
    "ccd": _converted("comp_code", parse_comp_code),
    "sev": _converted("severity", parse_severity),
    "opt": _converted("op_type", parse_op_type),
}


def _error_text(error: BaseException | None) -> str | None:
    if error is None:
        return None
    return str(error) or type(error).__name__


class EventBuilder:
    def __init__(self, config: Config):
        self._config = config

    def build(self, record: RawRecord, parsed: ParsedMessage,
              context: CorrelationContext) -> Event:
        """Turn one raw record plus its parsed annotations into an Event."""
        severity, comp_code = map_level(record.level)
        location = record.location
        draft = _EventDraft(
            name=location.method if location else record.logger_name,
            severity=severity,
            comp_code=comp_code,
            elapsed_us=context.timer.hit(),
            resource=record.logger_name,
            source=record.logger_name,
            tag=record.thread,
            location=str(location) if location else None,
            message=parsed.text,
            exception=_error_text(record.error),
        )

        for key, value in parsed.attrs.items():
            handler = _FIELD_HANDLERS.get(key)
            if handler is not None:
                try:
                    handler(draft, value)
                except ValueError as exc:
                    logger.warning("Ignoring invalid annotation %s=%r: %s", key, value, exc)
            elif key not in CONTROL_KEYS and key and value:
                draft.properties.append(to_property(key, value))

        record_us = record.timestamp * 1000
        start_us = draft.start_us if draft.start_us > 0 else record_us - draft.elapsed_us
        end_us = draft.end_us if draft.end_us > 0 else start_us + draft.elapsed_us
        if end_us < start_us:
            logger.debug("End time %d precedes start time %d, clamping", end_us, start_us)
            end_us = start_us

        snapshots = ()
        if draft.properties:
            snapshots = (Snapshot(
                category=self._config.snapshot_category,
                owner=draft.name,
                properties=tuple(draft.properties),
            ),)

        return Event(
            id=new_id(),
            name=draft.name,
            severity=draft.severity,
            comp_code=draft.comp_code,
            start_us=start_us,
            end_us=end_us,
            reason_code=draft.reason_code,
            op_type=draft.op_type,
            resource=draft.resource,
            source=draft.source,
            tag=draft.tag,
            correlator=draft.correlator,
            user=draft.user,
            location=draft.location,
            message=draft.message,
            exception=draft.exception,
            message_age=draft.message_age,
            snapshots=snapshots,
            error=record.error,
        )
