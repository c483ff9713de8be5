"""Reads annotated log files into raw records."""

import os
import re
from datetime import datetime, timezone
from typing import Generator

from tagtrack.models import RawRecord

LOG_PATTERN = re.compile(
    r"^\[(\d{4}-\d{2}-\d{2}\s+\d{2}:\d{2}:\d{2}(?:[.,]\d{1,6})?)\]\s+"
    r"\[(\w+)\]\s+"
    r"(?:\[([^\]]+)\]\s+)?"
    r"(.*)$"
)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

DEFAULT_THREAD = "main"


def _parse_timestamp(text: str) -> datetime:
    text = text.replace(",", ".")
    fmt = TIMESTAMP_FORMAT + (".%f" if "." in text else "")
    return datetime.strptime(text, fmt).replace(tzinfo=timezone.utc)


def parse_line(line: str, source: str = "") -> RawRecord | None:
    """Parse '[ts] [LEVEL] [thread] message' into a RawRecord. None if unparseable."""
    stripped = line.rstrip("\n")
    match = LOG_PATTERN.match(stripped)
    if not match:
        return None

    ts_text, level, thread, message = match.groups()
    try:
        timestamp = _parse_timestamp(ts_text)
    except ValueError:
        return None

    return RawRecord(
        timestamp=int(timestamp.timestamp() * 1000),
        level=level.upper(),
        thread=thread or DEFAULT_THREAD,
        logger_name=os.path.splitext(os.path.basename(source))[0] if source else "",
        message=message,
    )


def read_records(paths: list[str]) -> Generator[RawRecord, None, None]:
    """Yield records from each file in order, skipping unparseable lines."""
    for path in paths:
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            for line in f:
                record = parse_line(line, source=path)
                if record is not None:
                    yield record
