"""Level -> severity/completion-code translation tables."""

import logging
from bisect import bisect_right
from enum import IntEnum
from typing import TypeVar

from tagtrack.models import OpCompCode, OpLevel, OpType

E = TypeVar("E", bound=IntEnum)

DEFAULT_MAPPING = (OpLevel.INFO, OpCompCode.SUCCESS)

# Source level name -> (severity, completion code)
LEVEL_MAP: dict[str, tuple[OpLevel, OpCompCode]] = {
    "TRACE": (OpLevel.TRACE, OpCompCode.SUCCESS),
    "DEBUG": (OpLevel.DEBUG, OpCompCode.SUCCESS),
    "INFO": (OpLevel.INFO, OpCompCode.SUCCESS),
    "NOTICE": (OpLevel.NOTICE, OpCompCode.SUCCESS),
    "WARN": (OpLevel.WARNING, OpCompCode.WARNING),
    "WARNING": (OpLevel.WARNING, OpCompCode.WARNING),
    "ERROR": (OpLevel.ERROR, OpCompCode.ERROR),
    "CRITICAL": (OpLevel.CRITICAL, OpCompCode.ERROR),
    "FATAL": (OpLevel.FATAL, OpCompCode.ERROR),
    "OFF": (OpLevel.NONE, OpCompCode.SUCCESS),
    "NOTSET": DEFAULT_MAPPING,
}

# Numeric stdlib levels, bucketed by lower bound
_NUMERIC_BOUNDS = [
    1,
    logging.DEBUG,
    logging.INFO,
    logging.WARNING,
    logging.ERROR,
    logging.CRITICAL,
]
_NUMERIC_NAMES = ["NOTSET", "TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

# OpLevel -> stdlib level, used when writing tracking output back to a logger
_LOGGING_LEVELS = {
    OpLevel.NONE: logging.INFO,
    OpLevel.TRACE: logging.DEBUG,
    OpLevel.DEBUG: logging.DEBUG,
    OpLevel.INFO: logging.INFO,
    OpLevel.NOTICE: logging.WARNING,
    OpLevel.WARNING: logging.WARNING,
    OpLevel.ERROR: logging.ERROR,
    OpLevel.CRITICAL: logging.CRITICAL,
    OpLevel.FAILURE: logging.CRITICAL,
    OpLevel.FATAL: logging.CRITICAL,
    OpLevel.HALT: logging.CRITICAL,
}

_ALIASES = {"WARN": "WARNING"}


def level_name(level: str | int | None) -> str:
    """Normalize a source level (name or stdlib number) to a LEVEL_MAP key."""
    if level is None:
        return "NOTSET"
    if isinstance(level, int):
        return _NUMERIC_NAMES[bisect_right(_NUMERIC_BOUNDS, level)]
    return level.strip().upper()


def map_level(level: str | int | None) -> tuple[OpLevel, OpCompCode]:
    """Map a source level to (severity, completion code). Unknown levels map to INFO/SUCCESS."""
    return LEVEL_MAP.get(level_name(level), DEFAULT_MAPPING)


def _parse_enum(enum_cls: type[E], value: str) -> E:
    text = value.strip()
    if text.lstrip("-").isdigit():
        return enum_cls(int(text))
    name = text.upper()
    name = _ALIASES.get(name, name)
    try:
        return enum_cls[name]
    except KeyError:
        raise ValueError(f"{value!r} is not a valid {enum_cls.__name__}") from None


def parse_severity(value: str) -> OpLevel:
    """Parse a severity name or number; numbers are clamped into NONE..HALT."""
    text = value.strip()
    if text.lstrip("-").isdigit():
        return OpLevel(min(max(int(text), OpLevel.NONE), OpLevel.HALT))
    return _parse_enum(OpLevel, text)


def parse_comp_code(value: str) -> OpCompCode:
    return _parse_enum(OpCompCode, value)


def parse_op_type(value: str) -> OpType:
    return _parse_enum(OpType, value)


def to_logging_level(severity: OpLevel) -> int:
    return _LOGGING_LEVELS[severity]
