"""Hash-tag annotation parser.

Messages carry ``#key=value`` annotations after (or between) plain text:

    Operation failed #opn=save #rsn=orders.db #rcd=5 #msg='disk #2 is full'

Rules:
  - an annotation starts at the delimiter followed by a key and '='
  - an unquoted value runs to the next annotation, trimmed
  - leading whitespace before a value is ignored
  - a value starting with a single quote runs to the closing quote and may
    contain the delimiter
  - '%[type][:vtype]/key' keys declare typed user fields
  - anything that does not parse stays in the plain text
"""

import logging
import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any

from tagtrack.models import Property, PropertyType

logger = logging.getLogger(__name__)

BEGIN_KEY = "beg"
END_KEY = "end"

CONTROL_KEYS = frozenset({
    BEGIN_KEY, END_KEY,
    "app", "usr", "cid", "tag", "loc", "opn", "opt", "rsn", "msg",
    "sev", "ccd", "rcd", "exc", "elt", "age", "stt", "ent",
})

_KEY_PATTERN = r"(?P<key>%[sildnfbSILDNFB]?(?::[\w.\-]+)?/[\w.\-]+|\w+)="

_TYPED_KEY_RE = re.compile(
    r"^%(?P<type>[sildnfbSILDNFB]?)(?::(?P<vtype>[\w.\-]+))?/(?P<name>[\w.\-]+)$"
)

_LEADING_SPACE_RE = re.compile(r"[ \t]*")

_TRUE_VALUES = ("true", "1", "yes", "y", "on")
_FALSE_VALUES = ("false", "0", "no", "n", "off")


@dataclass
class ParsedMessage:
    text: str
    attrs: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class FieldKey:
    name: str
    type: PropertyType = PropertyType.STRING
    value_type: str | None = None


@lru_cache(maxsize=16)
def _annotation_re(delimiter: str) -> re.Pattern:
    return re.compile(re.escape(delimiter) + _KEY_PATTERN)


def normalize_key(key: str) -> str:
    """Lower-case control keys; leave user keys exactly as written."""
    lowered = key.lower()
    return lowered if lowered in CONTROL_KEYS else key


def parse_message(message: str, delimiter: str = "#") -> ParsedMessage:
    """Split *message* into plain text and an annotation map. Never raises."""
    if not message:
        return ParsedMessage(text="")

    pattern = _annotation_re(delimiter)
    match = pattern.search(message)
    if match is None:
        return ParsedMessage(text=message.strip())

    text_parts = [message[:match.start()]]
    attrs: dict[str, str] = {}

    while match is not None:
        key = normalize_key(match.group("key"))
        pos = _LEADING_SPACE_RE.match(message, match.end()).end()

        if message.startswith("'", pos):
            close = message.find("'", pos + 1)
            if close == -1:
                # unterminated quote: the rest is literal text
                text_parts.append(message[match.start():])
                break
            value = message[pos + 1:close]
            nxt = pattern.search(message, close + 1)
            text_parts.append(message[close + 1:nxt.start() if nxt else len(message)])
        else:
            nxt = pattern.search(message, pos)
            value = message[pos:nxt.start() if nxt else len(message)].strip()

        attrs[key] = value
        match = nxt

    text = " ".join(part.strip() for part in text_parts if part.strip())
    return ParsedMessage(text=text, attrs=attrs)


def is_activity_instruction(attrs: dict[str, str]) -> bool:
    return BEGIN_KEY in attrs or END_KEY in attrs


def parse_field_key(key: str) -> FieldKey:
    """Resolve '%d:currency/amount' style keys; plain keys are strings."""
    m = _TYPED_KEY_RE.match(key)
    if not m:
        return FieldKey(name=key)
    letter = m.group("type").lower() or PropertyType.STRING.value
    return FieldKey(
        name=m.group("name"),
        type=PropertyType(letter),
        value_type=m.group("vtype"),
    )


def _to_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"not a boolean: {value!r}")


def _to_number(value: str) -> int | float:
    try:
        return int(value)
    except ValueError:
        return float(value)


_CONVERTERS = {
    PropertyType.STRING: str,
    PropertyType.INTEGER: int,
    PropertyType.LONG: int,
    PropertyType.FLOAT: float,
    PropertyType.DOUBLE: float,
    PropertyType.NUMBER: _to_number,
    PropertyType.BOOLEAN: _to_bool,
}


def convert_value(value: str, prop_type: PropertyType) -> Any:
    return _CONVERTERS[prop_type](value.strip() if prop_type is not PropertyType.STRING else value)


def to_property(key: str, value: str) -> Property:
    """Build a snapshot property, converting the value to its declared type.

    A value that does not convert is kept as a string.
    """
    fk = parse_field_key(key)
    try:
        converted = convert_value(value, fk.type)
    except ValueError as exc:
        logger.warning("Field %s is not a valid %s, keeping text: %s",
                       fk.name, fk.type.name.lower(), exc)
        return Property(key=fk.name, value=value, type=PropertyType.STRING,
                        value_type=fk.value_type)
    return Property(key=fk.name, value=converted, type=fk.type, value_type=fk.value_type)
