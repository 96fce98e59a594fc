"""Value classification for rendered document leaves."""

from __future__ import annotations

import re
from datetime import datetime
from enum import Enum

from mongodv.errors import MalformedValueError


class Kind(str, Enum):
    NULL = "null"
    UNDEFINED = "undefined"
    BOOLEAN = "boolean"
    NUMBER = "number"
    IDENTIFIER_STRING = "identifier"
    TIMESTAMP_STRING = "timestamp"
    PLAIN_STRING = "string"
    OTHER = "other"


class _Undefined:
    """Marker for a value that is absent rather than null."""

    _instance: _Undefined | None = None

    def __new__(cls) -> _Undefined:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "undefined"

    def __bool__(self) -> bool:
        return False


UNDEFINED = _Undefined()

_OBJECT_ID_RE = re.compile(r"^[0-9a-fA-F]{24}$")
_TIMESTAMP_RE = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})(\.\d+)?(Z|[+-]\d{2}:?\d{2})?$"
)


def is_object_id(value: object) -> bool:
    """True for any 24-hex-digit string, regardless of whether it was minted by a driver."""
    return isinstance(value, str) and _OBJECT_ID_RE.match(value) is not None


def _parse_timestamp(match: re.Match[str]) -> datetime | None:
    year, month, day, hour, minute, second, fraction, zone = match.groups()
    micro = 0
    if fraction:
        micro = int(fraction[1:7].ljust(6, "0"))
    try:
        parsed = datetime(
            int(year), int(month), int(day), int(hour), int(minute), int(second), micro
        )
    except ValueError:
        return None
    if zone and zone != "Z":
        offset = zone.replace(":", "")
        if int(offset[1:3]) > 23 or int(offset[3:5]) > 59:
            return None
    return parsed


def is_timestamp(value: object) -> bool:
    """True when the string has the ISO-8601 shape AND names a real calendar instant."""
    if not isinstance(value, str):
        return False
    match = _TIMESTAMP_RE.match(value)
    if match is None:
        return False
    return _parse_timestamp(match) is not None


def classify(value: object) -> Kind:
    if value is None:
        return Kind.NULL
    if value is UNDEFINED:
        return Kind.UNDEFINED
    # bool before number: bool is an int subclass
    if isinstance(value, bool):
        return Kind.BOOLEAN
    if isinstance(value, (int, float)):
        return Kind.NUMBER
    if isinstance(value, str):
        if is_object_id(value):
            return Kind.IDENTIFIER_STRING
        if is_timestamp(value):
            return Kind.TIMESTAMP_STRING
        return Kind.PLAIN_STRING
    return Kind.OTHER


def is_composite(value: object) -> bool:
    return isinstance(value, (dict, list, tuple))


def type_label(value: object) -> str:
    """Collapsed-section label: ``Array[n]`` or ``Object{n}``."""
    if isinstance(value, (list, tuple)):
        return f"Array[{len(value)}]"
    if isinstance(value, dict):
        return f"Object{{{len(value)}}}"
    return classify(value).value


def _text(value: object) -> str:
    try:
        return str(value)
    except Exception as e:
        raise MalformedValueError(f"cannot render {type(value).__name__}: {e}") from e


def display_text(value: object) -> str:
    """Text a leaf shows on its card."""
    kind = classify(value)
    if kind is Kind.NULL:
        return "null"
    if kind is Kind.UNDEFINED:
        return "undefined"
    if kind is Kind.BOOLEAN:
        return "true" if value else "false"
    if kind is Kind.NUMBER:
        return repr(value)
    if kind is Kind.IDENTIFIER_STRING:
        return str(value)
    if kind in (Kind.TIMESTAMP_STRING, Kind.PLAIN_STRING):
        return f'"{value}"'
    try:
        return _text(value)
    except MalformedValueError:
        return f"<{type(value).__name__}>"
