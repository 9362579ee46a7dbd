"""Helper functions for ID and timestamp conversion."""

from __future__ import annotations

import re
import time
from datetime import datetime, timedelta, timezone
from typing import Optional

from pfeil.errors import ValidationError

_HEX_RE = re.compile(r"^[0-9a-fA-F]+$")

# Unix date(1) layout, e.g. "Mon Jan  2 15:04:05 MST 2006"
_UNIX_DATE_RE = re.compile(
    r"^(?P<weekday>[A-Za-z]{3}) +(?P<month>[A-Za-z]{3}) +(?P<day>\d{1,2}) +"
    r"(?P<clock>\d{2}:\d{2}:\d{2}) +(?P<zone>[A-Za-z]+) +(?P<year>\d{4})$"
)
_UTC_ZONES = {"UTC", "GMT", "Z"}


def format_trace_id(trace_id: int) -> str:
    """
    Format a trace ID as hex.

    64-bit IDs are written as 16 hex digits, 128-bit IDs as 32.
    """
    if trace_id >> 64:
        return format(trace_id, "032x")
    return format(trace_id, "016x")


def format_span_id(span_id: int) -> str:
    """Format a span ID as 16 hex digits."""
    return format(span_id, "016x")


def _parse_hex(value: str, max_digits: int, field: str) -> int:
    if not value:
        raise ValidationError(f"{field} is empty")
    if len(value) > max_digits:
        raise ValidationError(
            f"{field} is too long", {"value": value, "max_digits": max_digits}
        )
    if not _HEX_RE.match(value):
        raise ValidationError(f"{field} is not hexadecimal", {"value": value})
    return int(value, 16)


def parse_trace_id(hex_string: str) -> int:
    """
    Parse a hex trace ID of up to 32 digits.

    Raises:
        ValidationError: if the string is empty, too long or not hex
    """
    return _parse_hex(hex_string, 32, "trace ID")


def parse_span_id(hex_string: str) -> int:
    """
    Parse a hex span ID of up to 16 digits.

    Raises:
        ValidationError: if the string is empty, too long or not hex
    """
    return _parse_hex(hex_string, 16, "span ID")


def _zone_for(abbreviation: str) -> timezone:
    name = abbreviation.upper()
    if name in _UTC_ZONES:
        return timezone.utc
    # Known local abbreviations resolve to the local offset; anything else is
    # taken as a zero offset.
    if abbreviation == time.tzname[0]:
        return timezone(timedelta(seconds=-time.timezone), abbreviation)
    if time.daylight and abbreviation == time.tzname[1]:
        return timezone(timedelta(seconds=-time.altzone), abbreviation)
    return timezone(timedelta(0), abbreviation)


def parse_unix_date(value: str) -> datetime:
    """
    Parse a timestamp in Unix date format, e.g. ``Mon Jan  2 15:04:05 MST 2006``.

    Returns:
        timezone-aware datetime

    Raises:
        ValidationError: if the value does not match the layout
    """
    match = _UNIX_DATE_RE.match(value.strip())
    if not match:
        raise ValidationError(
            "timestamp does not match Unix date format", {"value": value}
        )
    text = "{weekday} {month} {day:0>2} {clock} {year}".format(**match.groupdict())
    try:
        parsed = datetime.strptime(text, "%a %b %d %H:%M:%S %Y")
    except ValueError as e:
        raise ValidationError(f"invalid timestamp: {e}", {"value": value}) from e
    return parsed.replace(tzinfo=_zone_for(match.group("zone")))


def datetime_to_ns(value: Optional[datetime]) -> Optional[int]:
    """Convert an aware datetime to nanoseconds since the epoch."""
    if value is None:
        return None
    return int(value.timestamp()) * 1_000_000_000 + value.microsecond * 1_000
