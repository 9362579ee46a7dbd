"""Utility functions for pfeil."""

from pfeil.utils.helpers import (
    datetime_to_ns,
    format_span_id,
    format_trace_id,
    parse_span_id,
    parse_trace_id,
    parse_unix_date,
)

__all__ = [
    "datetime_to_ns",
    "format_trace_id",
    "format_span_id",
    "parse_trace_id",
    "parse_span_id",
    "parse_unix_date",
]
