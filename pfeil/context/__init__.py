"""Trace context propagation across process boundaries."""

from pfeil.context.environment import (
    TRACE_ID_ENV,
    TRACE_START_ENV,
    InboundContext,
    read_trace_environment,
    write_trace_context,
)
from pfeil.context.propagators import (
    TRACE_CONTEXT_HEADER,
    JaegerPropagator,
    format_trace_context,
    from_otel_context,
    parse_trace_context,
    to_otel_context,
)

__all__ = [
    "TRACE_ID_ENV",
    "TRACE_START_ENV",
    "TRACE_CONTEXT_HEADER",
    "InboundContext",
    "JaegerPropagator",
    "read_trace_environment",
    "write_trace_context",
    "parse_trace_context",
    "format_trace_context",
    "to_otel_context",
    "from_otel_context",
]
