"""Jaeger ``uber-trace-id`` propagation built on OpenTelemetry's propagator API."""

from __future__ import annotations

from typing import Optional, Set

from opentelemetry import context as context_api
from opentelemetry.propagators.textmap import (
    CarrierT,
    Getter,
    Setter,
    TextMapPropagator,
    default_getter,
    default_setter,
)
from opentelemetry.trace import NonRecordingSpan, get_current_span, set_span_in_context
from opentelemetry.trace import SpanContext as OTelSpanContext, TraceFlags

from pfeil.errors import ValidationError
from pfeil.tracer.span_context import SAMPLED_FLAG, TraceContext
from pfeil.utils.helpers import (
    format_span_id,
    format_trace_id,
    parse_span_id,
    parse_trace_id,
)

TRACE_CONTEXT_HEADER = "uber-trace-id"


def parse_trace_context(token: str) -> TraceContext:
    """
    Parse a ``trace-id:span-id:parent-id:flags`` token.

    The flags field is read as hex, the same base it is written in, so a
    token printed by pfeil parses back to the same flags.

    Raises:
        ValidationError: if the token does not have four valid fields
    """
    if not token:
        raise ValidationError("trace context token is empty")
    parts = token.strip().split(":")
    if len(parts) != 4:
        raise ValidationError(
            "trace context token must have 4 colon-separated fields",
            {"token": token, "fields": len(parts)},
        )
    trace_id = parse_trace_id(parts[0])
    span_id = parse_span_id(parts[1])
    parent_id = parse_span_id(parts[2])
    if not parts[3] or len(parts[3]) > 2:
        raise ValidationError("flags must be 1 or 2 hex digits", {"token": token})
    try:
        flags = int(parts[3], 16)
    except ValueError as e:
        raise ValidationError("flags are not hexadecimal", {"token": token}) from e

    context = TraceContext(
        trace_id=trace_id, span_id=span_id, parent_id=parent_id, flags=flags
    )
    if not context.is_valid():
        raise ValidationError(
            "trace ID and span ID must be non-zero", {"token": token}
        )
    return context


def format_trace_context(context: TraceContext) -> str:
    """Format a TraceContext as a ``trace-id:span-id:parent-id:flags`` token."""
    return "{}:{}:{}:{:x}".format(
        format_trace_id(context.trace_id),
        format_span_id(context.span_id),
        format_span_id(context.parent_id),
        context.flags,
    )


def to_otel_context(context: TraceContext, is_remote: bool = True) -> OTelSpanContext:
    """Convert a TraceContext to an OpenTelemetry SpanContext."""
    return OTelSpanContext(
        trace_id=context.trace_id,
        span_id=context.span_id,
        is_remote=is_remote,
        trace_flags=TraceFlags(context.flags & SAMPLED_FLAG),
    )


def from_otel_context(
    otel_context: OTelSpanContext, parent_id: int = 0, parent_flags: int = 0
) -> TraceContext:
    """
    Convert an OpenTelemetry SpanContext to a TraceContext.

    OTel only carries the sampled bit. The other bits of ``parent_flags``
    (debug) are kept so a child shares its parent's flags.
    """
    flags = parent_flags & ~SAMPLED_FLAG
    if otel_context.trace_flags.sampled:
        flags |= SAMPLED_FLAG
    return TraceContext(
        trace_id=otel_context.trace_id,
        span_id=otel_context.span_id,
        parent_id=parent_id,
        flags=flags,
    )


class JaegerPropagator(TextMapPropagator):
    """
    TextMapPropagator reading and writing the ``uber-trace-id`` carrier key.

    Malformed values are ignored on extract, leaving the context unchanged.
    """

    def extract(
        self,
        carrier: CarrierT,
        context: Optional[context_api.Context] = None,
        getter: Getter = default_getter,
    ) -> context_api.Context:
        if context is None:
            context = context_api.Context()
        values = getter.get(carrier, TRACE_CONTEXT_HEADER)
        if not values:
            return context
        try:
            parsed = parse_trace_context(values[0])
        except ValidationError:
            return context
        return set_span_in_context(NonRecordingSpan(to_otel_context(parsed)), context)

    def inject(
        self,
        carrier: CarrierT,
        context: Optional[context_api.Context] = None,
        setter: Setter = default_setter,
    ) -> None:
        span_context = get_current_span(context).get_span_context()
        if not span_context.is_valid:
            return
        setter.set(
            carrier,
            TRACE_CONTEXT_HEADER,
            format_trace_context(from_otel_context(span_context)),
        )

    @property
    def fields(self) -> Set[str]:
        return {TRACE_CONTEXT_HEADER}

