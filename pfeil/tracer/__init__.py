"""Tracer components for pfeil."""

from pfeil.tracer.id_generator import JaegerIdGenerator
from pfeil.tracer.provider import SpanProcessor, TracerProvider
from pfeil.tracer.span import Span, SpanStatus
from pfeil.tracer.span_context import TraceContext
from pfeil.tracer.tracer import Tracer

__all__ = [
    "JaegerIdGenerator",
    "Span",
    "SpanStatus",
    "TraceContext",
    "Tracer",
    "TracerProvider",
    "SpanProcessor",
]
