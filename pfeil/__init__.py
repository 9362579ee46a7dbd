"""pfeil: send one tracing span per invocation and chain traces across processes."""

__version__ = "0.3.1"

from pfeil.config import TracerConfig, load_config
from pfeil.context import (
    JaegerPropagator,
    format_trace_context,
    parse_trace_context,
    read_trace_environment,
    write_trace_context,
)
from pfeil.errors import (
    CommandError,
    ConfigError,
    InitializationError,
    PfeilError,
    ValidationError,
)
from pfeil.invocation import emit_span
from pfeil.tracer import Span, TraceContext, Tracer, TracerProvider

__all__ = [
    "__version__",
    "TracerConfig",
    "load_config",
    "JaegerPropagator",
    "format_trace_context",
    "parse_trace_context",
    "read_trace_environment",
    "write_trace_context",
    "PfeilError",
    "ConfigError",
    "ValidationError",
    "InitializationError",
    "CommandError",
    "emit_span",
    "Span",
    "TraceContext",
    "Tracer",
    "TracerProvider",
]
