"""Tracer creating pfeil spans through the OpenTelemetry SDK."""

from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import Optional, TYPE_CHECKING

from opentelemetry import context as context_api
from opentelemetry.trace import NonRecordingSpan, SpanKind, set_span_in_context
from opentelemetry.trace import Tracer as OTelTracer

from pfeil.errors import InitializationError, ValidationError
from pfeil.tracer.span_context import TraceContext
from pfeil.utils.helpers import datetime_to_ns

if TYPE_CHECKING:
    from pfeil.tracer.provider import TracerProvider
    from pfeil.tracer.span import Span

logger = logging.getLogger(__name__)


class Tracer:
    """
    Tracer wrapper that uses an OpenTelemetry Tracer internally.

    Spans never inherit an ambient "current span": the parent is always the
    one passed to start_span, or none.
    """

    def __init__(self, provider: "TracerProvider", instrumentation_scope: str):
        """
        Initialize tracer.

        Args:
            provider: pfeil TracerProvider instance
            instrumentation_scope: Instrumentation scope name
        """
        from pfeil import __version__

        self._provider = provider
        self.instrumentation_scope = instrumentation_scope
        self._otel_tracer: OTelTracer = provider._otel_provider.get_tracer(
            instrumentation_scope, __version__
        )

    def start_span(
        self,
        operation_name: str,
        parent: Optional[TraceContext] = None,
        start_time: Optional[datetime] = None,
    ) -> "Span":
        """
        Start the span for this invocation.

        Args:
            operation_name: Span operation name, must not be empty
            parent: Parent context decoded from the environment, None for a root
            start_time: Externally supplied start time, None for now

        Returns:
            pfeil Span instance (wraps OTel Span)

        Raises:
            ValidationError: if the operation name is empty
            InitializationError: if the backend fails to create the span
        """
        from pfeil.context.propagators import to_otel_context
        from pfeil.tracer.span import Span

        if not operation_name or not operation_name.strip():
            raise ValidationError("operation name must be set")

        # An empty context keeps OTel from picking up an ambient current span
        otel_parent_context = context_api.Context()
        kind = SpanKind.INTERNAL
        if parent is not None:
            otel_parent_context = set_span_in_context(
                NonRecordingSpan(to_otel_context(parent)), otel_parent_context
            )
            kind = SpanKind.SERVER

        start_time_ns = datetime_to_ns(start_time) if start_time else time.time_ns()

        try:
            otel_span = self._otel_tracer.start_span(
                name=operation_name,
                context=otel_parent_context,
                kind=kind,
                start_time=start_time_ns,
            )
        except Exception as e:
            raise InitializationError(
                "could not start span", {"operation": operation_name, "error": e}
            ) from e

        span = Span(otel_span, self, operation_name, parent=parent, start_time_ns=start_time_ns)
        if parent is not None:
            span.set_tag("span.kind", "server")

        logger.debug("started span %s", span)
        if not span.context.sampled:
            logger.debug("warning, trace not sampled")
        return span

    def _run_enrichment_processors(self, span: "Span") -> None:
        """
        Run enrichment processors before the span ends.

        Called by Span.finish() before the OTel span is ended.
        """
        for processor in self._provider._enrichment_processors:
            try:
                processor.on_end(span)
            except Exception:
                # A failing processor must not keep the span from being exported
                logger.warning("span processor %r failed", processor, exc_info=True)
