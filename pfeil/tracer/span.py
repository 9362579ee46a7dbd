"""Span implementation - thin wrapper around an OpenTelemetry span."""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Dict, Optional, TYPE_CHECKING

from opentelemetry.trace import Span as OTelSpan, Status, StatusCode

from pfeil.tags import TagValue, format_tag_value
from pfeil.tracer.span_context import TraceContext

if TYPE_CHECKING:
    from pfeil.tracer.tracer import Tracer

logger = logging.getLogger(__name__)


class SpanStatus(Enum):
    UNSET = 0
    OK = 1
    ERROR = 2


class Span:
    """
    The single unit of work reported by one pfeil invocation.

    Tags keep their typed value locally and are sent to the backend in string
    form. The span is finished exactly once, either explicitly or by leaving a
    ``with`` block.
    """

    def __init__(
        self,
        otel_span: OTelSpan,
        tracer: "Tracer",
        operation_name: str,
        parent: Optional[TraceContext] = None,
        start_time_ns: Optional[int] = None,
    ) -> None:
        """
        Initialize span wrapper.

        Args:
            otel_span: OpenTelemetry span (recording or not)
            tracer: pfeil Tracer that created the span
            operation_name: span operation name
            parent: inbound parent context, None for a trace root
            start_time_ns: start timestamp recorded on the OTel span
        """
        from pfeil.context.propagators import from_otel_context

        self._otel_span = otel_span
        self.tracer = tracer
        self.operation_name = operation_name
        self.parent = parent
        self.context = from_otel_context(
            otel_span.get_span_context(),
            parent_id=parent.span_id if parent else 0,
            parent_flags=parent.flags if parent else 0,
        )

        self.start_time_ns = start_time_ns if start_time_ns is not None else time.time_ns()
        self.end_time_ns: Optional[int] = None

        self.status = SpanStatus.UNSET
        self.status_description: Optional[str] = None

        self._tags: Dict[str, TagValue] = {}
        self._finished = False

    def __str__(self) -> str:
        from pfeil.context.propagators import format_trace_context

        return format_trace_context(self.context)

    def __repr__(self) -> str:
        return f"Span({self.operation_name!r}, context={self})"

    @property
    def tags(self) -> Dict[str, TagValue]:
        """Copy of the tags set so far, with their typed values."""
        return dict(self._tags)

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def duration_ns(self) -> Optional[int]:
        if self.end_time_ns is None:
            return None
        return self.end_time_ns - self.start_time_ns

    def set_tag(self, key: str, value: TagValue) -> None:
        """Set a tag, overwriting any previous value for the key."""
        if self._finished:
            logger.debug("span already finished, ignoring tag %s", key)
            return
        if not key:
            logger.warning("ignoring tag with empty key")
            return
        string_value = format_tag_value(value)
        self._tags[key] = value
        self._otel_span.set_attribute(key, string_value)

    def set_status(self, status: SpanStatus, description: Optional[str] = None) -> None:
        """Set the span status."""
        if self._finished:
            return

        self.status = status
        self.status_description = description

        if status == SpanStatus.OK:
            otel_status = Status(status_code=StatusCode.OK)
        elif status == SpanStatus.ERROR:
            otel_status = Status(status_code=StatusCode.ERROR, description=description)
        else:
            otel_status = Status(status_code=StatusCode.UNSET)
        self._otel_span.set_status(otel_status)

    def record_error(self, error: BaseException) -> None:
        """Mark the span as failed with the error message."""
        if self._finished:
            return
        message = str(error) or type(error).__name__
        self.set_tag("error", True)
        self.set_tag("message", message)
        self._otel_span.record_exception(error)
        self.set_status(SpanStatus.ERROR, message)

    def _has_error_tag(self) -> bool:
        value = self._tags.get("error")
        if value is None:
            return False
        return format_tag_value(value).lower() == "true"

    def finish(self) -> None:
        """
        Finish the span and hand it to the backend.

        The status follows the final ``error`` tag unless it was set
        explicitly. Calling finish more than once has no effect.
        """
        if self._finished:
            return

        self.end_time_ns = time.time_ns()
        if self.status == SpanStatus.UNSET:
            if self._has_error_tag():
                message = self._tags.get("message")
                self.set_status(
                    SpanStatus.ERROR, format_tag_value(message) if message is not None else None
                )
            else:
                self.set_status(SpanStatus.OK)

        # Enrichment processors see the span while it is still mutable
        self.tracer._run_enrichment_processors(self)

        self._otel_span.end(end_time=self.end_time_ns)
        self._finished = True
        logger.debug("finished span %s", self)

    def __enter__(self) -> "Span":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        try:
            if exc is not None:
                self.record_error(exc)
        finally:
            self.finish()
        return False
