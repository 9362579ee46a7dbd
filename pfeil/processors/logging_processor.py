"""Span processor that logs spans when they finish."""

from __future__ import annotations

import logging
from typing import Optional

from pfeil.tracer.provider import SpanProcessor


class LoggingSpanProcessor(SpanProcessor):
    """Logs a span summary on finish using the standard logging module."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or logging.getLogger("pfeil.spans")

    def on_end(self, span) -> None:
        self.logger.info(
            "reporting span %s name=%s status=%s duration_ns=%s tags=%s",
            span,
            span.operation_name,
            span.status.name,
            span.duration_ns,
            span.tags,
        )
