"""Reading trace context from the process environment and writing it back out."""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from datetime import datetime
from typing import Mapping, Optional, TextIO, TYPE_CHECKING

from pfeil.context.propagators import format_trace_context, parse_trace_context
from pfeil.errors import ValidationError
from pfeil.tracer.span_context import TraceContext
from pfeil.utils.helpers import parse_unix_date

if TYPE_CHECKING:
    from pfeil.tracer.span import Span

logger = logging.getLogger(__name__)

TRACE_ID_ENV = "TRACE_ID"
TRACE_START_ENV = "TRACE_START"


@dataclass(frozen=True)
class InboundContext:
    """Parent context and start time handed down by the calling process."""

    parent: Optional[TraceContext] = None
    start_time: Optional[datetime] = None


def read_trace_environment(environ: Optional[Mapping[str, str]] = None) -> InboundContext:
    """
    Decode TRACE_ID and TRACE_START from the environment.

    Malformed values are logged at debug level and ignored: a bad TRACE_ID
    starts a new trace, a bad TRACE_START uses the current time.
    """
    if environ is None:
        environ = os.environ

    parent = None
    token = environ.get(TRACE_ID_ENV)
    if token is not None:
        logger.debug("found %s %s", TRACE_ID_ENV, token)
        try:
            parent = parse_trace_context(token)
        except ValidationError as e:
            logger.debug("error extracting trace context: %s", e)
    else:
        logger.debug("no %s found in env, starting new trace", TRACE_ID_ENV)

    start_time = None
    start = environ.get(TRACE_START_ENV)
    if start is not None:
        logger.debug("found %s %s", TRACE_START_ENV, start)
        try:
            start_time = parse_unix_date(start)
        except ValidationError as e:
            logger.debug("error parsing %s: %s", TRACE_START_ENV, e)
    else:
        logger.debug("no %s found in env, using now", TRACE_START_ENV)

    return InboundContext(parent=parent, start_time=start_time)


def write_trace_context(span: "Span", stream: Optional[TextIO] = None) -> str:
    """
    Write the span's context token to ``stream`` (stdout by default).

    No newline is appended; callers capture the output with ``$(...)``.
    """
    stream = stream or sys.stdout
    token = format_trace_context(span.context)
    stream.write(token)
    stream.flush()
    return token
