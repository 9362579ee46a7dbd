"""One pfeil invocation: decode context, run the span, print the new context."""

from __future__ import annotations

import logging
from typing import Iterable, Mapping, Optional, Sequence, TextIO, TYPE_CHECKING

from pfeil.command import run_command
from pfeil.context.environment import read_trace_environment, write_trace_context
from pfeil.tags import load_tags

if TYPE_CHECKING:
    from pfeil.tracer.tracer import Tracer

logger = logging.getLogger(__name__)


def emit_span(
    tracer: "Tracer",
    operation_name: str,
    command: Optional[Sequence[str]] = None,
    tags: Iterable[str] = (),
    environ: Optional[Mapping[str, str]] = None,
    stdout: Optional[TextIO] = None,
) -> str:
    """
    Create, populate and finish the span for one invocation.

    Tags from ``tags`` are applied after the command ran, so they override
    ``exit_code`` and ``error``. Once the span exists it is finished and its
    context token written to ``stdout`` on every path; errors from the
    command are re-raised afterwards.

    Returns:
        the context token that was written
    """
    inbound = read_trace_environment(environ)
    span = tracer.start_span(
        operation_name, parent=inbound.parent, start_time=inbound.start_time
    )
    try:
        with span:
            if command:
                run_command(span, command[0], command[1:])
            load_tags(span, tags)
    finally:
        token = write_trace_context(span, stdout)
    return token
