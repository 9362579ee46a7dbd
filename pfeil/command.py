"""Running the wrapped command and recording its outcome on the span."""

from __future__ import annotations

import logging
import signal
import subprocess
from dataclasses import dataclass
from typing import Optional, Sequence, TYPE_CHECKING

from pfeil.errors import CommandError

if TYPE_CHECKING:
    from pfeil.tracer.span import Span

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExitOutcome:
    """How the wrapped command ended."""

    exit_code: int
    signal: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.exit_code != 0


def _signal_name(signum: int) -> str:
    try:
        return signal.Signals(signum).name
    except ValueError:
        return f"SIG{signum}"


def run_command(span: "Span", name: str, args: Sequence[str] = ()) -> ExitOutcome:
    """
    Run ``name`` with ``args`` and tag the span with the result.

    The child inherits stdin, stdout and stderr. Tags set:

    - ``cmd.cmd`` and ``cmd.args`` (arguments joined by single spaces, so
      arguments containing spaces cannot be told apart)
    - ``exit_code``, plus ``error=true`` when it is not 0
    - ``exit_signal`` when the child was killed by a signal; ``exit_code``
      is then the negative signal number

    Raises:
        CommandError: if the command cannot be started or waited on
    """
    args = list(args)
    span.set_tag("cmd.cmd", name)
    span.set_tag("cmd.args", " ".join(args))

    logger.debug("running command %s %s", name, " ".join(args))
    try:
        process = subprocess.Popen([name, *args])
    except (OSError, ValueError) as e:
        raise CommandError(f"error running command: {e}", {"cmd": name}) from e

    try:
        returncode = process.wait()
    except OSError as e:
        raise CommandError(f"error waiting for command: {e}", {"cmd": name}) from e

    outcome = ExitOutcome(exit_code=returncode)
    if returncode < 0:
        outcome = ExitOutcome(exit_code=returncode, signal=_signal_name(-returncode))

    span.set_tag("exit_code", outcome.exit_code)
    if outcome.failed:
        span.set_tag("error", True)
    if outcome.signal:
        span.set_tag("exit_signal", outcome.signal)
    logger.debug("command exited with code %d", outcome.exit_code)
    return outcome
