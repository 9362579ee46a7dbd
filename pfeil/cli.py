"""Command line entry point."""

from __future__ import annotations

import argparse
import logging
from typing import List, Mapping, Optional, Sequence, TextIO

from opentelemetry.sdk.trace.export import SpanExporter

from pfeil import __version__
from pfeil.config import load_config
from pfeil.errors import CommandError, ConfigError, InitializationError, ValidationError
from pfeil.invocation import emit_span
from pfeil.log import configure_logging
from pfeil.tags import split_tag_options
from pfeil.tracer.provider import TracerProvider

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_INTERRUPTED = 130

DESCRIPTION = """\
pfeil sends one tracing span to a Jaeger collector.

A service name must be set via --service/-s or JAEGER_SERVICE_NAME. The span
operation name must be provided as the OPERATION argument. Use the following
environment variables to control the span:

  TRACE_ID       uber-trace-id, taken from a parent process or a previous
                 pfeil run, e.g.
                 "13df7cb5f11aa574:13df7cb5f11aa574:0000000000000000:1"
  TRACE_START    timestamp in Unix date format to record as the span start

Tags can be provided as key=value pairs with the --tag/-t option. The new trace
ID is printed to stdout, without a newline, so it can be used as the parent
of the next span.

If CMD and ARGS are given, CMD is run with ARGS in a subprocess that shares
stdin, stdout and stderr. Its exit code is added as tag exit_code; if it is
nonzero, error=true is set as well. Options go before CMD; use -- to
start a command whose name begins with a dash.
"""

EPILOG = """\
Use the following environment variables to configure the tracer:

  JAEGER_SERVICE_NAME       The service name (overridden by --service).
  JAEGER_ENDPOINT           The OTLP/HTTP traces URL of the collector, e.g.
                            http://jaeger-collector:4318/v1/traces.
                            If set, the agent host/port are ignored.
  JAEGER_AGENT_HOST         Host of the OTLP/HTTP receiver (default localhost).
  JAEGER_AGENT_PORT         Port of the OTLP/HTTP receiver (default 4318).
  JAEGER_USER               User for basic auth with the collector.
  JAEGER_PASSWORD           Password for basic auth with the collector.
  JAEGER_AUTH_TOKEN         Bearer token for the collector.
  JAEGER_SAMPLER_TYPE       The sampler type: remote, const, probabilistic,
                            ratelimiting (default remote). See -y and -n to
                            conveniently set const sampling.
  JAEGER_SAMPLER_PARAM      The sampler parameter (number).
  JAEGER_TAGS               Process tags, "k1=v1,k2=${ENV_VAR:default}".
  JAEGER_TRACEID_128BIT     Generate 128-bit trace IDs (default false).
  JAEGER_DISABLED           Do not export spans (default false).
  JAEGER_REPORTER_LOG_SPANS Log every reported span (default false).
  JAEGER_REPORTER_TIMEOUT   Export timeout in seconds (default 10).
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pfeil",
        usage="%(prog)s [OPTS] OPERATION [CMD [ARGS...]]",
        description=DESCRIPTION,
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="enable verbose/debug logging",
    )
    parser.add_argument(
        "-y", "--sample", action="store_true",
        help="always sample new trace (sets sampler type const, param 1)",
    )
    parser.add_argument(
        "-n", "--nosample", action="store_true",
        help="never sample new trace (overrides -y, sets sampler param 0)",
    )
    parser.add_argument(
        "-s", "--service", default="",
        help="service name for trace, overrides JAEGER_SERVICE_NAME",
    )
    parser.add_argument(
        "-t", "--tag", dest="tags", action="append", default=[], metavar="KEY=VALUE",
        help='tag to include in span; comma-separate ("k1=v1,k2=v2") or repeat the option',
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("operation", nargs="?", help="operation name of the span")
    parser.add_argument(
        "command", nargs=argparse.REMAINDER, metavar="CMD [ARGS...]",
        help="command to run as a subprocess",
    )
    return parser


FLAG_SHORTS = "vyn"
VALUE_SHORTS = "st"
VALUE_LONGS = ("--service", "--tag")


def _option_takes_value(token: str) -> bool:
    """Whether an option token needs the following argument as its value."""
    if token.startswith("--"):
        return token in VALUE_LONGS
    for index, char in enumerate(token[1:], start=1):
        if char in VALUE_SHORTS:
            # -t or -vt take the next argument, -tk=v carries its own
            return index == len(token) - 1
        if char not in FLAG_SHORTS:
            return False
    return False


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """
    Parse the command line.

    Options may also follow OPERATION: they are read up to the first
    argument that is not an option, or up to ``--``, which is dropped.
    Everything after that is the command.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    command = list(args.command)
    options: List[str] = []
    while command and command[0].startswith("-") and command[0] != "-":
        token = command.pop(0)
        if token == "--":
            break
        options.append(token)
        if _option_takes_value(token) and command:
            options.append(command.pop(0))
    if options:
        parser.parse_args([*options, args.operation], namespace=args)
    args.command = command
    return args


def main(
    argv: Optional[Sequence[str]] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
    stdout: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None,
    span_exporter: Optional[SpanExporter] = None,
) -> int:
    """
    Run pfeil and return the process exit code.

    Args:
        argv: arguments without the program name, defaults to sys.argv[1:]
        environ: environment to read, defaults to os.environ
        stdout: stream for the context token
        stderr: stream for log output
        span_exporter: exporter replacing the configured OTLP exporter
    """
    args = parse_args(argv)
    configure_logging(args.verbose, stream=stderr)

    if not args.operation:
        logger.error("error: operation name argument must be set")
        return EXIT_FATAL

    try:
        config = load_config(environ)
    except ConfigError as e:
        logger.error("error loading tracer config from environment: %s", e)
        return EXIT_FATAL
    config = config.with_overrides(
        service=args.service, sample=args.sample, nosample=args.nosample
    )

    try:
        config.validate()
        provider = TracerProvider.from_config(config, exporter=span_exporter)
    except (ConfigError, InitializationError) as e:
        logger.error("could not initialize tracer: %s", e)
        return EXIT_FATAL

    try:
        with provider:
            emit_span(
                provider.get_tracer(),
                args.operation,
                command=args.command,
                tags=split_tag_options(args.tags),
                environ=environ,
                stdout=stdout,
            )
    except ValidationError as e:
        logger.error("error: %s", e)
        return EXIT_FATAL
    except InitializationError as e:
        logger.error("could not initialize tracer: %s", e)
        return EXIT_FATAL
    except CommandError as e:
        logger.error("%s", e)
        return EXIT_FATAL
    except KeyboardInterrupt:
        logger.error("interrupted")
        return EXIT_INTERRUPTED
    return EXIT_OK
