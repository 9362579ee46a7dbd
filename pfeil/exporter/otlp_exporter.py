"""OTLP/HTTP exporter setup for Jaeger collectors."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter

if TYPE_CHECKING:
    from pfeil.config import TracerConfig

logger = logging.getLogger(__name__)


def build_otlp_exporter(config: "TracerConfig") -> OTLPSpanExporter:
    """
    Create the OTLP/HTTP span exporter for a configuration.

    Jaeger collectors accept OTLP natively on ``/v1/traces``. When neither an
    endpoint nor an agent host/port is configured, the exporter falls back to
    its own default, which honours the ``OTEL_EXPORTER_OTLP_*`` variables.
    """
    endpoint = config.collector_endpoint()
    headers = config.headers()
    logger.debug("exporting spans to %s", endpoint or "default OTLP endpoint")
    return OTLPSpanExporter(
        endpoint=endpoint,
        headers=headers or None,
        timeout=config.timeout,
    )
