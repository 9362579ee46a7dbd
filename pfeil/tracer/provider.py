"""TracerProvider using the OpenTelemetry SDK."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from opentelemetry.sdk.resources import Resource as OTelResource
from opentelemetry.sdk.trace import SpanProcessor as OTelSpanProcessor
from opentelemetry.sdk.trace import TracerProvider as OTelTracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor, SpanExporter
from opentelemetry.sdk.trace.id_generator import IdGenerator
from opentelemetry.sdk.trace.sampling import Sampler

from pfeil.errors import InitializationError

if TYPE_CHECKING:
    from pfeil.config import TracerConfig
    from pfeil.tracer.tracer import Tracer

logger = logging.getLogger(__name__)

DEFAULT_TRACER_NAME = "pfeil"


class SpanProcessor:
    """
    Base interface for pfeil enrichment processors.

    Enrichment processors run BEFORE the OTel span ends (span is mutable).
    Export processors use OTel's SpanProcessor interface (run AFTER the end).
    """

    def on_end(self, span) -> None:
        """
        Called when a span finishes, before the OTel span ends.

        Args:
            span: pfeil Span instance (still mutable)
        """
        pass

    def shutdown(self) -> None:
        """Shutdown the processor."""
        pass


class TracerProvider:
    """
    Explicit handle on the tracing backend.

    Built once at startup and passed to whatever needs a tracer; nothing is
    registered globally. Use it as a context manager so the exporter is
    flushed and closed on every exit path.
    """

    def __init__(
        self,
        resource: Optional[Dict[str, str]] = None,
        sampler: Optional[Sampler] = None,
        id_generator: Optional[IdGenerator] = None,
    ) -> None:
        """
        Initialize TracerProvider with OpenTelemetry.

        Args:
            resource: Resource attributes dictionary (converted to OTel Resource)
            sampler: OTel sampler, defaults to the SDK default
            id_generator: OTel ID generator, defaults to the SDK default
        """
        otel_resource = OTelResource.create(resource or {})
        self._otel_provider = OTelTracerProvider(
            resource=otel_resource,
            sampler=sampler,
            id_generator=id_generator,
        )

        self.resource = resource or {}

        self._enrichment_processors: List[SpanProcessor] = []
        self._export_processors: List[OTelSpanProcessor] = []

        self._tracers: Dict[str, "Tracer"] = {}
        self._closed = False

    @classmethod
    def from_config(
        cls,
        config: "TracerConfig",
        exporter: Optional[SpanExporter] = None,
    ) -> "TracerProvider":
        """
        Build a provider from a TracerConfig.

        Args:
            config: validated tracer configuration
            exporter: span exporter to use instead of the configured OTLP
                exporter, mostly for tests

        Raises:
            ConfigError: if the sampler settings are invalid
            InitializationError: if the backend cannot be set up
        """
        from pfeil.exporter.otlp_exporter import build_otlp_exporter
        from pfeil.processors.logging_processor import LoggingSpanProcessor
        from pfeil.processors.sampler import build_sampler
        from pfeil.tracer.id_generator import JaegerIdGenerator

        sampler = build_sampler(config)
        try:
            provider = cls(
                resource=config.resource_attributes(),
                sampler=sampler,
                id_generator=JaegerIdGenerator(config.traceid_128bit),
            )
            if exporter is None and not config.disabled:
                exporter = build_otlp_exporter(config)
        except Exception as e:
            raise InitializationError("could not initialize tracer", {"error": e}) from e

        if exporter is not None:
            provider.add_span_processor(SimpleSpanProcessor(exporter))
        else:
            logger.debug("tracer disabled, spans will not be exported")
        if config.log_spans:
            provider.add_span_processor(LoggingSpanProcessor())
        return provider

    def get_tracer(self, name: str = DEFAULT_TRACER_NAME) -> "Tracer":
        """
        Get a tracer by name.

        Args:
            name: Instrumentation scope name

        Returns:
            pfeil Tracer instance (wraps OTel Tracer)
        """
        if name not in self._tracers:
            from pfeil.tracer.tracer import Tracer
            self._tracers[name] = Tracer(self, name)
        return self._tracers[name]

    def add_span_processor(self, processor: Any) -> None:
        """
        Add a span processor.

        OTel processors go to the SDK provider, pfeil processors run as
        enrichment processors.
        """
        if isinstance(processor, OTelSpanProcessor):
            self._otel_provider.add_span_processor(processor)
            self._export_processors.append(processor)
        else:
            self._enrichment_processors.append(processor)

    def shutdown(self) -> None:
        """Flush and shut down all processors and the exporter. Safe to call twice."""
        if self._closed:
            return
        self._closed = True
        self._otel_provider.shutdown()
        for processor in self._enrichment_processors:
            processor.shutdown()

    close = shutdown

    def __enter__(self) -> "TracerProvider":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.shutdown()
        return False
