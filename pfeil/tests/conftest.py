"""Shared fixtures: an in-memory backend instead of a Jaeger collector."""

import pytest
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from pfeil.config import TracerConfig
from pfeil.tracer import TracerProvider


class TagRecorder:
    """Stand-in for a Span that only records tags."""

    def __init__(self):
        self.tags = {}

    def set_tag(self, key, value):
        self.tags[key] = value


@pytest.fixture
def exporter():
    return InMemorySpanExporter()


@pytest.fixture
def make_provider(exporter):
    providers = []

    def _make(**overrides):
        settings = {"service_name": "test-service", "sampler_type": "const", "sampler_param": 1.0}
        settings.update(overrides)
        provider = TracerProvider.from_config(TracerConfig(**settings), exporter=exporter)
        providers.append(provider)
        return provider

    yield _make
    for provider in providers:
        provider.shutdown()


@pytest.fixture
def tracer(make_provider):
    return make_provider().get_tracer()


@pytest.fixture
def recorder():
    return TagRecorder()
