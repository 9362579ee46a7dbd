"""Tests for the span lifecycle against an in-memory backend."""

import logging
import time
from datetime import datetime, timezone

import pytest
from opentelemetry.trace import SpanKind, StatusCode

from pfeil.errors import ValidationError
from pfeil.tracer import SpanStatus, TraceContext
from pfeil.utils.helpers import datetime_to_ns

PARENT = TraceContext(trace_id=0x13DF7CB5F11AA574, span_id=0xABC, parent_id=0, flags=1)


def test_root_span(tracer, exporter):
    before = time.time_ns()
    span = tracer.start_span("root-op")
    span.finish()

    (exported,) = exporter.get_finished_spans()
    assert exported.name == "root-op"
    assert exported.parent is None
    assert exported.kind == SpanKind.INTERNAL
    assert exported.attributes["sampler.type"] == "const"
    assert abs(exported.start_time - before) < 5_000_000_000
    assert exported.resource.attributes["service.name"] == "test-service"

    assert span.context.parent_id == 0
    assert span.context.sampled
    assert span.context.trace_id == exported.context.trace_id
    assert span.context.span_id == exported.context.span_id
    # 64-bit trace IDs unless configured otherwise
    assert span.context.trace_id < 2 ** 64


def test_child_span(tracer, exporter):
    span = tracer.start_span("child-op", parent=PARENT)
    span.finish()

    (exported,) = exporter.get_finished_spans()
    assert exported.parent.span_id == PARENT.span_id
    assert exported.parent.is_remote
    assert exported.context.trace_id == PARENT.trace_id
    assert exported.kind == SpanKind.SERVER
    assert exported.attributes["span.kind"] == "server"

    assert span.context.trace_id == PARENT.trace_id
    assert span.context.parent_id == PARENT.span_id
    assert span.context.span_id != PARENT.span_id


def test_child_shares_parent_flags(tracer):
    debug_parent = TraceContext(trace_id=0x1, span_id=0x2, flags=3)
    span = tracer.start_span("child-op", parent=debug_parent)
    span.finish()

    assert span.context.flags == 3
    assert span.context.debug
    assert str(span).endswith(":0000000000000002:3")


def test_start_time(tracer, exporter):
    start = datetime(2006, 1, 2, 15, 4, 5, tzinfo=timezone.utc)
    tracer.start_span("op", start_time=start).finish()

    (exported,) = exporter.get_finished_spans()
    assert exported.start_time == datetime_to_ns(start)


@pytest.mark.parametrize("name", ["", "   "])
def test_empty_operation_name(tracer, exporter, name):
    with pytest.raises(ValidationError):
        tracer.start_span(name)
    assert exporter.get_finished_spans() == ()


def test_tags_are_strings_at_the_backend(tracer, exporter):
    span = tracer.start_span("op")
    span.set_tag("exit_code", 3)
    span.set_tag("error", True)
    span.set_tag("note", "x")
    span.finish()

    assert span.tags == {"exit_code": 3, "error": True, "note": "x"}
    (exported,) = exporter.get_finished_spans()
    assert exported.attributes["exit_code"] == "3"
    assert exported.attributes["error"] == "true"
    assert exported.attributes["note"] == "x"
    assert exported.status.status_code == StatusCode.ERROR


def test_error_tag_can_be_overridden(tracer, exporter):
    span = tracer.start_span("op")
    span.set_tag("error", True)
    span.set_tag("error", "false")
    span.finish()

    (exported,) = exporter.get_finished_spans()
    assert exported.attributes["error"] == "false"
    assert exported.status.status_code == StatusCode.OK


def test_finish_once(tracer, exporter):
    span = tracer.start_span("op")
    span.finish()
    span.finish()
    span.set_tag("late", "ignored")

    assert span.finished
    assert span.duration_ns >= 0
    assert "late" not in span.tags
    assert len(exporter.get_finished_spans()) == 1


def test_with_block_finishes_on_error(tracer, exporter):
    with pytest.raises(RuntimeError):
        with tracer.start_span("op") as span:
            span.set_tag("cmd.cmd", "true")
            raise RuntimeError("boom")

    assert span.finished
    assert span.status == SpanStatus.ERROR
    (exported,) = exporter.get_finished_spans()
    assert exported.attributes["error"] == "true"
    assert exported.attributes["message"] == "boom"
    assert exported.attributes["cmd.cmd"] == "true"
    assert exported.status.status_code == StatusCode.ERROR


def test_unsampled_root(make_provider, exporter, caplog):
    caplog.set_level(logging.DEBUG, logger="pfeil")
    tracer = make_provider(sampler_param=0.0).get_tracer()

    span = tracer.start_span("op")
    span.set_tag("k", "v")
    span.finish()

    assert not span.context.sampled
    assert span.context.is_valid()
    assert exporter.get_finished_spans() == ()
    assert "warning, trace not sampled" in caplog.text


def test_parent_sampling_decision_wins(tracer, exporter):
    unsampled_parent = TraceContext(trace_id=0x1, span_id=0x2, flags=0)
    span = tracer.start_span("op", parent=unsampled_parent)
    span.finish()

    assert not span.context.sampled
    assert exporter.get_finished_spans() == ()


def test_128bit_trace_ids(make_provider):
    tracer = make_provider(traceid_128bit=True).get_tracer()
    span = tracer.start_span("op")
    span.finish()
    assert span.context.trace_id.bit_length() > 64


def test_log_spans(make_provider, caplog):
    caplog.set_level(logging.INFO, logger="pfeil")
    tracer = make_provider(log_spans=True).get_tracer()

    span = tracer.start_span("logged-op")
    span.set_tag("k", "v")
    span.finish()

    assert "reporting span" in caplog.text
    assert "name=logged-op" in caplog.text
    assert "'k': 'v'" in caplog.text


def test_disabled_provider_has_no_exporter():
    from pfeil.config import TracerConfig
    from pfeil.tracer import TracerProvider

    with TracerProvider.from_config(TracerConfig(service_name="svc", disabled=True)) as provider:
        assert provider._export_processors == []
        span = provider.get_tracer().start_span("op")
        span.finish()
        assert span.context.is_valid()


def test_get_tracer_is_cached(make_provider):
    provider = make_provider()
    assert provider.get_tracer() is provider.get_tracer()
    assert provider.get_tracer("other") is not provider.get_tracer()


def test_shutdown_twice(make_provider):
    provider = make_provider()
    provider.shutdown()
    provider.close()
