"""Tests for reading TRACE_ID/TRACE_START and writing the context token."""

import io
import logging
from datetime import datetime, timedelta, timezone

import pytest

from pfeil.context.environment import (
    InboundContext,
    read_trace_environment,
    write_trace_context,
)
from pfeil.errors import ValidationError
from pfeil.tracer.span_context import TraceContext
from pfeil.utils.helpers import datetime_to_ns, parse_unix_date


@pytest.fixture(autouse=True)
def debug_logging(caplog):
    caplog.set_level(logging.DEBUG, logger="pfeil")


def test_empty_environment_starts_root_now(caplog):
    inbound = read_trace_environment({})

    assert inbound == InboundContext(parent=None, start_time=None)
    assert "no TRACE_ID found in env, starting new trace" in caplog.text
    assert "no TRACE_START found in env, using now" in caplog.text


def test_trace_id_is_decoded(caplog):
    inbound = read_trace_environment(
        {"TRACE_ID": "13df7cb5f11aa574:13df7cb5f11aa574:0000000000000000:1"}
    )

    assert inbound.parent == TraceContext(
        trace_id=0x13DF7CB5F11AA574, span_id=0x13DF7CB5F11AA574, parent_id=0, flags=1
    )
    assert "found TRACE_ID 13df7cb5f11aa574" in caplog.text


def test_malformed_trace_id_is_treated_as_absent(caplog):
    inbound = read_trace_environment({"TRACE_ID": "garbage"})

    assert inbound.parent is None
    assert "error extracting trace context" in caplog.text
    assert all(record.levelno == logging.DEBUG for record in caplog.records)


def test_trace_start_is_decoded():
    inbound = read_trace_environment({"TRACE_START": "Mon Jan  2 15:04:05 UTC 2006"})
    assert inbound.start_time == datetime(2006, 1, 2, 15, 4, 5, tzinfo=timezone.utc)


def test_malformed_trace_start_falls_back_to_now(caplog):
    inbound = read_trace_environment({"TRACE_START": "yesterday"})

    assert inbound.start_time is None
    assert "error parsing TRACE_START" in caplog.text


class TestParseUnixDate:
    def test_single_space_day(self):
        assert parse_unix_date("Tue Mar 14 09:26:53 GMT 2023") == datetime(
            2023, 3, 14, 9, 26, 53, tzinfo=timezone.utc
        )

    def test_unknown_zone_has_zero_offset(self):
        parsed = parse_unix_date("Mon Jan  2 15:04:05 XYZT 2006")
        assert parsed.utcoffset() == timedelta(0)

    @pytest.mark.parametrize(
        "value",
        [
            "",
            "2006-01-02T15:04:05Z",
            "Mon Jan 2 15:04:05 2006",
            "Mon Foo 2 15:04:05 UTC 2006",
            "Mon Jan 32 15:04:05 UTC 2006",
            "Mon Jan 2 25:04:05 UTC 2006",
        ],
    )
    def test_malformed(self, value):
        with pytest.raises(ValidationError):
            parse_unix_date(value)

    def test_datetime_to_ns(self):
        value = datetime(2006, 1, 2, 15, 4, 5, 250000, tzinfo=timezone.utc)
        assert datetime_to_ns(value) == 1136214245_250000000


class _FakeSpan:
    context = TraceContext(trace_id=0xABC, span_id=0x1, parent_id=0x2, flags=1)


def test_write_trace_context_has_no_newline():
    out = io.StringIO()
    token = write_trace_context(_FakeSpan(), out)

    assert token == "0000000000000abc:0000000000000001:0000000000000002:1"
    assert out.getvalue() == token
