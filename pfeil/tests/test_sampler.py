"""Tests for sampler construction."""

import pytest
from opentelemetry.sdk.trace.sampling import Decision

from pfeil.config import TracerConfig
from pfeil.errors import ConfigError
from pfeil.processors.sampler import RateLimitingSampler, build_sampler

TRACE_ID = 0x13DF7CB5F11AA574


def _decide(sampler_type, param):
    sampler = build_sampler(TracerConfig(sampler_type=sampler_type, sampler_param=param))
    return sampler.should_sample(None, TRACE_ID, "op")


@pytest.mark.parametrize(
    "sampler_type, param, sampled",
    [
        ("const", 1.0, True),
        ("const", 0.0, False),
        ("const", None, True),
        ("probabilistic", 1.0, True),
        ("probabilistic", 0.0, False),
        ("ratelimiting", 5.0, True),
        ("remote", 1.0, True),
        ("remote", 0.0, False),
    ],
)
def test_root_decisions(sampler_type, param, sampled):
    assert _decide(sampler_type, param).decision.is_sampled() is sampled


def test_sampled_roots_carry_sampler_tags():
    result = _decide("const", 1.0)
    assert result.attributes["sampler.type"] == "const"
    assert result.attributes["sampler.param"] == "1.0"


def test_remote_falls_back_to_probabilistic():
    result = _decide("remote", 1.0)
    assert result.attributes["sampler.type"] == "probabilistic"


@pytest.mark.parametrize(
    "sampler_type, param",
    [("probabilistic", 1.5), ("probabilistic", -0.1), ("remote", 2.0), ("ratelimiting", -1.0)],
)
def test_invalid_params(sampler_type, param):
    with pytest.raises(ConfigError):
        build_sampler(TracerConfig(sampler_type=sampler_type, sampler_param=param))


def test_unknown_type():
    with pytest.raises(ConfigError):
        build_sampler(TracerConfig(sampler_type="sometimes"))


class TestRateLimitingSampler:
    def test_bucket_starts_full(self):
        sampler = RateLimitingSampler(2.0)
        decisions = [sampler.should_sample(None, TRACE_ID, "op").decision for _ in range(3)]
        assert decisions == [Decision.RECORD_AND_SAMPLE, Decision.RECORD_AND_SAMPLE, Decision.DROP]

    def test_zero_rate_admits_one(self):
        sampler = RateLimitingSampler(0.0)
        assert sampler.should_sample(None, TRACE_ID, "op").decision.is_sampled()
        assert not sampler.should_sample(None, TRACE_ID, "op").decision.is_sampled()

    def test_negative_rate(self):
        with pytest.raises(ValueError):
            RateLimitingSampler(-1.0)
