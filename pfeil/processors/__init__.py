"""Span processors and samplers."""

from pfeil.processors.sampler import (
    SAMPLER_TYPES,
    JaegerTagsSampler,
    RateLimitingSampler,
    build_sampler,
)

__all__ = [
    "SAMPLER_TYPES",
    "JaegerTagsSampler",
    "RateLimitingSampler",
    "build_sampler",
]
