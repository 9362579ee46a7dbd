"""Sampling decisions for new traces, following Jaeger's sampler types."""

from __future__ import annotations

import logging
import threading
import time
from typing import Optional, Sequence, TYPE_CHECKING

from opentelemetry.context import Context
from opentelemetry.sdk.trace.sampling import (
    ALWAYS_OFF,
    ALWAYS_ON,
    Decision,
    ParentBased,
    Sampler,
    SamplingResult,
    TraceIdRatioBased,
)
from opentelemetry.trace import Link, SpanKind, get_current_span
from opentelemetry.trace.span import TraceState
from opentelemetry.util.types import Attributes

from pfeil.errors import ConfigError

if TYPE_CHECKING:
    from pfeil.config import TracerConfig

logger = logging.getLogger(__name__)

SAMPLER_TYPE_CONST = "const"
SAMPLER_TYPE_PROBABILISTIC = "probabilistic"
SAMPLER_TYPE_RATE_LIMITING = "ratelimiting"
SAMPLER_TYPE_REMOTE = "remote"

SAMPLER_TYPES = (
    SAMPLER_TYPE_CONST,
    SAMPLER_TYPE_PROBABILISTIC,
    SAMPLER_TYPE_RATE_LIMITING,
    SAMPLER_TYPE_REMOTE,
)

# Initial probability used by Jaeger clients before remote sampling loads
DEFAULT_REMOTE_SAMPLING_RATE = 0.001


class RateLimitingSampler(Sampler):
    """
    Token bucket sampler admitting up to ``max_traces_per_second`` traces.

    The bucket starts full with ``max(max_traces_per_second, 1)`` credits.
    """

    def __init__(self, max_traces_per_second: float) -> None:
        if max_traces_per_second < 0:
            raise ValueError("max_traces_per_second must not be negative")
        self.max_traces_per_second = max_traces_per_second
        self._max_balance = max(max_traces_per_second, 1.0)
        self._balance = self._max_balance
        self._last_tick = time.monotonic()
        self._lock = threading.Lock()

    def _check_credit(self) -> bool:
        with self._lock:
            now = time.monotonic()
            elapsed = now - self._last_tick
            self._last_tick = now
            self._balance = min(
                self._max_balance,
                self._balance + elapsed * self.max_traces_per_second,
            )
            if self._balance >= 1.0:
                self._balance -= 1.0
                return True
            return False

    def should_sample(
        self,
        parent_context: Optional[Context],
        trace_id: int,
        name: str,
        kind: Optional[SpanKind] = None,
        attributes: Attributes = None,
        links: Optional[Sequence[Link]] = None,
        trace_state: Optional[TraceState] = None,
    ) -> SamplingResult:
        decision = Decision.RECORD_AND_SAMPLE if self._check_credit() else Decision.DROP
        parent_state = get_current_span(parent_context).get_span_context().trace_state
        return SamplingResult(decision, trace_state=parent_state)

    def get_description(self) -> str:
        return f"RateLimitingSampler{{{self.max_traces_per_second}}}"


class JaegerTagsSampler(Sampler):
    """
    Delegating sampler that records ``sampler.type`` and ``sampler.param``
    on sampled root spans, as Jaeger clients do.
    """

    def __init__(self, delegate: Sampler, sampler_type: str, param: float) -> None:
        self.delegate = delegate
        self.sampler_type = sampler_type
        self.param = param

    def should_sample(
        self,
        parent_context: Optional[Context],
        trace_id: int,
        name: str,
        kind: Optional[SpanKind] = None,
        attributes: Attributes = None,
        links: Optional[Sequence[Link]] = None,
        trace_state: Optional[TraceState] = None,
    ) -> SamplingResult:
        result = self.delegate.should_sample(
            parent_context, trace_id, name, kind, attributes, links, trace_state
        )
        if not result.decision.is_sampled():
            return result
        merged = dict(result.attributes or {})
        merged["sampler.type"] = self.sampler_type
        merged["sampler.param"] = str(self.param)
        return SamplingResult(result.decision, merged, result.trace_state)

    def get_description(self) -> str:
        return f"JaegerTagsSampler{{{self.delegate.get_description()}}}"


def _root_sampler(sampler_type: str, param: Optional[float]) -> Sampler:
    if sampler_type == SAMPLER_TYPE_CONST:
        # Jaeger treats any non-zero const parameter as "always"
        if param is None:
            param = 1.0
        return JaegerTagsSampler(ALWAYS_ON if param else ALWAYS_OFF, sampler_type, param)

    if sampler_type == SAMPLER_TYPE_PROBABILISTIC:
        if param is None:
            param = DEFAULT_REMOTE_SAMPLING_RATE
        if not 0.0 <= param <= 1.0:
            raise ConfigError(
                "probabilistic sampler param must be between 0.0 and 1.0",
                {"param": param},
            )
        return JaegerTagsSampler(TraceIdRatioBased(param), sampler_type, param)

    if sampler_type == SAMPLER_TYPE_RATE_LIMITING:
        if param is None:
            param = 1.0
        if param < 0:
            raise ConfigError(
                "ratelimiting sampler param must not be negative", {"param": param}
            )
        return JaegerTagsSampler(RateLimitingSampler(param), sampler_type, param)

    if sampler_type == SAMPLER_TYPE_REMOTE:
        if param is None:
            param = DEFAULT_REMOTE_SAMPLING_RATE
        if not 0.0 <= param <= 1.0:
            raise ConfigError(
                "remote sampler initial param must be between 0.0 and 1.0",
                {"param": param},
            )
        logger.debug(
            "remote sampling is not supported, using initial probabilistic sampler with param %s",
            param,
        )
        return JaegerTagsSampler(
            TraceIdRatioBased(param), SAMPLER_TYPE_PROBABILISTIC, param
        )

    raise ConfigError(
        "unknown sampler type", {"type": sampler_type, "supported": ", ".join(SAMPLER_TYPES)}
    )


def build_sampler(config: "TracerConfig") -> Sampler:
    """
    Build the sampler for a configuration.

    The configured sampler only decides for new traces; a span with an
    inbound parent follows the parent's sampled flag.
    """
    return ParentBased(root=_root_sampler(config.sampler_type, config.sampler_param))
