"""Trace and span ID generation."""

import random

from opentelemetry.sdk.trace.id_generator import RandomIdGenerator


class JaegerIdGenerator(RandomIdGenerator):
    """
    Random ID generator producing 64-bit trace IDs unless 128-bit IDs are enabled.

    64-bit trace IDs are what Jaeger clients generate by default and keep the
    trace-id field of the context token at 16 hex digits.
    """

    def __init__(self, trace_id_128bit: bool = False) -> None:
        self.trace_id_128bit = trace_id_128bit

    def generate_trace_id(self) -> int:
        if self.trace_id_128bit:
            return super().generate_trace_id()
        trace_id = random.getrandbits(64)
        while trace_id == 0:
            trace_id = random.getrandbits(64)
        return trace_id
