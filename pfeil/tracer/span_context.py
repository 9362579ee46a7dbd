"""Immutable trace metadata."""

from dataclasses import dataclass

SAMPLED_FLAG = 0x01
DEBUG_FLAG = 0x02


@dataclass(frozen=True)
class TraceContext:
    trace_id: int
    span_id: int
    parent_id: int = 0
    flags: int = SAMPLED_FLAG

    @property
    def sampled(self) -> bool:
        return bool(self.flags & SAMPLED_FLAG)

    @property
    def debug(self) -> bool:
        return bool(self.flags & DEBUG_FLAG)

    @property
    def is_root(self) -> bool:
        return self.parent_id == 0

    def is_valid(self) -> bool:
        return bool(self.trace_id and self.span_id)
