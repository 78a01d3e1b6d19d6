"""
Interval algebra over half-open time ranges ``[start, end)``.

Pure functions only: no I/O, no session state. Used by session ingestion
to prune and filter overlapping usage timelines.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

ONE_MS = timedelta(milliseconds=1)


def to_ms(delta: timedelta) -> int:
    return delta // ONE_MS


@dataclass(frozen=True, order=True)
class Interval:
    """Half-open time range. Empty or inverted ranges cannot be constructed."""

    start: datetime
    end: datetime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Interval start must be before end ({self.start} >= {self.end})")

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def duration_ms(self) -> int:
        return to_ms(self.duration)


def overlaps(a: Interval, b: Interval) -> bool:
    return a.start < b.end and b.start < a.end


def intersection(a: Interval, b: Interval) -> Optional[Interval]:
    if not overlaps(a, b):
        return None
    return Interval(max(a.start, b.start), min(a.end, b.end))


def subtract(segments: Iterable[Interval], blocker: Interval) -> List[Interval]:
    """Remove ``blocker`` from every segment, keeping the non-empty left/right remnants."""
    remaining = []
    for segment in segments:
        if not overlaps(segment, blocker):
            remaining.append(segment)
            continue
        if segment.start < blocker.start:
            remaining.append(Interval(segment.start, blocker.start))
        if blocker.end < segment.end:
            remaining.append(Interval(blocker.end, segment.end))
    return remaining


def subtract_all(segments: Iterable[Interval], blockers: Iterable[Interval]) -> List[Interval]:
    remaining = list(segments)
    for blocker in blockers:
        if not remaining:
            break
        remaining = subtract(remaining, blocker)
    return remaining


def total_duration_ms(segments: Iterable[Interval]) -> int:
    return sum(segment.duration_ms for segment in segments)
