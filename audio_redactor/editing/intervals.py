"""
Time range algebra.

Pure functions on half-open [start, end) ranges in seconds. Every boundary
comparison in the package goes through this module so that the same
epsilon absorbs floating-point drift from repeated splits everywhere.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List

from ..error_handler import DegenerateRange

logger = logging.getLogger(__name__)

# Boundary tolerance in seconds (1ms)
EPSILON = 0.001


def times_equal(a: float, b: float) -> bool:
    """Check if two boundaries are the same point within EPSILON."""
    return abs(a - b) < EPSILON


def is_significant(length: float) -> bool:
    """Lengths at or below EPSILON are rounding noise, not real ranges."""
    return length > EPSILON


@dataclass(frozen=True)
class TimeRange:
    """A half-open time range in seconds."""
    start: float
    end: float

    @property
    def duration(self) -> float:
        return self.end - self.start

    def __repr__(self) -> str:
        return f"TimeRange({self.start:.3f}-{self.end:.3f}s)"

    def __lt__(self, other: "TimeRange") -> bool:
        return (self.start, self.end) < (other.start, other.end)

    def overlaps(self, other: "TimeRange") -> bool:
        return ranges_overlap(self, other)

    def contains(self, time: float) -> bool:
        """Check if a time point falls within this range."""
        return self.start <= time < self.end

    def covers(self, other: "TimeRange") -> bool:
        """Check if other lies entirely inside this range (within EPSILON)."""
        return (
            other.start > self.start - EPSILON
            and other.end < self.end + EPSILON
        )


def ranges_overlap(a: TimeRange, b: TimeRange) -> bool:
    """
    Check if two ranges share more than EPSILON of time.

    Touching ranges ([1, 2) and [2, 3)) do not overlap, and neither do
    ranges whose contact is below the tolerance.
    """
    return a.start < b.end - EPSILON and b.start < a.end - EPSILON


def merge_ranges(ranges: Iterable[TimeRange]) -> List[TimeRange]:
    """
    Merge overlapping or touching ranges.

    Args:
        ranges: Ranges in any order

    Returns:
        Sorted, pairwise-disjoint, minimal list of ranges. Ranges no longer
        than EPSILON are dropped.
    """
    candidates = sorted(r for r in ranges if is_significant(r.duration))
    if not candidates:
        return []

    merged: List[TimeRange] = [candidates[0]]

    for current in candidates[1:]:
        last = merged[-1]

        if current.start <= last.end + EPSILON:
            if current.end > last.end:
                merged[-1] = TimeRange(last.start, current.end)
        else:
            merged.append(current)

    if len(merged) < len(candidates):
        logger.debug(f"Merged {len(candidates)} ranges into {len(merged)}")

    return merged


def subtract_range(target: TimeRange, covering: List[TimeRange]) -> List[TimeRange]:
    """
    Return the parts of target not covered by any range in covering.

    Args:
        target: Range to subtract from
        covering: Ranges to remove, already merged and sorted

    Returns:
        Uncovered sub-ranges of target, in order
    """
    result: List[TimeRange] = []
    cursor = target.start

    for cover in covering:
        if cover.end <= cursor + EPSILON:
            continue
        if cover.start >= target.end - EPSILON:
            break

        gap_end = min(cover.start, target.end)
        if is_significant(gap_end - cursor):
            result.append(TimeRange(cursor, gap_end))

        cursor = max(cursor, cover.end)
        if cursor >= target.end:
            break

    if is_significant(target.end - cursor):
        result.append(TimeRange(cursor, target.end))

    return result


def clamp_range(target: TimeRange, duration: float) -> TimeRange:
    """
    Clamp a range to [0, duration).

    Raises:
        DegenerateRange: If nothing significant remains after clamping
    """
    start = max(0.0, target.start)
    end = min(duration, target.end)

    if not is_significant(end - start):
        raise DegenerateRange(
            f"Range {target.start:.3f}-{target.end:.3f}s is empty within "
            f"0-{duration:.3f}s"
        )

    return TimeRange(start, end)


def total_duration(ranges: Iterable[TimeRange]) -> float:
    """Sum of range durations."""
    return sum(r.duration for r in ranges)
