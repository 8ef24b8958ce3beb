"""
Clip partition for one media item.

A partition is an ordered list of clips that covers [0, duration) with no
gaps and no overlaps. Redactions split clips at range boundaries and flip
their mute state; every mutation goes through batch_apply, which validates
the full partition before swapping it in.
"""

import logging
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..error_handler import DegenerateRange, InvariantViolation
from .intervals import (
    EPSILON,
    TimeRange,
    clamp_range,
    is_significant,
    merge_ranges,
    ranges_overlap,
    times_equal,
)

logger = logging.getLogger(__name__)


class RedactionMode(str, Enum):
    """How a muted clip sounds in the rendered output."""
    TONE = "tone"
    SILENCE = "silence"


def new_clip_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class Clip:
    """A contiguous slice of one media file with its mute state."""
    start_time: float  # seconds, relative to the media file
    end_time: float
    muted: bool = False
    redaction_mode: Optional[RedactionMode] = None  # None uses the global default
    id: str = field(default_factory=new_clip_id)

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

    @property
    def range(self) -> TimeRange:
        return TimeRange(self.start_time, self.end_time)

    def resolve_mode(self, default: RedactionMode) -> RedactionMode:
        return self.redaction_mode or default

    def has_state(self, muted: bool, mode: Optional[RedactionMode]) -> bool:
        # The mode of an unmuted clip is never heard
        if not muted:
            return not self.muted
        return self.muted and self.redaction_mode == mode

    def __repr__(self) -> str:
        state = "muted" if self.muted else "open"
        if self.muted and self.redaction_mode:
            state += f":{self.redaction_mode.value}"
        return f"Clip({self.start_time:.3f}-{self.end_time:.3f}s, {state})"

    def to_dict(self) -> Dict:
        data = {
            "id": self.id,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "muted": self.muted,
        }
        if self.redaction_mode is not None:
            data["redactionMode"] = self.redaction_mode.value
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> "Clip":
        mode = data.get("redactionMode")
        return cls(
            id=data.get("id") or new_clip_id(),
            start_time=float(data["startTime"]),
            end_time=float(data["endTime"]),
            muted=bool(data.get("muted", False)),
            redaction_mode=RedactionMode(mode) if mode else None,
        )


@dataclass
class BatchEdit:
    """Clip ids to remove and clips to add, applied as one step."""
    remove_ids: List[str] = field(default_factory=list)
    add_clips: List[Clip] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.remove_ids and not self.add_clips


def split_clip(
    clip: Clip,
    ranges: Sequence[TimeRange],
    muted: bool,
    mode: Optional[RedactionMode],
) -> List[Clip]:
    """
    Split a clip at every range boundary that falls inside it.

    Pieces inside one of the ranges get the new state, the rest keep the
    clip's own state. Boundaries closer than EPSILON to the clip edges or to
    each other are dropped, so the pieces tile the clip exactly.

    Args:
        clip: Clip to split
        ranges: Merged, sorted ranges
        muted: Mute state for the pieces inside the ranges
        mode: Redaction mode for the pieces inside the ranges
    """
    cuts = [clip.start_time]
    for r in ranges:
        for point in (r.start, r.end):
            if point - cuts[-1] > EPSILON and clip.end_time - point > EPSILON:
                cuts.append(point)
    cuts.append(clip.end_time)

    pieces: List[Clip] = []
    for start, end in zip(cuts, cuts[1:]):
        middle = (start + end) / 2
        inside = any(r.start <= middle < r.end for r in ranges)
        if inside:
            pieces.append(Clip(start, end, muted=muted, redaction_mode=mode))
        else:
            pieces.append(Clip(
                start, end,
                muted=clip.muted,
                redaction_mode=clip.redaction_mode,
            ))
    return pieces


class ClipPartition:
    """
    Gapless, non-overlapping set of clips covering one media file.

    Usage:
        partition = ClipPartition(duration=10.0)
        partition.apply_redaction(TimeRange(2.0, 4.0), muted=True)
        [c.muted for c in partition.clips]  # [False, True, False]
    """

    def __init__(self, duration: float, clips: Optional[Iterable[Clip]] = None):
        if not is_significant(duration):
            raise DegenerateRange(f"Media duration must be positive, got {duration}")

        self.duration = duration

        if clips is None:
            self._clips: Tuple[Clip, ...] = (Clip(0.0, duration),)
        else:
            candidate = tuple(sorted(clips, key=lambda c: c.start_time))
            self._check(candidate)
            self._clips = candidate

    def __repr__(self) -> str:
        return f"ClipPartition({self.duration:.3f}s, {len(self._clips)} clips)"

    def __len__(self) -> int:
        return len(self._clips)

    def __iter__(self):
        return iter(self._clips)

    # === Queries ===

    @property
    def clips(self) -> Tuple[Clip, ...]:
        """Sorted, immutable snapshot of the clips."""
        return self._clips

    def get_clip(self, clip_id: str) -> Clip:
        for clip in self._clips:
            if clip.id == clip_id:
                return clip
        raise KeyError(clip_id)

    def clip_at(self, time: float) -> Optional[Clip]:
        """Get the clip playing at a time point."""
        for clip in self._clips:
            if clip.start_time <= time < clip.end_time:
                return clip
        if self._clips and times_equal(time, self.duration):
            return self._clips[-1]
        return None

    def muted_ranges(self) -> List[TimeRange]:
        """Merged ranges of all muted clips."""
        return merge_ranges(c.range for c in self._clips if c.muted)

    def is_range_muted(self, start: float, end: float) -> bool:
        """Check if [start, end) lies entirely inside muted coverage."""
        target = TimeRange(start, end)
        return any(r.covers(target) for r in self.muted_ranges())

    def validate(self) -> None:
        """Raise InvariantViolation unless the clips partition the duration."""
        self._check(self._clips)

    def _check(self, clips: Sequence[Clip]) -> None:
        if not clips:
            raise InvariantViolation("Partition has no clips")

        ids = [c.id for c in clips]
        if len(set(ids)) != len(ids):
            raise InvariantViolation("Partition has duplicate clip ids")

        for clip in clips:
            if not clip.start_time < clip.end_time:
                raise InvariantViolation(f"Clip {clip.id} has non-positive length: {clip!r}")

        if not times_equal(clips[0].start_time, 0.0):
            raise InvariantViolation(
                f"Partition starts at {clips[0].start_time:.6f}s, expected 0"
            )
        if not times_equal(clips[-1].end_time, self.duration):
            raise InvariantViolation(
                f"Partition ends at {clips[-1].end_time:.6f}s, "
                f"expected {self.duration:.6f}s"
            )

        for prev, nxt in zip(clips, clips[1:]):
            if not times_equal(prev.end_time, nxt.start_time):
                kind = "gap" if nxt.start_time > prev.end_time else "overlap"
                raise InvariantViolation(
                    f"Partition has a {kind} between {prev!r} and {nxt!r}"
                )

    # === Mutation ===

    def batch_apply(self, remove_ids: Iterable[str], add_clips: Iterable[Clip]) -> Tuple[Clip, ...]:
        """
        Remove and add clips in a single step.

        The resulting partition is validated before it replaces the current
        one; on failure the partition is left untouched.

        Returns:
            The new clip snapshot

        Raises:
            InvariantViolation: If an id is unknown or the result is not a
                gapless partition of the duration
        """
        remove = set(remove_ids)
        added = list(add_clips)

        known = {c.id for c in self._clips}
        unknown = remove - known
        if unknown:
            raise InvariantViolation(f"Cannot remove unknown clips: {sorted(unknown)}")

        kept = [c for c in self._clips if c.id not in remove]
        candidate = tuple(sorted(kept + added, key=lambda c: c.start_time))
        self._check(candidate)

        self._clips = candidate
        logger.debug(
            f"Batch applied: -{len(remove)} +{len(added)} -> {len(candidate)} clips"
        )
        return self._clips

    def apply_edit(self, edit: BatchEdit) -> Tuple[Clip, ...]:
        if edit.is_empty:
            return self._clips
        return self.batch_apply(edit.remove_ids, edit.add_clips)

    def plan_ranges(
        self,
        ranges: Sequence[TimeRange],
        muted: bool,
        mode: Optional[RedactionMode] = None,
    ) -> BatchEdit:
        """
        Compute the edit that gives every range the new mute state.

        Args:
            ranges: Disjoint, sorted ranges inside [0, duration)
            muted: New mute state
            mode: Redaction mode for the new state

        Returns:
            One BatchEdit covering all ranges
        """
        edit = BatchEdit()
        if not ranges:
            return edit

        for clip in self._clips:
            touching = [r for r in ranges if ranges_overlap(clip.range, r)]
            if not touching or clip.has_state(muted, mode):
                continue

            edit.remove_ids.append(clip.id)
            edit.add_clips.extend(split_clip(clip, touching, muted, mode))

        return edit

    def plan_redaction(
        self,
        target: TimeRange,
        muted: bool = True,
        mode: Optional[RedactionMode] = None,
    ) -> BatchEdit:
        """Compute the edit for one range (empty if the range is degenerate)."""
        try:
            clamped = clamp_range(target, self.duration)
        except DegenerateRange as e:
            logger.warning(f"Ignoring redaction: {e}")
            return BatchEdit()
        return self.plan_ranges([clamped], muted, mode)

    def apply_redaction(
        self,
        target: TimeRange,
        muted: bool = True,
        mode: Optional[RedactionMode] = None,
    ) -> Tuple[Clip, ...]:
        """
        Give an arbitrary range a new mute state.

        Overlapped clips are replaced by prefix, intersection and suffix
        pieces; clips outside the range keep their identity.
        """
        return self.apply_edit(self.plan_redaction(target, muted, mode))

    def toggle_exact(self, start: float, end: float) -> Optional[Clip]:
        """
        Flip the mute flag of the clip whose bounds are exactly [start, end).

        Returns:
            The flipped clip, or None if no clip matches within EPSILON
        """
        for clip in self._clips:
            if times_equal(clip.start_time, start) and times_equal(clip.end_time, end):
                flipped = replace(clip, muted=not clip.muted)
                self.batch_apply([clip.id], [flipped])
                return flipped
        return None

    def toggle_range(
        self,
        start: float,
        end: float,
        mode: Optional[RedactionMode] = None,
    ) -> Tuple[Clip, ...]:
        """
        Toggle a word or selection.

        An exact clip is flipped in place; otherwise the range takes the
        opposite of the mute state of the clip containing its start.
        """
        if self.toggle_exact(start, end) is not None:
            return self._clips

        containing = self.clip_at(start)
        if containing is None:
            logger.warning(f"No clip at {start:.3f}s to toggle")
            return self._clips

        muted = not containing.muted
        return self.apply_redaction(
            TimeRange(start, end),
            muted=muted,
            mode=mode if muted else containing.redaction_mode,
        )

    def toggle_clip(self, clip_id: str) -> Clip:
        clip = self.get_clip(clip_id)
        flipped = replace(clip, muted=not clip.muted)
        self.batch_apply([clip.id], [flipped])
        return flipped

    def set_clip_mode(self, clip_id: str, mode: Optional[RedactionMode]) -> Clip:
        """Override the redaction mode of one clip (None restores the default)."""
        clip = self.get_clip(clip_id)
        updated = replace(clip, redaction_mode=mode)
        self.batch_apply([clip.id], [updated])
        return updated

    def clear(self, clip_id: str) -> Clip:
        """Unmute one clip without removing its boundaries."""
        clip = self.get_clip(clip_id)
        if not clip.muted:
            return clip
        cleared = replace(clip, muted=False)
        self.batch_apply([clip.id], [cleared])
        return cleared

    def unmute_all(self) -> Tuple[Clip, ...]:
        """Unmute every clip without removing any boundary."""
        muted = [c for c in self._clips if c.muted]
        if not muted:
            return self._clips
        return self.batch_apply(
            [c.id for c in muted],
            [replace(c, muted=False) for c in muted],
        )

    # === Serialization ===

    def to_list(self) -> List[Dict]:
        return [c.to_dict() for c in self._clips]

    @classmethod
    def from_list(cls, duration: float, data: List[Dict]) -> "ClipPartition":
        if not data:
            return cls(duration)
        return cls(duration, [Clip.from_dict(d) for d in data])
