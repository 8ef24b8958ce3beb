"""
Redaction planning.

Turns ranges to redact (manual selections, selected words or AI detections)
into one partition edit. Ranges already covered by muted clips are
subtracted first, so re-applying the same detections is a no-op and never
re-splits regions that are already redacted.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Sequence

from ..detection.categories import is_critical_category
from ..detection.locator import word_ranges
from ..detection.models import Detection, TranscriptWord
from .clips import BatchEdit, ClipPartition, RedactionMode
from .intervals import TimeRange, clamp_range, merge_ranges, subtract_range, total_duration
from .timeline import TimelineItem
from ..error_handler import DegenerateRange

logger = logging.getLogger(__name__)


@dataclass
class RedactionPlan:
    """Edit computed for a set of requested redaction ranges."""
    requested: List[TimeRange] = field(default_factory=list)
    merged: List[TimeRange] = field(default_factory=list)
    # Parts of merged not already muted
    new_ranges: List[TimeRange] = field(default_factory=list)
    edit: BatchEdit = field(default_factory=BatchEdit)

    @property
    def is_noop(self) -> bool:
        return not self.new_ranges or self.edit.is_empty

    @property
    def new_duration(self) -> float:
        return total_duration(self.new_ranges)

    def summary(self) -> str:
        lines = [
            "Redaction Plan Summary",
            "=" * 40,
            f"Requested ranges:  {len(self.requested)}",
            f"Merged ranges:     {len(self.merged)}",
            f"New ranges:        {len(self.new_ranges)}",
            f"Newly redacted:    {self.new_duration:.3f}s",
            f"Clips removed:     {len(self.edit.remove_ids)}",
            f"Clips added:       {len(self.edit.add_clips)}",
        ]
        return "\n".join(lines)


def _clamp_all(ranges: Iterable[TimeRange], duration: float) -> List[TimeRange]:
    clamped = []
    for r in ranges:
        try:
            clamped.append(clamp_range(r, duration))
        except DegenerateRange as e:
            logger.debug(f"Dropping range: {e}")
    return clamped


def plan_redactions(
    partition: ClipPartition,
    ranges: Iterable[TimeRange],
    mode: Optional[RedactionMode] = None,
) -> RedactionPlan:
    """
    Plan muting a set of ranges against the current partition.

    Args:
        partition: Partition to plan against (not modified)
        ranges: Ranges to redact, in any order, possibly overlapping
        mode: Redaction mode for newly muted clips (None uses the global default)

    Returns:
        RedactionPlan whose edit mutes only the genuinely new sub-ranges
    """
    requested = list(ranges)
    merged = merge_ranges(_clamp_all(requested, partition.duration))

    already_muted = partition.muted_ranges()
    new_ranges: List[TimeRange] = []
    for candidate in merged:
        new_ranges.extend(subtract_range(candidate, already_muted))

    plan = RedactionPlan(requested=requested, merged=merged, new_ranges=new_ranges)

    if not new_ranges:
        logger.info(f"All {len(merged)} ranges already redacted, nothing to do")
        return plan

    plan.edit = partition.plan_ranges(new_ranges, muted=True, mode=mode)
    logger.info(
        f"Planned redaction: {len(requested)} requested -> {len(merged)} merged "
        f"-> {len(new_ranges)} new ranges ({plan.new_duration:.3f}s)"
    )
    return plan


def apply_plan(partition: ClipPartition, plan: RedactionPlan) -> None:
    """Submit a plan's edit as a single batch."""
    if plan.is_noop:
        return
    partition.apply_edit(plan.edit)


def redact_ranges(
    partition: ClipPartition,
    ranges: Iterable[TimeRange],
    mode: Optional[RedactionMode] = None,
) -> RedactionPlan:
    """Plan and apply in one call."""
    plan = plan_redactions(partition, ranges, mode)
    apply_plan(partition, plan)
    return plan


def _remember(item: TimelineItem, detections: Iterable[Detection]) -> None:
    # Redacted keys must resolve to a detection in item.detections
    known = {d.key for d in item.detections}
    for d in detections:
        if d.key not in known:
            item.detections.append(d)
            known.add(d.key)


def auto_redact(
    item: TimelineItem,
    detections: Sequence[Detection],
    mode: Optional[RedactionMode] = None,
    is_auto_appliable: Callable[[str], bool] = is_critical_category,
) -> RedactionPlan:
    """
    Redact every auto-appliable detection in one batch.

    Keys of the applied detections are added to the item's redacted set,
    including those whose range was already muted.
    """
    chosen = [d for d in detections if is_auto_appliable(d.category)]
    if len(chosen) < len(detections):
        logger.info(f"Auto-redacting {len(chosen)} of {len(detections)} detections")

    plan = redact_ranges(item.partition, [d.range for d in chosen], mode)
    _remember(item, chosen)
    item.redacted_detection_keys.update(d.key for d in chosen)
    return plan


def toggle_detection(
    item: TimelineItem,
    detection: Detection,
    mode: Optional[RedactionMode] = None,
) -> bool:
    """
    Flip one detection between redacted and not redacted.

    Restoring a detection leaves muted whatever part of its range another
    redacted detection still covers.

    Returns:
        True if the detection is redacted afterwards
    """
    key = detection.key
    redact = key not in item.redacted_detection_keys

    if redact:
        edit = item.partition.plan_redaction(detection.range, muted=True, mode=mode)
        item.partition.apply_edit(edit)
        _remember(item, [detection])
        item.redacted_detection_keys.add(key)
    else:
        still_redacted = merge_ranges(
            d.range for d in item.detections
            if d.key != key and d.key in item.redacted_detection_keys
        )
        parts = _clamp_all(subtract_range(detection.range, still_redacted), item.duration)
        item.partition.apply_edit(item.partition.plan_ranges(parts, muted=False))
        item.redacted_detection_keys.discard(key)

    logger.info(f"{'Redacted' if redact else 'Restored'} detection {key!r}")
    return redact


def redact_words(
    item: TimelineItem,
    indices: Iterable[int],
    mode: Optional[RedactionMode] = None,
    words: Optional[Sequence[TranscriptWord]] = None,
) -> RedactionPlan:
    """
    Redact a bulk selection of transcript words.

    Args:
        item: Timeline item whose transcript the indices refer to
        indices: Word indices into the flattened transcript
        mode: Redaction mode for the new clips
        words: Word list to use instead of the item's transcript
    """
    if words is None:
        words = item.transcript.words if item.transcript else []
    return redact_ranges(item.partition, word_ranges(words, indices), mode)
