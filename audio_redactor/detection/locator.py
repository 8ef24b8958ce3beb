"""
Map detector text matches onto transcript word timings.

The detector returns the text it flagged; this module finds every place that
text occurs in the word list and turns each occurrence into a Detection with
word indices and a time range.
"""

import logging
import re
from typing import Any, Dict, Iterable, List, Sequence, Tuple

from ..editing.intervals import TimeRange
from .models import Detection, TranscriptWord

logger = logging.getLogger(__name__)

_PUNCTUATION = re.compile(r"[^\w\s]")


def normalize_word(word: str) -> str:
    """Lowercase and strip punctuation for matching."""
    return _PUNCTUATION.sub("", word.lower())


def find_text_occurrences(
    words: Sequence[TranscriptWord],
    text: str,
) -> List[Tuple[int, int]]:
    """
    Find every occurrence of a phrase in the word list.

    Returns:
        (start_index, end_index) pairs, end inclusive
    """
    needle = [w for w in (normalize_word(part) for part in text.split()) if w]
    if not needle:
        return []

    haystack = [normalize_word(w.word) for w in words]
    size = len(needle)
    return [
        (i, i + size - 1)
        for i in range(len(haystack) - size + 1)
        if haystack[i:i + size] == needle
    ]


def locate_matches(
    words: Sequence[TranscriptWord],
    matches: Iterable[Dict[str, Any]],
) -> List[Detection]:
    """
    Turn detector matches ({text, category}) into Detections.

    Matches whose text cannot be found are skipped.
    """
    detections: List[Detection] = []
    match_count = 0

    for match in matches:
        match_count += 1
        text = match.get("text") or ""
        positions = find_text_occurrences(words, text)

        if not positions:
            logger.info(f"Skipping match that couldn't be located: {text!r}")
            continue

        for start_index, end_index in positions:
            detections.append(Detection(
                text=text,
                category=str(match.get("category", "")),
                start_index=start_index,
                end_index=end_index,
                start=words[start_index].start,
                end=words[end_index].end,
            ))

    logger.info(f"Located {len(detections)} occurrences from {match_count} matches")
    return detections


def word_ranges(
    words: Sequence[TranscriptWord],
    indices: Iterable[int],
) -> List[TimeRange]:
    """Time ranges of the selected words (out-of-range indices are ignored)."""
    return [
        words[i].range
        for i in sorted(set(indices))
        if 0 <= i < len(words) and words[i].end > words[i].start
    ]
