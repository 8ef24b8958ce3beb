"""Transcript and detection data subpackage."""

from .models import Detection, Transcript, TranscriptSegment, TranscriptWord
from .categories import REDACTION_CATEGORIES, is_critical_category, auto_redact_predicate
from .locator import locate_matches, word_ranges

__all__ = [
    'Detection', 'Transcript', 'TranscriptSegment', 'TranscriptWord',
    'REDACTION_CATEGORIES', 'is_critical_category', 'auto_redact_predicate',
    'locate_matches', 'word_ranges',
]
