"""
Tests for audio_redactor/detection

Tests transcript and detection models, the category catalog and locating
detector matches in transcript words.
"""

import pytest

from audio_redactor.detection.categories import (
    REDACTION_CATEGORIES,
    auto_redact_predicate,
    find_subcategory,
    get_all_subcategory_ids,
    get_category_label,
    get_critical_subcategory_ids,
    is_critical_category,
)
from audio_redactor.detection.locator import (
    find_text_occurrences,
    locate_matches,
    normalize_word,
    word_ranges,
)
from audio_redactor.detection.models import Detection, Transcript, TranscriptWord, format_seconds
from audio_redactor.editing.intervals import TimeRange


def words_of(text, step=0.5):
    return [
        TranscriptWord(w, i * step, (i + 1) * step)
        for i, w in enumerate(text.split())
    ]


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------

class TestDetection:
    @pytest.mark.parametrize("value,expected", [
        (2.0, "2"),
        (0, "0"),
        (1.5, "1.5"),
        (12.34, "12.34"),
    ])
    def test_format_seconds(self, value, expected):
        assert format_seconds(value) == expected

    def test_key(self):
        d = Detection("John Smith", "full-names", 3, 4, 2.0, 3.5)
        assert d.key == "2-3.5-John Smith"

    def test_range(self):
        d = Detection("John", "first-names", 0, 0, 1.0, 1.5)
        assert d.range == TimeRange(1.0, 1.5)

    def test_from_dict(self):
        d = Detection.from_dict({
            "text": "555-1234", "category": "phone-numbers",
            "startIndex": 7, "endIndex": 9, "start": 4, "end": 6.25,
        })
        assert d.start_index == 7
        assert d.end == 6.25
        assert d.key == "4-6.25-555-1234"

    def test_from_dict_accepts_word_index_keys(self):
        d = Detection.from_dict({
            "text": "x", "category": "ssn", "startIndexWord": 2, "endIndexWord": 3,
            "start": 1, "end": 2,
        })
        assert (d.start_index, d.end_index) == (2, 3)

    def test_to_dict_round_trip(self):
        d = Detection("John", "first-names", 0, 0, 1.0, 1.5)
        assert Detection.from_dict(d.to_dict()) == d


class TestTranscript:
    def test_words_flatten_segments(self):
        transcript = Transcript.from_dict({
            "segments": [
                {"words": [{"word": "hi", "start": 0, "end": 0.4}], "start": 0, "end": 0.4},
                {"words": [{"word": "there", "start": 0.5, "end": 0.9, "speaker": 1}],
                 "start": 0.5, "end": 0.9, "speaker": 1},
            ],
            "fullText": "hi there",
        })
        assert [w.word for w in transcript.words] == ["hi", "there"]
        assert transcript.words[1].speaker == 1
        assert transcript.to_dict()["fullText"] == "hi there"


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------

class TestCategories:
    def test_catalog_ids_unique(self):
        ids = get_all_subcategory_ids()
        assert len(ids) == len(set(ids))
        assert len(REDACTION_CATEGORIES) == 8

    def test_critical_set(self):
        assert set(get_critical_subcategory_ids()) == {
            "full-names", "first-names", "last-names", "phone-numbers",
            "physical-addresses", "license-plates", "ssn", "drivers-license",
            "birth-dates",
        }

    def test_is_critical(self):
        assert is_critical_category("ssn")
        assert not is_critical_category("email-addresses")
        assert not is_critical_category("unknown")

    def test_labels(self):
        assert get_category_label("ssn") == "Social Security Numbers"
        assert get_category_label("unknown") == "unknown"
        assert find_subcategory("unknown") is None

    def test_predicate_defaults_to_critical(self):
        predicate = auto_redact_predicate()
        assert predicate("full-names")
        assert not predicate("email-addresses")

    def test_predicate_with_explicit_categories(self):
        predicate = auto_redact_predicate(["email-addresses"])
        assert predicate("email-addresses")
        assert not predicate("full-names")


# ---------------------------------------------------------------------------
# Locator
# ---------------------------------------------------------------------------

class TestLocator:
    def test_normalize(self):
        assert normalize_word("Smith,") == "smith"
        assert normalize_word("O'Brien") == "obrien"

    def test_find_phrase(self):
        words = words_of("my name is John Smith.")
        assert find_text_occurrences(words, "john smith") == [(3, 4)]

    def test_find_every_occurrence(self):
        words = words_of("John said John")
        assert find_text_occurrences(words, "John") == [(0, 0), (2, 2)]

    def test_find_nothing(self):
        assert find_text_occurrences(words_of("hello"), "") == []
        assert find_text_occurrences(words_of("hello"), "bye") == []

    def test_locate_matches(self):
        words = words_of("call 555 1234 now")
        detections = locate_matches(words, [
            {"text": "555 1234", "category": "phone-numbers"},
            {"text": "missing", "category": "ssn"},
        ])
        assert len(detections) == 1
        d = detections[0]
        assert (d.start_index, d.end_index) == (1, 2)
        assert (d.start, d.end) == (0.5, 1.5)
        assert d.category == "phone-numbers"

    def test_word_ranges(self):
        words = words_of("a b c")
        assert word_ranges(words, [2, 0, 0, 7]) == [TimeRange(0.0, 0.5), TimeRange(1.0, 1.5)]

    def test_word_ranges_skip_zero_length_words(self):
        words = [TranscriptWord("uh", 1.0, 1.0)]
        assert word_ranges(words, [0]) == []
