"""
Transcript and detection data produced by external collaborators.

Field names in to_dict/from_dict follow the persisted project format
(camelCase), so transcripts and detections round-trip through project files
unchanged.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..editing.intervals import TimeRange


def format_seconds(value: float) -> str:
    """Format a time the way the persisted detection keys spell it (2, 1.5)."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


@dataclass
class TranscriptWord:
    """A single transcribed word with its timing."""
    word: str
    start: float
    end: float
    confidence: float = 1.0
    speaker: Optional[int] = None

    @property
    def range(self) -> TimeRange:
        return TimeRange(self.start, self.end)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "word": self.word,
            "start": self.start,
            "end": self.end,
            "confidence": self.confidence,
        }
        if self.speaker is not None:
            data["speaker"] = self.speaker
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TranscriptWord":
        return cls(
            word=str(data.get("word", "")),
            start=float(data.get("start", 0.0)),
            end=float(data.get("end", 0.0)),
            confidence=float(data.get("confidence", 1.0)),
            speaker=data.get("speaker"),
        )


@dataclass
class TranscriptSegment:
    """A run of words from one speaker."""
    words: List[TranscriptWord] = field(default_factory=list)
    start: float = 0.0
    end: float = 0.0
    speaker: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "words": [w.to_dict() for w in self.words],
            "start": self.start,
            "end": self.end,
        }
        if self.speaker is not None:
            data["speaker"] = self.speaker
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TranscriptSegment":
        return cls(
            words=[TranscriptWord.from_dict(w) for w in data.get("words", [])],
            start=float(data.get("start", 0.0)),
            end=float(data.get("end", 0.0)),
            speaker=data.get("speaker"),
        )


@dataclass
class Transcript:
    segments: List[TranscriptSegment] = field(default_factory=list)
    full_text: str = ""

    @property
    def words(self) -> List[TranscriptWord]:
        """All words in order, across segments."""
        return [w for segment in self.segments for w in segment.words]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "segments": [s.to_dict() for s in self.segments],
            "fullText": self.full_text,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Transcript":
        return cls(
            segments=[TranscriptSegment.from_dict(s) for s in data.get("segments", [])],
            full_text=data.get("fullText", ""),
        )


@dataclass
class Detection:
    """A candidate PII range found by the detection collaborator."""
    text: str
    category: str
    start_index: int
    end_index: int
    start: float
    end: float

    @property
    def key(self) -> str:
        """Identity used to remember which detections are redacted."""
        return f"{format_seconds(self.start)}-{format_seconds(self.end)}-{self.text}"

    @property
    def range(self) -> TimeRange:
        return TimeRange(self.start, self.end)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "category": self.category,
            "startIndex": self.start_index,
            "endIndex": self.end_index,
            "start": self.start,
            "end": self.end,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Detection":
        return cls(
            text=str(data.get("text", "")),
            category=str(data.get("category", "")),
            start_index=int(data.get("startIndex", data.get("startIndexWord", 0))),
            end_index=int(data.get("endIndex", data.get("endIndexWord", 0))),
            start=float(data["start"]),
            end=float(data["end"]),
        )
