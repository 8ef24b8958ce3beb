"""
Timeline items and the media they reference.

A TimelineItem places one media file's clip partition at an offset on the
master timeline and owns its transcript, detections and the set of
detection keys currently redacted.
"""

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from ..detection.models import Detection, Transcript
from .clips import ClipPartition


@dataclass
class MediaFile:
    """A source recording registered with the project."""
    name: str
    path: str
    duration: float
    type: str = "audio"  # audio | video
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "path": self.path,
            "duration": self.duration,
            "type": self.type,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MediaFile":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            path=data.get("path", ""),
            duration=float(data.get("duration", 0.0)),
            type=data.get("type", "audio"),
        )


@dataclass
class TimelineItem:
    """One media file placed on the master timeline."""
    media_id: str
    partition: ClipPartition
    start_time: float = 0.0  # Position on the master timeline in seconds
    transcript: Optional[Transcript] = None
    detections: List[Detection] = field(default_factory=list)
    redacted_detection_keys: Set[str] = field(default_factory=set)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @classmethod
    def for_media(cls, media: MediaFile, start_time: float = 0.0) -> "TimelineItem":
        """Create an item with a single unmuted clip spanning the media."""
        return cls(
            media_id=media.id,
            partition=ClipPartition(media.duration),
            start_time=start_time,
        )

    @property
    def duration(self) -> float:
        return self.partition.duration

    @property
    def end_time(self) -> float:
        return self.start_time + self.duration

    def set_detections(self, detections: List[Detection], redacted_keys: Optional[Set[str]] = None):
        """Replace detections, keeping only redacted keys that still exist."""
        self.detections = list(detections)
        keys = {d.key for d in self.detections}
        if redacted_keys is None:
            redacted_keys = self.redacted_detection_keys
        self.redacted_detection_keys = {k for k in redacted_keys if k in keys}

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "mediaId": self.media_id,
            "startTime": self.start_time,
            "duration": self.duration,
            "clips": self.partition.to_list(),
        }
        if self.transcript is not None:
            data["transcript"] = self.transcript.to_dict()
        if self.detections:
            data["detections"] = [d.to_dict() for d in self.detections]
        if self.redacted_detection_keys:
            data["redactedDetectionKeys"] = sorted(self.redacted_detection_keys)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TimelineItem":
        duration = float(data["duration"])
        transcript = data.get("transcript")
        return cls(
            id=data["id"],
            media_id=data["mediaId"],
            start_time=float(data.get("startTime", 0.0)),
            partition=ClipPartition.from_list(duration, data.get("clips", [])),
            transcript=Transcript.from_dict(transcript) if transcript else None,
            detections=[Detection.from_dict(d) for d in data.get("detections", [])],
            redacted_detection_keys=set(data.get("redactedDetectionKeys", [])),
        )
