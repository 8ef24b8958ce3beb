"""
Project file management for the redaction timeline.

Handles saving/loading project files (JSON), media fingerprinting, and
undo/redo of redaction operations. All redaction entry points live here so
that every change to an item is recorded as one undoable step.
"""

import hashlib
import json
import logging
import os
import tempfile
import time as time_module
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Sequence

import numpy as np

from ..detection.categories import is_critical_category
from ..detection.models import Detection
from ..undo_manager import UndoManager
from .clips import RedactionMode
from .intervals import TimeRange
from .planner import RedactionPlan, auto_redact, redact_ranges, redact_words, toggle_detection
from .renderer import RenderPlacement, build_placements
from .timeline import MediaFile, TimelineItem

logger = logging.getLogger(__name__)

# Project file version
PROJECT_VERSION = "1.0"


def compute_file_fingerprint(file_path: Path, chunk_size: int = 1024 * 1024) -> str:
    """
    Compute a fingerprint for a media file.

    Uses SHA256 of the first 1MB + filesize for fast identification
    without hashing the entire file.
    """
    if not file_path.exists():
        return ""

    hasher = hashlib.sha256()
    file_size = file_path.stat().st_size
    hasher.update(str(file_size).encode())

    with open(file_path, 'rb') as f:
        hasher.update(f.read(chunk_size))

    return hasher.hexdigest()


@dataclass
class ProjectFile:
    """
    A redaction project: registered media and their timeline items.

    Stored as JSON. Items follow the persisted TimelineItem shape
    ({id, mediaId, startTime, duration, clips, transcript?, detections?,
    redactedDetectionKeys?}).
    """
    version: str = PROJECT_VERSION
    media: Dict[str, MediaFile] = field(default_factory=dict)
    items: List[TimelineItem] = field(default_factory=list)
    fingerprints: Dict[str, str] = field(default_factory=dict)

    created_at: float = field(default_factory=time_module.time)
    modified_at: float = field(default_factory=time_module.time)

    # Runtime state (not persisted)
    _undo: UndoManager = field(default_factory=UndoManager, repr=False)
    _dirty: bool = field(default=False, repr=False)

    @classmethod
    def get_project_path(cls, media_path: Path) -> Path:
        """Get the sidecar project path for a media file."""
        return media_path.with_suffix('.redact.json')

    # === Persistence ===

    def to_dict(self) -> Dict:
        return {
            'version': self.version,
            'media': [m.to_dict() for m in self.media.values()],
            'items': [item.to_dict() for item in self.items],
            'fingerprints': self.fingerprints,
            'created_at': self.created_at,
            'modified_at': self.modified_at,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "ProjectFile":
        media = [MediaFile.from_dict(m) for m in data.get('media', [])]
        return cls(
            version=data.get('version', PROJECT_VERSION),
            media={m.id: m for m in media},
            items=[TimelineItem.from_dict(i) for i in data.get('items', [])],
            fingerprints=data.get('fingerprints', {}),
            created_at=data.get('created_at', time_module.time()),
            modified_at=data.get('modified_at', time_module.time()),
        )

    @classmethod
    def load(cls, project_path: Path) -> "ProjectFile":
        """
        Load a project from a JSON file.

        Raises:
            FileNotFoundError: If project file doesn't exist
            json.JSONDecodeError: If file is invalid JSON
            InvariantViolation: If a stored partition is not gapless
        """
        with open(project_path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        project = cls.from_dict(data)

        for media in project.media.values():
            expected = project.fingerprints.get(media.id)
            if expected and media.path:
                current = compute_file_fingerprint(Path(media.path))
                if current and current != expected:
                    logger.warning(f"Media {media.name} has changed since project was saved")

        logger.info(f"Loaded project with {len(project.items)} items from {project_path}")
        return project

    def save(self, project_path: Path) -> Path:
        """Save project to JSON, replacing the old file only once fully written."""
        project_path = Path(project_path)
        self.modified_at = time_module.time()
        payload = json.dumps(self.to_dict(), indent=2)

        project_path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_name = tempfile.mkstemp(
            prefix=f".{project_path.name}.", suffix=".part", dir=project_path.parent
        )
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(payload)
            os.replace(temp_name, project_path)
        except BaseException:
            if os.path.exists(temp_name):
                os.unlink(temp_name)
            raise

        self._dirty = False
        logger.info(f"Saved project with {len(self.items)} items to {project_path}")
        return project_path

    # === Media & Timeline ===

    def add_media(self, path: Path, duration: float, name: Optional[str] = None) -> MediaFile:
        path = Path(path)
        suffix = path.suffix.lower()
        media = MediaFile(
            name=name or path.name,
            path=str(path),
            duration=duration,
            type='video' if suffix in ('.mp4', '.mkv', '.mov', '.avi', '.webm') else 'audio',
        )
        self.media[media.id] = media
        fingerprint = compute_file_fingerprint(path)
        if fingerprint:
            self.fingerprints[media.id] = fingerprint
        self._dirty = True
        return media

    def add_to_timeline(self, media_id: str, start_time: float = 0.0) -> TimelineItem:
        """Place media on the timeline with a single unmuted clip."""
        media = self.media[media_id]
        item = TimelineItem.for_media(media, start_time=start_time)
        self.items.append(item)
        self._dirty = True
        logger.info(f"Added {media.name} to timeline at {start_time:.3f}s")
        return item

    def remove_from_timeline(self, item_id: str) -> TimelineItem:
        item = self.get_item(item_id)
        self.items.remove(item)
        self._undo.forget_item(item_id)
        self._dirty = True
        return item

    def get_item(self, item_id: str) -> TimelineItem:
        for item in self.items:
            if item.id == item_id:
                return item
        raise KeyError(item_id)

    @property
    def timeline_duration(self) -> float:
        """Length of the master timeline."""
        return max((item.end_time for item in self.items), default=0.0)

    def placements(self, samples_by_media: Dict[str, np.ndarray], sample_rate: int) -> List[RenderPlacement]:
        """Snapshot every item for rendering."""
        return build_placements(self.items, samples_by_media, sample_rate)

    # === Redaction ===

    @contextmanager
    def _recorded(self, name: str, item_id: str) -> Iterator[TimelineItem]:
        item = self.get_item(item_id)
        before = item.to_dict()
        yield item
        after = item.to_dict()
        if after != before:
            self._undo.push(name, item_id, before, after)
            self._dirty = True

    def redact(
        self,
        item_id: str,
        start: float,
        end: float,
        mode: Optional[RedactionMode] = None,
        muted: bool = True,
    ) -> None:
        """Mute (or unmute) a range of one item."""
        label = "Redact" if muted else "Restore"
        with self._recorded(f"{label} {start:.2f}-{end:.2f}s", item_id) as item:
            if muted:
                redact_ranges(item.partition, [TimeRange(start, end)], mode)
            else:
                item.partition.apply_redaction(TimeRange(start, end), muted=False)

    def toggle_word(
        self,
        item_id: str,
        start: float,
        end: float,
        mode: Optional[RedactionMode] = None,
    ) -> None:
        with self._recorded(f"Toggle {start:.2f}-{end:.2f}s", item_id) as item:
            item.partition.toggle_range(start, end, mode)

    def redact_words(
        self,
        item_id: str,
        indices: Sequence[int],
        mode: Optional[RedactionMode] = None,
    ) -> RedactionPlan:
        with self._recorded(f"Redact {len(indices)} words", item_id) as item:
            return redact_words(item, indices, mode)

    def set_detections(self, item_id: str, detections: List[Detection]) -> None:
        with self._recorded("Set detections", item_id) as item:
            item.set_detections(detections)

    def auto_redact(
        self,
        item_id: str,
        detections: Sequence[Detection],
        mode: Optional[RedactionMode] = None,
        is_auto_appliable: Callable[[str], bool] = is_critical_category,
    ) -> RedactionPlan:
        with self._recorded(f"Auto-redact {len(detections)} detections", item_id) as item:
            return auto_redact(item, detections, mode, is_auto_appliable)

    def toggle_detection(
        self,
        item_id: str,
        detection: Detection,
        mode: Optional[RedactionMode] = None,
    ) -> bool:
        with self._recorded(f"Toggle '{detection.text}'", item_id) as item:
            return toggle_detection(item, detection, mode)

    def unmute_all(self, item_id: str) -> None:
        with self._recorded("Unmute all", item_id) as item:
            item.partition.unmute_all()
            item.redacted_detection_keys.clear()

    # === Undo/Redo ===

    def _restore(self, item_id: str, state: Dict) -> None:
        restored = TimelineItem.from_dict(state)
        for i, item in enumerate(self.items):
            if item.id == item_id:
                self.items[i] = restored
                self._dirty = True
                return
        raise KeyError(item_id)

    def undo(self) -> bool:
        """Undo the last operation. Returns True if successful."""
        action = self._undo.undo()
        if not action:
            return False
        self._restore(action.item_id, action.before)
        logger.info(f"Undid: {action.name}")
        return True

    def redo(self) -> bool:
        """Redo the last undone operation. Returns True if successful."""
        action = self._undo.redo()
        if not action:
            return False
        self._restore(action.item_id, action.after)
        logger.info(f"Redid: {action.name}")
        return True

    @property
    def can_undo(self) -> bool:
        return self._undo.can_undo()

    @property
    def can_redo(self) -> bool:
        return self._undo.can_redo()

    @property
    def is_dirty(self) -> bool:
        return self._dirty
