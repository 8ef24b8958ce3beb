"""
Offline rendering of redacted timelines.

Walks every clip of every timeline item and mixes it into one stereo float
buffer: open clips copy source samples, muted clips either stay silent or
add a fixed tone burst. Contributions from items placed at overlapping
times are summed; clipping only happens when the buffer is encoded.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from ..audio.wav import check_frame_count, encode_wav, write_wav
from ..error_handler import SampleRateMismatch, SourceSampleOutOfRange
from .clips import Clip, RedactionMode
from .timeline import TimelineItem

logger = logging.getLogger(__name__)


class RenderState(str, Enum):
    """Lifecycle of one export."""
    IDLE = "idle"
    MIXING = "mixing"
    ENCODING = "encoding"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class RenderSettings:
    """Rendering parameters, passed explicitly to every render."""
    sample_rate: int = 48000
    tone_frequency_hz: float = 1000.0
    tone_amplitude: float = 0.3
    default_mode: RedactionMode = RedactionMode.SILENCE
    strict_bounds: bool = False


@dataclass(frozen=True, eq=False)
class RenderPlacement:
    """
    An immutable view of one timeline item for rendering.

    clips is a snapshot of the item's partition, so later edits to the
    partition cannot change a render in progress. samples are borrowed
    read-only from the decoder.
    """
    offset: float
    duration: float
    clips: Tuple[Clip, ...]
    samples: np.ndarray  # (channels, frames) or (frames,)
    sample_rate: int
    label: str = ""

    @classmethod
    def from_item(cls, item: TimelineItem, samples: np.ndarray, sample_rate: int) -> "RenderPlacement":
        return cls(
            offset=item.start_time,
            duration=item.duration,
            clips=item.partition.clips,
            samples=samples,
            sample_rate=sample_rate,
            label=item.id,
        )

    @property
    def end(self) -> float:
        return self.offset + self.duration


def to_sample(seconds: float, sample_rate: int) -> int:
    return int(round(seconds * sample_rate))


def frames_for_duration(duration: float, sample_rate: int) -> int:
    """Whole frames needed to hold duration seconds (rounded up)."""
    # Round first so 3.3s * 44100 does not become one extra frame of drift
    return int(math.ceil(round(duration * sample_rate, 6)))


def synthesize_tone(
    length: int,
    sample_rate: int,
    frequency: float = 1000.0,
    amplitude: float = 0.3,
    first: int = 0,
) -> np.ndarray:
    """
    Sine samples first..length-1 of a burst whose phase starts at zero.

    Args:
        length: Index one past the last sample
        sample_rate: Sample rate in Hz
        frequency: Tone frequency in Hz
        amplitude: Peak amplitude (fraction of full scale)
        first: Index of the first sample to produce
    """
    t = np.arange(first, length, dtype=np.float64) / sample_rate
    return amplitude * np.sin(2.0 * np.pi * frequency * t)


def _stereo_channels(samples: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Left and right channels; mono sources feed both."""
    samples = np.asarray(samples)
    if samples.ndim == 1:
        return samples, samples
    if samples.shape[0] == 1:
        return samples[0], samples[0]
    return samples[0], samples[1]


class RenderEngine:
    """
    Mixes timeline placements into a stereo buffer and exports WAV files.

    Usage:
        engine = RenderEngine(RenderSettings(sample_rate=48000))
        engine.export([RenderPlacement.from_item(item, samples, 48000)], Path("out.wav"))
    """

    def __init__(self, settings: Optional[RenderSettings] = None):
        self.settings = settings or RenderSettings()
        self.state = RenderState.IDLE

    def mix(self, placements: Sequence[RenderPlacement], duration: Optional[float] = None) -> np.ndarray:
        """
        Mix placements into a new float buffer.

        Args:
            placements: Items to render
            duration: Master timeline duration (defaults to the latest item end)

        Returns:
            float64 array of shape (2, frames), unclipped

        Raises:
            EncodingOverflow: If the duration cannot fit in one WAV file
            SampleRateMismatch: If a source is not at the mix sample rate
            SourceSampleOutOfRange: If strict_bounds is set and a source is
                shorter than its clips
        """
        sample_rate = self.settings.sample_rate
        for placement in placements:
            if placement.sample_rate != sample_rate:
                raise SampleRateMismatch(
                    f"Source {placement.label or '?'} is {placement.sample_rate} Hz, "
                    f"mix is {sample_rate} Hz"
                )

        if duration is None:
            duration = max((p.end for p in placements), default=0.0)

        frames = frames_for_duration(duration, sample_rate)
        check_frame_count(frames)
        output = np.zeros((2, frames), dtype=np.float64)
        logger.info(
            f"Mixing {len(placements)} items into {duration:.3f}s "
            f"({frames} frames @ {sample_rate} Hz)"
        )

        for placement in placements:
            self._mix_placement(output, placement)

        return output

    def _mix_placement(self, output: np.ndarray, placement: RenderPlacement) -> None:
        sample_rate = self.settings.sample_rate
        left, right = _stereo_channels(placement.samples)
        source_frames = left.shape[0]
        output_frames = output.shape[1]

        for clip in placement.clips:
            dest_start = to_sample(placement.offset + clip.start_time, sample_rate)
            dest_end = to_sample(placement.offset + clip.end_time, sample_rate)
            length = dest_end - dest_start
            if length <= 0:
                continue

            # Window of clip-relative indices that land inside the output
            lo = max(0, -dest_start)
            hi = min(length, output_frames - dest_start)

            if not clip.muted:
                src_start = to_sample(clip.start_time, sample_rate)
                available = source_frames - src_start
                if available < length or src_start < 0:
                    self._report_short_source(placement, clip, length, available)
                lo = max(lo, -src_start)
                hi = min(hi, available)
                if hi <= lo:
                    continue
                output[0, dest_start + lo:dest_start + hi] += left[src_start + lo:src_start + hi]
                output[1, dest_start + lo:dest_start + hi] += right[src_start + lo:src_start + hi]
                continue

            mode = clip.resolve_mode(self.settings.default_mode)
            if mode == RedactionMode.SILENCE or hi <= lo:
                continue

            tone = synthesize_tone(
                hi, sample_rate,
                frequency=self.settings.tone_frequency_hz,
                amplitude=self.settings.tone_amplitude,
                first=lo,
            )
            output[0, dest_start + lo:dest_start + hi] += tone
            output[1, dest_start + lo:dest_start + hi] += tone

    def _report_short_source(self, placement: RenderPlacement, clip: Clip, needed: int, available: int):
        message = (
            f"Source {placement.label or '?'} has {max(available, 0)} of {needed} frames "
            f"for clip {clip.start_time:.3f}-{clip.end_time:.3f}s"
        )
        if self.settings.strict_bounds:
            raise SourceSampleOutOfRange(message)
        logger.warning(f"{message}; skipping missing samples")

    def encode(self, buffer: np.ndarray) -> bytes:
        return encode_wav(buffer, self.settings.sample_rate)

    def export(
        self,
        placements: Sequence[RenderPlacement],
        output_path: Path,
        duration: Optional[float] = None,
    ) -> Path:
        """
        Render placements and write a WAV file.

        Either the complete file is written or nothing is; the engine ends
        in DONE or FAILED.
        """
        try:
            self.state = RenderState.MIXING
            buffer = self.mix(placements, duration)

            self.state = RenderState.ENCODING
            path = write_wav(buffer, self.settings.sample_rate, Path(output_path))
        except Exception:
            self.state = RenderState.FAILED
            logger.error(f"Export to {output_path} failed")
            raise

        self.state = RenderState.DONE
        return path


def build_placements(
    items: Iterable[TimelineItem],
    samples_by_media: Dict[str, np.ndarray],
    sample_rate: int,
) -> List[RenderPlacement]:
    """
    Snapshot timeline items for rendering.

    Raises:
        KeyError: If an item's media has no decoded samples
    """
    return [
        RenderPlacement.from_item(item, samples_by_media[item.media_id], sample_rate)
        for item in items
    ]
