"""
16-bit PCM WAV encoding.

The rendered float buffer is clamped to [-1, 1], scaled asymmetrically
(32768 below zero, 32767 above) and written as interleaved little-endian
int16 frames after a canonical 44-byte RIFF header. Identical buffers
always produce identical bytes.
"""

import logging
import os
import struct
import tempfile
from dataclasses import dataclass
from pathlib import Path

import numpy as np

from ..error_handler import EncodingOverflow

logger = logging.getLogger(__name__)

HEADER_SIZE = 44
NUM_CHANNELS = 2
BITS_PER_SAMPLE = 16
BLOCK_ALIGN = NUM_CHANNELS * (BITS_PER_SAMPLE // 8)
FORMAT_PCM = 1

# RIFF chunk sizes are unsigned 32-bit
MAX_RIFF_SIZE = 0xFFFFFFFF

_HEADER = struct.Struct("<4sI4s4sIHHIIHH4sI")


@dataclass(frozen=True)
class WavHeader:
    format_tag: int
    channels: int
    sample_rate: int
    byte_rate: int
    block_align: int
    bits_per_sample: int
    data_size: int

    @property
    def frame_count(self) -> int:
        return self.data_size // self.block_align


def check_frame_count(frame_count: int) -> int:
    """
    Make sure frame_count stereo frames fit in one RIFF container.

    Returns:
        The data chunk size in bytes

    Raises:
        EncodingOverflow: If the file would exceed the container size limit
    """
    data_size = frame_count * BLOCK_ALIGN
    if HEADER_SIZE - 8 + data_size > MAX_RIFF_SIZE:
        raise EncodingOverflow(
            f"{frame_count} frames ({data_size} bytes) exceed the WAV size limit"
        )
    return data_size


def build_header(sample_rate: int, frame_count: int) -> bytes:
    """Build the 44-byte header for a stereo 16-bit file."""
    data_size = check_frame_count(frame_count)

    return _HEADER.pack(
        b"RIFF",
        HEADER_SIZE - 8 + data_size,
        b"WAVE",
        b"fmt ",
        16,  # fmt chunk size
        FORMAT_PCM,
        NUM_CHANNELS,
        sample_rate,
        sample_rate * BLOCK_ALIGN,  # byte rate
        BLOCK_ALIGN,
        BITS_PER_SAMPLE,
        b"data",
        data_size,
    )


def to_pcm16(buffer: np.ndarray) -> np.ndarray:
    """Convert float samples to int16 with clamping and asymmetric scaling."""
    clipped = np.clip(np.asarray(buffer, dtype=np.float64), -1.0, 1.0)
    scaled = np.where(clipped < 0, clipped * 32768.0, clipped * 32767.0)
    # Exact .5 ties go to the even integer (-1.5 -> -2, -2.5 -> -2)
    return np.round(scaled).astype(np.int16)


def encode_wav(buffer: np.ndarray, sample_rate: int) -> bytes:
    """
    Serialize a stereo float buffer as a WAV file.

    Args:
        buffer: Array of shape (2, frames)
        sample_rate: Sample rate in Hz

    Returns:
        Complete file contents

    Raises:
        ValueError: If the buffer is not stereo
        EncodingOverflow: If the data does not fit a RIFF container
    """
    buffer = np.asarray(buffer)
    if buffer.ndim != 2 or buffer.shape[0] != NUM_CHANNELS:
        raise ValueError(f"Expected a (2, frames) buffer, got shape {buffer.shape}")
    if sample_rate <= 0:
        raise ValueError(f"Invalid sample rate: {sample_rate}")

    frame_count = buffer.shape[1]
    header = build_header(sample_rate, frame_count)

    # Interleave channels: L0 R0 L1 R1 ...
    frames = to_pcm16(buffer).T.astype("<i2")
    return header + frames.tobytes()


def write_wav(buffer: np.ndarray, sample_rate: int, output_path: Path) -> Path:
    """
    Encode and write a WAV file.

    The file is written to a temporary name next to the target and moved into
    place, so a failed export never leaves a partial file.
    """
    output_path = Path(output_path)
    data = encode_wav(buffer, sample_rate)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_name = tempfile.mkstemp(
        prefix=f".{output_path.name}.", suffix=".part", dir=output_path.parent
    )
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(temp_name, output_path)
    except BaseException:
        if os.path.exists(temp_name):
            os.unlink(temp_name)
        raise

    logger.info(
        f"Wrote {output_path.name} ({len(data) / 1024 / 1024:.2f} MB, "
        f"{buffer.shape[1] / sample_rate:.2f}s @ {sample_rate} Hz)"
    )
    return output_path


def read_wav_header(data: bytes) -> WavHeader:
    """
    Parse the canonical 44-byte header written by encode_wav.

    Raises:
        ValueError: If data does not start with a canonical header
    """
    if len(data) < HEADER_SIZE:
        raise ValueError("Data too short for a WAV header")

    (riff, _riff_size, wave, fmt, fmt_size, format_tag, channels, sample_rate,
     byte_rate, block_align, bits, data_tag, data_size) = _HEADER.unpack_from(data)

    if riff != b"RIFF" or wave != b"WAVE" or fmt != b"fmt " or data_tag != b"data" or fmt_size != 16:
        raise ValueError("Not a canonical PCM WAV header")

    return WavHeader(
        format_tag=format_tag,
        channels=channels,
        sample_rate=sample_rate,
        byte_rate=byte_rate,
        block_align=block_align,
        bits_per_sample=bits,
        data_size=data_size,
    )
