"""
Source audio decoding with ffmpeg.

Decodes any media file ffmpeg can read into a float stereo sample array at
the mix sample rate, ready to be borrowed by the renderer.
"""

import logging
import subprocess
from pathlib import Path

import numpy as np

logger = logging.getLogger(__name__)


def decode_audio(
    media_path: Path,
    sample_rate: int = 48000,
    timeout: int = 600,
) -> np.ndarray:
    """
    Decode a media file to stereo float samples.

    Args:
        media_path: Path to the audio or video file
        sample_rate: Output sample rate in Hz (the renderer's mix rate)
        timeout: Max time to wait for ffmpeg (seconds)

    Returns:
        float32 array of shape (2, frames)

    Raises:
        RuntimeError: If decoding fails
    """
    media_path = Path(media_path)
    logger.info(f"Decoding audio from {media_path.name} at {sample_rate} Hz")

    cmd = [
        'ffmpeg',
        '-nostdin',  # Prevent reading from stdin
        '-v', 'error',
        '-i', str(media_path),
        '-vn',  # No video
        '-f', 'f32le',  # Raw 32-bit float little-endian
        '-acodec', 'pcm_f32le',
        '-ac', '2',
        '-ar', str(sample_rate),
        'pipe:1',
    ]

    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            check=True,
            timeout=timeout,
        )
    except subprocess.CalledProcessError as e:
        stderr = e.stderr.decode(errors="replace") if isinstance(e.stderr, bytes) else e.stderr
        logger.error(f"Audio decoding failed: {stderr}")
        raise RuntimeError(f"Failed to decode audio with ffmpeg: {stderr}")
    except subprocess.TimeoutExpired:
        raise RuntimeError(f"ffmpeg timed out decoding {media_path.name}")

    raw = result.stdout or b""
    usable = len(raw) - len(raw) % 8  # whole stereo frames
    samples = np.frombuffer(raw[:usable], dtype="<f4").reshape(-1, 2).T

    if samples.shape[1] == 0:
        raise RuntimeError(f"No audio decoded from {media_path.name}")

    logger.info(f"Decoded {samples.shape[1] / sample_rate:.2f}s of audio")
    return samples


def get_audio_duration(media_path: Path) -> float:
    """
    Get the duration of a media file in seconds.

    Returns:
        Duration in seconds, or 0.0 if it cannot be determined
    """
    cmd = [
        'ffprobe',
        '-v', 'quiet',
        '-show_entries', 'format=duration',
        '-of', 'default=noprint_wrappers=1:nokey=1',
        str(media_path)
    ]

    try:
        result = subprocess.run(cmd, capture_output=True, text=True, check=True)
        return float(result.stdout.strip())
    except (subprocess.CalledProcessError, FileNotFoundError, ValueError) as e:
        logger.warning(f"Could not get audio duration: {e}")
        return 0.0
