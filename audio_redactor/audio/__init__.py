"""Audio decoding and container subpackage."""

from .extractor import decode_audio, get_audio_duration
from .wav import encode_wav, write_wav, read_wav_header

__all__ = ['decode_audio', 'get_audio_duration', 'encode_wav', 'write_wav', 'read_wav_header']
