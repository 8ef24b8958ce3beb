"""
Audio Redactor
==============

Mark time ranges of audio recordings as redacted (silenced or replaced by a
tone) and export a single WAV file reflecting every redaction.

All processing happens locally; transcription and PII detection results are
consumed as input data.
"""

__version__ = "0.1.0"
__author__ = "Audio Redactor"

# Export key classes for convenience. The editing package loads first so the
# detection models can import its range type.
from .editing import ClipPartition, ProjectFile, RedactionMode, RenderEngine, TimeRange
from .detection import Detection, Transcript
from .config import Config
