"""
Error taxonomy and user-facing error messages.

Core modules raise the RedactionError subclasses below; the CLI maps any
exception to a short title and an operator-readable message.
"""

import logging
import traceback
from functools import wraps
from typing import Callable, Tuple

from .logging_config import get_log_file_path

logger = logging.getLogger(__name__)


class RedactionError(Exception):
    """Base class for errors raised by the redaction core."""


class InvariantViolation(RedactionError):
    """A clip partition would no longer cover its media gaplessly."""


class DegenerateRange(RedactionError, ValueError):
    """A requested range is empty or lies outside the media."""


class SourceSampleOutOfRange(RedactionError):
    """Render indices fall outside the decoded source audio."""


class SampleRateMismatch(RedactionError):
    """Source audio is not at the mix sample rate."""


class EncodingOverflow(RedactionError):
    """Rendered audio is too large for the output container."""


class UserFriendlyError(Exception):
    """Exception with a user-friendly message"""
    def __init__(self, user_message: str, technical_message: str = None):
        self.user_message = user_message
        self.technical_message = technical_message or user_message
        super().__init__(self.technical_message)


# Error message mappings
ERROR_MESSAGES = {
    InvariantViolation: lambda e: (
        "Redaction not applied",
        "The redaction could not be applied because it would leave the "
        "timeline inconsistent. Nothing was changed.\n\n"
        f"Details: {e}"
    ),
    DegenerateRange: lambda e: (
        "Invalid time range",
        "The selected range is empty or outside the recording. "
        "Select a range inside the audio and try again."
    ),
    SampleRateMismatch: lambda e: (
        "Sample rate mismatch",
        "A source recording is not at the export sample rate. "
        "Decode it at the export rate and try again.\n\n"
        f"Details: {e}"
    ),
    EncodingOverflow: lambda e: (
        "Export too large",
        "The timeline is too long to fit in a single WAV file. "
        "Shorten the timeline or lower the sample rate."
    ),
    SourceSampleOutOfRange: lambda e: (
        "Source audio too short",
        "The recording is shorter than its timeline clips.\n\n"
        f"Details: {e}"
    ),

    # File errors
    FileNotFoundError: lambda e: (
        "File not found",
        f"The file could not be found. It may have been moved or deleted.\n\n"
        f"Path: {e.filename if hasattr(e, 'filename') else 'Unknown'}"
    ),
    PermissionError: lambda e: (
        "Permission denied",
        "Unable to access this file. Please check that you have permission "
        "to read/write to this location."
    ),
    IsADirectoryError: lambda e: (
        "Invalid file",
        "Expected a file but got a folder. Please select an audio file."
    ),
    KeyError: lambda e: (
        "Not found",
        f"No timeline item or clip with id {e}."
    ),

    "ffmpeg": lambda e: (
        "Audio decoding error",
        "There was a problem decoding the audio. This might happen if:\n\n"
        "• The file is corrupted\n"
        "• The format isn't supported\n"
        "• FFmpeg isn't installed correctly"
    ),

    MemoryError: lambda e: (
        "Out of memory",
        "Your computer ran out of memory while rendering. Try exporting "
        "a shorter timeline or a lower sample rate."
    ),

    "yaml": lambda e: (
        "Settings file error",
        "Your settings file could not be read. Fix or remove it to use defaults."
    ),

    # Disk errors
    OSError: lambda e: (
        "Disk error",
        "Unable to read or write files. Please check:\n\n"
        "• You have enough disk space\n"
        "• The drive isn't disconnected\n"
        "• You have write permission to the output folder"
    ),
}


def get_friendly_message(error: Exception) -> Tuple[str, str]:
    """Get user-friendly title and message for an error"""
    error_str = str(error).lower()

    # Check exact type matches first
    for error_type, msg_func in ERROR_MESSAGES.items():
        if isinstance(error_type, type) and isinstance(error, error_type):
            return msg_func(error)

    # Check string matches in error message (case-insensitive)
    for key, msg_func in ERROR_MESSAGES.items():
        if isinstance(key, str) and key.lower() in error_str:
            return msg_func(error)

    return (
        "Something went wrong",
        f"An unexpected error occurred:\n\n{str(error)[:200]}\n\n"
        "Please try again. If the problem persists, check the log file:\n"
        f"{get_log_file_path()}"
    )


def handle_error(error: Exception, context: str = "") -> Tuple[str, str]:
    """Log error and return friendly message"""
    logger.error(f"Error in {context}: {error}")
    logger.debug(traceback.format_exc())

    return get_friendly_message(error)


def safe_operation(context: str = "operation"):
    """Decorator for safe error handling"""
    def decorator(func: Callable):
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except UserFriendlyError:
                raise  # Already friendly, pass through
            except Exception as e:
                title, message = handle_error(e, context)
                raise UserFriendlyError(f"{title}: {message}", str(e)) from e
        return wrapper
    return decorator
