"""
Tests for audio_redactor/error_handler.py

Tests the error taxonomy, friendly message lookup and the safe_operation
decorator.
"""

import pytest

from audio_redactor.error_handler import (
    DegenerateRange,
    EncodingOverflow,
    InvariantViolation,
    RedactionError,
    SampleRateMismatch,
    SourceSampleOutOfRange,
    UserFriendlyError,
    get_friendly_message,
    handle_error,
    safe_operation,
)


class TestTaxonomy:
    @pytest.mark.parametrize("cls", [
        InvariantViolation, DegenerateRange, SourceSampleOutOfRange,
        SampleRateMismatch, EncodingOverflow,
    ])
    def test_subclasses_redaction_error(self, cls):
        assert issubclass(cls, RedactionError)

    def test_degenerate_range_is_value_error(self):
        assert issubclass(DegenerateRange, ValueError)


class TestUserFriendlyError:
    def test_messages(self):
        err = UserFriendlyError("Nice message", "tech details")
        assert err.user_message == "Nice message"
        assert err.technical_message == "tech details"
        assert str(err) == "tech details"

    def test_technical_defaults_to_user_message(self):
        err = UserFriendlyError("Only message")
        assert err.technical_message == "Only message"


class TestFriendlyMessages:
    def test_invariant_violation(self):
        title, message = get_friendly_message(InvariantViolation("gap at 2.0s"))
        assert title == "Redaction not applied"
        assert "gap at 2.0s" in message

    def test_degenerate_range(self):
        title, _ = get_friendly_message(DegenerateRange("empty"))
        assert title == "Invalid time range"

    def test_overflow(self):
        title, _ = get_friendly_message(EncodingOverflow("too big"))
        assert title == "Export too large"

    def test_file_not_found(self):
        title, message = get_friendly_message(FileNotFoundError(2, "No such file", "/x/y.json"))
        assert title == "File not found"
        assert "/x/y.json" in message

    def test_missing_item(self):
        title, message = get_friendly_message(KeyError("item-1"))
        assert title == "Not found"
        assert "item-1" in message

    def test_ffmpeg_string_match(self):
        title, _ = get_friendly_message(RuntimeError("Failed to decode audio with FFmpeg: boom"))
        assert title == "Audio decoding error"

    def test_unknown_error(self):
        title, message = get_friendly_message(RuntimeError("weird"))
        assert title == "Something went wrong"
        assert "weird" in message

    def test_handle_error_logs(self, caplog):
        title, _ = handle_error(SampleRateMismatch("44100 vs 48000"), "export")
        assert title == "Sample rate mismatch"
        assert "Error in export" in caplog.text


class TestSafeOperation:
    def test_passes_through_result(self):
        @safe_operation("test")
        def ok():
            return 42
        assert ok() == 42

    def test_wraps_exceptions(self):
        @safe_operation("redact")
        def boom():
            raise DegenerateRange("start after end")

        with pytest.raises(UserFriendlyError) as exc_info:
            boom()
        assert exc_info.value.user_message.startswith("Invalid time range")
        assert exc_info.value.technical_message == "start after end"
        assert isinstance(exc_info.value.__cause__, DegenerateRange)

    def test_friendly_errors_untouched(self):
        original = UserFriendlyError("already friendly")

        @safe_operation()
        def fail():
            raise original

        with pytest.raises(UserFriendlyError) as exc_info:
            fail()
        assert exc_info.value is original
