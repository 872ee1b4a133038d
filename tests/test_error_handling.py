"""
Tests for error bookkeeping, safe cleanup and structured logging.
"""

import logging
from unittest.mock import AsyncMock

import pytest

from jarvis_framework.models.data_models import CaptureErrorCode
from jarvis_framework.utils.error_handling import (
    CaptureError,
    ComponentError,
    ErrorHandler,
    ErrorSeverity,
    safe_cleanup,
)
from jarvis_framework.utils.logging_config import StructuredFormatter, get_logger, setup_logging


class TestErrorHandler:

    def test_severity_outcomes(self):
        handler = ErrorHandler()

        assert handler.handle_error(ComponentError("tts", ErrorSeverity.WARNING, "Voice Unavailable")) is True
        assert handler.handle_error(ComponentError("response", ErrorSeverity.RECOVERABLE, "Processing Error")) is True
        assert handler.handle_error(ComponentError("response", ErrorSeverity.FATAL, "Init failed")) is False

        summary = handler.get_error_summary()
        assert summary['total_errors'] == 3
        assert summary['by_component'] == {'tts': 1, 'response': 2}
        assert summary['by_severity']['fatal'] == 1
        assert len(handler.get_error_history("response")) == 2

    def test_history_is_bounded(self):
        handler = ErrorHandler(max_history=3)
        for i in range(5):
            handler.handle_error(ComponentError("capture", ErrorSeverity.WARNING, str(i)))

        assert [e.message for e in handler.get_error_history()] == ["2", "3", "4"]

    def test_traceback_captured(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError as e:
            error = ComponentError("playback", ErrorSeverity.RECOVERABLE, "Playback Error", exception=e)

        assert "RuntimeError: boom" in error.traceback_str

    def test_capture_error_default_message(self):
        error = CaptureError(CaptureErrorCode.NO_SPEECH)

        assert error.code == CaptureErrorCode.NO_SPEECH
        assert str(error) == CaptureErrorCode.NO_SPEECH.description


class TestSafeCleanup:

    @pytest.mark.asyncio
    async def test_all_cleanups_run(self):
        first = AsyncMock(side_effect=RuntimeError("close failed"))
        first.__name__ = "first"
        second = AsyncMock()
        second.__name__ = "second"

        assert await safe_cleanup(first, second) == 1

        first.assert_awaited_once()
        second.assert_awaited_once()


class TestLogging:

    def test_formatter_columns(self):
        formatter = StructuredFormatter(use_colors=False, use_emojis=False)
        record = logging.LogRecord("jarvis_framework", logging.WARNING, __file__, 1, "Relisten skipped", None, None)
        record.component = "orchestrator"

        line = formatter.format(record)

        assert "WARNING" in line
        assert " orchestrator " in line
        assert line.endswith("| Relisten skipped")

    def test_component_icon(self):
        formatter = StructuredFormatter(use_colors=False, use_emojis=True)
        record = logging.LogRecord("jarvis_framework", logging.INFO, __file__, 1, "listening", None, None)
        record.component = "capture"

        assert "🎤 capture" in formatter.format(record)

    def test_component_logger_tags_records(self, tmp_path):
        log_file = tmp_path / "logs" / "jarvis.log"
        root = setup_logging(level="DEBUG", log_file=log_file, use_colors=False, use_emojis=False)

        get_logger("capture").info("Capture started (session 1)")
        for handler in root.handlers:
            handler.flush()

        content = log_file.read_text()
        assert " capture " in content
        assert "Capture started (session 1)" in content
        for handler in root.handlers:
            handler.close()
        root.handlers = []
