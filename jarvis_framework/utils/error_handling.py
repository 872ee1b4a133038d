"""
Structured error handling for conversation components.
"""

import traceback
from collections import Counter, deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Deque, Dict, List, Optional
from datetime import datetime

from ..models.data_models import CaptureErrorCode
from .logging_config import get_logger

logger = get_logger("errors")


class ErrorSeverity(Enum):
    """Error severity levels."""
    WARNING = "warning"          # Log and continue
    RECOVERABLE = "recoverable"  # Turn abandoned, session continues
    FATAL = "fatal"              # Component unusable


class CaptureError(Exception):
    """Speech capture failure carrying a taxonomy code."""

    def __init__(self, code: CaptureErrorCode, message: Optional[str] = None):
        self.code = code
        super().__init__(message or code.description)


class ResponseGenerationError(Exception):
    """Response generator failed or returned something unusable."""


class SynthesisError(Exception):
    """Speech synthesizer failed."""


class PlaybackError(Exception):
    """Audio could not be decoded or played."""


@dataclass
class ComponentError:
    """One failure reported by a conversation component."""
    component: str
    severity: ErrorSeverity
    message: str
    exception: Optional[BaseException] = None
    context: Dict[str, Any] = field(default_factory=dict)
    occurred_at: datetime = field(default_factory=datetime.now)

    @property
    def traceback_str(self) -> Optional[str]:
        if self.exception is None:
            return None
        return ''.join(traceback.format_exception(
            type(self.exception), self.exception, self.exception.__traceback__
        ))

    def describe(self) -> str:
        if self.exception is None:
            return f"{self.component}: {self.message}"
        return f"{self.component}: {self.message} ({type(self.exception).__name__}: {self.exception})"


class ErrorHandler:
    """
    Keeps a bounded history of component errors and logs each by severity.

    The orchestrator exposes get_error_summary() through get_status().
    """

    def __init__(self, max_history: int = 100):
        self._history: Deque[ComponentError] = deque(maxlen=max_history)

    def handle_error(self, error: ComponentError) -> bool:
        """Record an error. Returns False only for fatal errors."""
        self._history.append(error)

        if error.severity == ErrorSeverity.FATAL:
            logger.critical(f"Fatal: {error.describe()}")
            if error.traceback_str:
                logger.debug(error.traceback_str)
            return False

        if error.severity == ErrorSeverity.WARNING:
            logger.warning(error.describe())
        else:
            logger.error(error.describe())
        return True

    def get_error_history(self, component: Optional[str] = None) -> List[ComponentError]:
        return [e for e in self._history if component is None or e.component == component]

    def get_error_summary(self) -> Dict[str, Any]:
        by_severity = Counter(e.severity.value for e in self._history)
        by_component = Counter(e.component for e in self._history)
        return {
            'total_errors': len(self._history),
            'by_severity': dict(by_severity),
            'by_component': dict(by_component),
        }


async def safe_cleanup(*cleanups: Callable[[], Awaitable[Any]]) -> int:
    """
    Await each cleanup coroutine function in order; one failing does not
    stop the rest. Returns the number that failed.
    """
    failed = 0
    for cleanup in cleanups:
        try:
            await cleanup()
        except Exception as e:
            failed += 1
            logger.warning(f"Cleanup {getattr(cleanup, '__name__', cleanup)!r} failed: {e}")
    return failed
