"""
Speech capture adapter.

Wraps a transcription provider: starts and stops capture, forwards finalized
utterances only, and turns every capture failure into a CaptureErrorCode. It
holds no conversation logic; callbacks run as their own tasks so a listener
may stop capture from inside one.
"""

import asyncio
from typing import Awaitable, Callable, Optional, Set

from ..interfaces.transcription import TranscriptionInterface
from ..models.data_models import CaptureErrorCode
from .error_handling import CaptureError
from .logging_config import get_logger

logger = get_logger("capture")

TranscriptCallback = Callable[[str, int], Awaitable[None]]
ErrorCallback = Callable[[CaptureErrorCode, str, int], Awaitable[None]]
EndCallback = Callable[[int], Awaitable[None]]


def classify_capture_exception(error: BaseException) -> CaptureErrorCode:
    """Map an arbitrary provider exception onto the capture error taxonomy."""
    if isinstance(error, CaptureError):
        return error.code
    if isinstance(error, PermissionError):
        return CaptureErrorCode.PERMISSION_DENIED
    if isinstance(error, (ConnectionError, asyncio.TimeoutError)):
        return CaptureErrorCode.NETWORK
    if isinstance(error, OSError):
        return CaptureErrorCode.AUDIO_CAPTURE
    return CaptureErrorCode.UNKNOWN


class SpeechCaptureAdapter:
    """
    Start/stop wrapper around one TranscriptionInterface.

    Every start() opens a new capture session; callbacks carry the session
    number they were produced under so a consumer can drop results from a
    session it already stopped.
    """

    def __init__(self,
                 provider: Optional[TranscriptionInterface],
                 on_transcript: TranscriptCallback,
                 on_error: ErrorCallback,
                 on_end: Optional[EndCallback] = None):
        self._provider = provider
        self._on_transcript = on_transcript
        self._on_error = on_error
        self._on_end = on_end
        self._available: Optional[bool] = None
        self._task: Optional[asyncio.Task] = None
        self._session = 0
        self._callbacks: Set[asyncio.Task] = set()

    @property
    def session(self) -> int:
        return self._session

    @property
    def is_available(self) -> bool:
        if self._available is None:
            self._available = self._probe()
        return self._available

    @property
    def is_listening(self) -> bool:
        return self._task is not None and not self._task.done()

    def _probe(self) -> bool:
        if self._provider is None:
            return False
        try:
            return bool(self._provider.is_available())
        except Exception as e:
            logger.warning(f"Capture availability probe failed: {e}")
            return False

    async def initialize(self) -> bool:
        """Initialize the provider and probe availability once."""
        if self._provider is not None:
            try:
                if not await self._provider.initialize():
                    self._available = False
                    return False
            except Exception as e:
                logger.error(f"Capture provider failed to initialize: {e}")
                self._available = False
                return False
        self._available = self._probe()
        logger.info(f"Speech capture {'available' if self._available else 'unavailable'}")
        return self._available

    def start(self) -> bool:
        """
        Begin capture. A no-op while already listening.

        Returns:
            True if capture is running after the call
        """
        if not self.is_available:
            return False
        if self.is_listening:
            return True
        self._session += 1
        self._task = asyncio.create_task(self._run(self._session))
        logger.info(f"Capture started (session {self._session})")
        return True

    async def stop(self) -> None:
        """End capture. A no-op when already stopped."""
        task, self._task = self._task, None
        if task is None:
            return
        self._session += 1
        try:
            await self._provider.stop_streaming()
        except Exception as e:
            logger.warning(f"Error stopping capture provider: {e}")
        if task is not asyncio.current_task() and not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        logger.info("Capture stopped")

    def _spawn(self, coro: Awaitable[None]) -> None:
        task = asyncio.create_task(coro)
        self._callbacks.add(task)
        task.add_done_callback(self._callbacks.discard)

    async def _run(self, session: int) -> None:
        try:
            async for result in self._provider.start_streaming():
                if session != self._session:
                    break
                if not result.is_final:
                    continue
                text = result.text.strip()
                if text:
                    logger.debug(f"Final transcript: {text}")
                    self._spawn(self._on_transcript(text, session))
        except asyncio.CancelledError:
            raise
        except Exception as e:
            code = classify_capture_exception(e)
            if session == self._session:
                logger.warning(f"Capture error ({code.value}): {e}")
                self._spawn(self._on_error(code, str(e), session))
            return
        finally:
            if self._task is asyncio.current_task():
                self._task = None

        if session == self._session and self._on_end is not None:
            self._spawn(self._on_end(session))

    async def cleanup(self) -> None:
        await self.stop()
        for task in list(self._callbacks):
            task.cancel()
        if self._provider is not None:
            await self._provider.cleanup()
