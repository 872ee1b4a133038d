"""
Abstract interfaces for audio playback.

A player launches one PlaybackHandle per rendered reply. The handle ends
through exactly one exit: natural completion, explicit release, or failure.
"""

import asyncio
from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional

from ..models.data_models import AudioOutput
from ..utils.error_handling import PlaybackError


class PlaybackExit(str, Enum):
    """How a playback handle ended."""
    COMPLETED = "completed"
    INTERRUPTED = "interrupted"
    FAILED = "failed"


class PlaybackHandle(ABC):
    """One in-flight audio render."""

    def __init__(self):
        self._exit: Optional[PlaybackExit] = None

    @property
    def exit_reason(self) -> Optional[PlaybackExit]:
        return self._exit

    @property
    def is_released(self) -> bool:
        return self._exit is not None

    @abstractmethod
    def _stop_output(self) -> None:
        """Stop sound output immediately. Must not block or await."""
        pass

    @abstractmethod
    async def _play_to_end(self) -> None:
        """
        Render the audio until it ends.

        Raises:
            PlaybackError: If decoding or output fails
        """
        pass

    def release(self) -> bool:
        """
        Stop playback now.

        Returns:
            True if this call released the handle, False if it had already exited
        """
        if self._exit is not None:
            return False
        self._exit = PlaybackExit.INTERRUPTED
        self._stop_output()
        return True

    async def wait(self) -> PlaybackExit:
        """
        Wait for playback to end.

        Returns:
            The exit reason (COMPLETED, or INTERRUPTED if released meanwhile)

        Raises:
            PlaybackError: If playback failed before being released. Errors
                other than PlaybackError are wrapped.
        """
        try:
            await self._play_to_end()
        except asyncio.CancelledError:
            self.release()
            raise
        except Exception as e:
            if self._exit is None:
                self._exit = PlaybackExit.FAILED
                self._stop_output()
                if isinstance(e, PlaybackError):
                    raise
                raise PlaybackError(f"Playback failed: {e}") from e
        else:
            if self._exit is None:
                self._exit = PlaybackExit.COMPLETED
        return self._exit


class AudioPlayer(ABC):
    """Creates playback handles for synthesized audio."""

    @abstractmethod
    async def launch(self, audio: AudioOutput) -> PlaybackHandle:
        """
        Start rendering audio.

        Raises:
            PlaybackError: If the output backend is unusable
        """
        pass
