"""
Audio playback manager.

Owns at most one PlaybackHandle. Starting new audio releases the previous
handle first, and the manager forgets a handle as soon as it exits by any path.
"""

from typing import Optional

from ..interfaces.playback import AudioPlayer, PlaybackHandle, PlaybackExit
from ..models.data_models import AudioOutput
from .error_handling import PlaybackError
from .logging_config import get_logger

logger = get_logger("playback")


class AudioPlaybackManager:
    """Scoped owner of the single active playback handle."""

    def __init__(self, player: AudioPlayer):
        self._player = player
        self._handle: Optional[PlaybackHandle] = None

    @property
    def active_handle(self) -> Optional[PlaybackHandle]:
        return self._handle

    @property
    def has_active_handle(self) -> bool:
        return self._handle is not None

    async def play(self, audio: AudioOutput) -> PlaybackHandle:
        """
        Start playing audio and return its handle.

        Raises:
            PlaybackError: If the audio is empty or the player cannot start
        """
        if audio is None or not audio.is_valid():
            raise PlaybackError("Received empty audio")

        self.stop()
        handle = await self._player.launch(audio)
        self._handle = handle
        logger.debug(f"Playback started ({audio.get_size_mb():.2f} MB {audio.format.value})")
        return handle

    def stop(self) -> bool:
        """
        Release the active handle synchronously.

        Returns:
            True if a playing handle was stopped
        """
        handle, self._handle = self._handle, None
        if handle is None:
            return False
        released = handle.release()
        if released:
            logger.info("Playback interrupted")
        return released

    async def wait(self, handle: PlaybackHandle) -> PlaybackExit:
        """
        Wait for a handle to exit and drop it from the manager.

        Raises:
            PlaybackError: If playback failed
        """
        try:
            reason = await handle.wait()
            logger.debug(f"Playback ended: {reason.value}")
            return reason
        finally:
            if self._handle is handle:
                self._handle = None
