"""
Abstract interface for speech-to-text capture providers.
"""

from abc import ABC, abstractmethod
from typing import AsyncIterator
from ..models.data_models import TranscriptionResult


class TranscriptionInterface(ABC):
    """Abstract base class for all transcription providers."""

    @abstractmethod
    async def initialize(self) -> bool:
        """
        Initialize the transcription provider.

        Returns:
            bool: True if initialization successful, False otherwise
        """
        pass

    @abstractmethod
    def start_streaming(self) -> AsyncIterator[TranscriptionResult]:
        """
        Start capturing audio and transcribing it.

        Yields:
            TranscriptionResult: Partial and final results as they arrive

        Raises:
            CaptureError: When capture fails; the code says why
        """
        pass

    @abstractmethod
    async def stop_streaming(self) -> None:
        """Stop capture. Must be safe to call when not streaming."""
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Whether capture can work at all in this environment."""
        pass

    @property
    @abstractmethod
    def is_active(self) -> bool:
        """True while audio is being captured."""
        pass

    @abstractmethod
    async def cleanup(self) -> None:
        """Clean up resources used by the transcription provider."""
        pass

    @property
    def capabilities(self) -> dict:
        return {
            'streaming': True,
            'partial_results': False,
            'languages': ['en-US'],
            'sample_rates': [16000]
        }
