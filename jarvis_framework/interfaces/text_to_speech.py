"""
Abstract interface for text-to-speech providers.
"""

from abc import ABC, abstractmethod
from typing import Optional
from ..models.data_models import AudioOutput


class TextToSpeechInterface(ABC):
    """Abstract base class for all text-to-speech providers."""

    @abstractmethod
    async def initialize(self) -> bool:
        """
        Initialize the TTS provider.

        Returns:
            bool: True if initialization successful, False otherwise
        """
        pass

    @abstractmethod
    async def synthesize(self, text: str, voice: Optional[str] = None) -> AudioOutput:
        """
        Synthesize speech from text.

        Args:
            text: Text to synthesize
            voice: Optional voice identifier (defaults to the configured voice)

        Returns:
            AudioOutput: Synthesized audio data

        Raises:
            SynthesisError: If the provider could not produce audio
        """
        pass

    @abstractmethod
    async def cleanup(self) -> None:
        """Clean up resources used by the TTS provider."""
        pass

    @property
    def capabilities(self) -> dict:
        return {
            'streaming': False,
            'voices': [],
            'audio_formats': ['mp3'],
        }
