"""
Abstract interfaces for the collaborators the orchestrator drives.
"""

from .transcription import TranscriptionInterface
from .response import ResponseInterface
from .text_to_speech import TextToSpeechInterface
from .settings import SettingsStoreInterface
from .playback import AudioPlayer, PlaybackHandle, PlaybackExit

__all__ = [
    'TranscriptionInterface',
    'ResponseInterface',
    'TextToSpeechInterface',
    'SettingsStoreInterface',
    'AudioPlayer',
    'PlaybackHandle',
    'PlaybackExit'
]
