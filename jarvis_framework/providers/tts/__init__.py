"""
Text-to-speech providers.
"""

from .elevenlabs_tts import ElevenLabsTTSProvider
from .openai_tts import OpenAITTSProvider

__all__ = ['ElevenLabsTTSProvider', 'OpenAITTSProvider']
