"""
OpenAI speech synthesis, selectable with TTS_PROVIDER=openai_tts.
"""

import os
from typing import Any, Dict, Optional

from openai import AsyncOpenAI

try:
    from ...interfaces.text_to_speech import TextToSpeechInterface
    from ...models.data_models import AudioOutput, AudioFormat
    from ...utils.error_handling import SynthesisError
    from ...utils.logging_config import get_logger
except ImportError:
    from jarvis_framework.interfaces.text_to_speech import TextToSpeechInterface
    from jarvis_framework.models.data_models import AudioOutput, AudioFormat
    from jarvis_framework.utils.error_handling import SynthesisError
    from jarvis_framework.utils.logging_config import get_logger

logger = get_logger("tts")

VOICES = ('alloy', 'echo', 'fable', 'onyx', 'nova', 'shimmer')
MODELS = ('tts-1', 'tts-1-hd', 'gpt-4o-mini-tts')
FORMATS = {'mp3': AudioFormat.MP3, 'wav': AudioFormat.WAV, 'pcm': AudioFormat.PCM16}

# OpenAI speech endpoints always render at 24 kHz
OUTPUT_SAMPLE_RATE = 24000


class OpenAITTSProvider(TextToSpeechInterface):
    """Synthesizes replies with the OpenAI audio.speech endpoint."""

    def __init__(self, config: Dict[str, Any]):
        self.api_key = config.get('api_key') or os.getenv('OPENAI_API_KEY')
        if not self.api_key:
            raise ValueError("OpenAI TTS needs an API key (OPENAI_API_KEY)")

        self.model = self._choice(config, 'model', 'gpt-4o-mini-tts', MODELS)
        self.voice = self._choice(config, 'voice', 'onyx', VOICES)
        self.response_format = self._choice(config, 'response_format', 'mp3', FORMATS)

        self.speed = float(config.get('speed', 1.0))
        if not 0.25 <= self.speed <= 4.0:
            raise ValueError(f"speed must be within 0.25-4.0, got {self.speed}")

        self._client: Optional[AsyncOpenAI] = None

    @staticmethod
    def _choice(config: Dict[str, Any], key: str, default: str, allowed) -> str:
        value = config.get(key, default)
        if value not in allowed:
            raise ValueError(f"Unsupported {key} {value!r}; expected one of {sorted(allowed)}")
        return value

    async def initialize(self) -> bool:
        try:
            self._client = AsyncOpenAI(api_key=self.api_key)
        except Exception as e:
            logger.error(f"OpenAI client setup failed: {e}")
            return False
        return True

    async def synthesize(self, text: str, voice: Optional[str] = None) -> AudioOutput:
        if self._client is None:
            raise SynthesisError("OpenAI TTS used before initialize()")

        # Voice ids from other vendors (e.g. ElevenLabs) fall back to the configured voice
        voice_name = voice if voice in VOICES else self.voice

        try:
            response = await self._client.audio.speech.create(
                model=self.model,
                voice=voice_name,
                input=text,
                speed=self.speed,
                response_format=self.response_format
            )
        except Exception as e:
            raise SynthesisError(f"OpenAI TTS request failed: {e}") from e

        audio = response.content
        if not audio:
            raise SynthesisError("OpenAI TTS returned no audio")

        return AudioOutput(
            audio_data=audio,
            format=FORMATS[self.response_format],
            sample_rate=OUTPUT_SAMPLE_RATE,
            voice=voice_name,
            metadata={'provider': 'openai', 'model': self.model}
        )

    async def cleanup(self) -> None:
        client, self._client = self._client, None
        if client is not None:
            await client.close()

    @property
    def capabilities(self) -> dict:
        return {
            'streaming': False,
            'voices': list(VOICES),
            'audio_formats': list(FORMATS),
        }
