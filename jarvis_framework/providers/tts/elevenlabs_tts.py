"""
ElevenLabs text-to-speech provider.

Calls the ElevenLabs REST API with a fixed voice and returns MP3 audio.
"""

import asyncio
import os
from typing import Dict, Any, Optional

import aiohttp

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


class ElevenLabsTTSProvider(TextToSpeechInterface):
    """ElevenLabs TTS over HTTP."""

    DEFAULT_BASE_URL = "https://api.elevenlabs.io"
    DEFAULT_VOICE_ID = "onwK4e9ZLuTAKqWW03F9"
    DEFAULT_MODEL = "eleven_multilingual_v2"

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize ElevenLabs TTS provider.

        Args:
            config: Configuration dictionary containing:
                - api_key: ElevenLabs API key (optional, can use env var)
                - voice_id: Voice identifier used for every reply
                - model_id: Synthesis model
                - stability / similarity_boost: Voice settings 0.0-1.0
                - base_url: API base URL
                - timeout: Request timeout in seconds
        """
        self.api_key = config.get('api_key') or os.getenv('ELEVENLABS_API_KEY')
        if not self.api_key:
            raise ValueError("ElevenLabs API key is required. Set ELEVENLABS_API_KEY env var or pass in config.")

        self.voice_id = config.get('voice_id') or self.DEFAULT_VOICE_ID
        self.model_id = config.get('model_id', self.DEFAULT_MODEL)
        self.stability = float(config.get('stability', 0.5))
        self.similarity_boost = float(config.get('similarity_boost', 0.75))
        for name, value in (('stability', self.stability), ('similarity_boost', self.similarity_boost)):
            if not (0.0 <= value <= 1.0):
                raise ValueError(f"{name} must be between 0.0 and 1.0")

        self.base_url = config.get('base_url', self.DEFAULT_BASE_URL).rstrip('/')
        self.timeout = float(config.get('timeout', 30.0))
        self._session: Optional[aiohttp.ClientSession] = None

    async def initialize(self) -> bool:
        try:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
            return True
        except Exception as e:
            logger.error(f"Failed to initialize ElevenLabs TTS provider: {e}")
            return False

    def _endpoint(self, voice_id: str) -> str:
        return f"{self.base_url}/v1/text-to-speech/{voice_id}"

    async def synthesize(self, text: str, voice: Optional[str] = None) -> AudioOutput:
        if not text or not text.strip():
            raise SynthesisError("Text is required for synthesis")
        if self._session is None or self._session.closed:
            await self.initialize()

        voice_id = voice or self.voice_id
        payload = {
            'text': text,
            'model_id': self.model_id,
            'voice_settings': {
                'stability': self.stability,
                'similarity_boost': self.similarity_boost,
            },
        }
        headers = {
            'Accept': 'audio/mpeg',
            'Content-Type': 'application/json',
            'xi-api-key': self.api_key,
        }

        try:
            async with self._session.post(self._endpoint(voice_id), json=payload, headers=headers) as response:
                if response.status >= 400:
                    body = await response.text()
                    raise SynthesisError(f"ElevenLabs API error: {response.status} {body[:200]}")
                audio_data = await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise SynthesisError(f"ElevenLabs request failed: {e}") from e

        if not audio_data:
            raise SynthesisError("ElevenLabs returned no audio")

        logger.debug(f"Synthesized {len(audio_data)} bytes with voice {voice_id}")
        return AudioOutput(
            audio_data=audio_data,
            format=AudioFormat.MP3,
            sample_rate=44100,
            voice=voice_id,
            metadata={
                'provider': 'elevenlabs',
                'model': self.model_id,
            }
        )

    async def cleanup(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    @property
    def capabilities(self) -> dict:
        return {
            'streaming': False,
            'voices': [self.voice_id],
            'audio_formats': ['mp3'],
        }
