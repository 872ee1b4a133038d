"""
Tests for the OpenAI Whisper capture provider's local audio handling.
"""

import io
import wave

import numpy as np
import pytest

from jarvis_framework.providers.transcription import OpenAIWhisperCaptureProvider


@pytest.fixture
def provider():
    return OpenAIWhisperCaptureProvider({'api_key': None, 'sample_rate': 16000, 'silence_threshold': 0.01})


class TestWhisperCapture:

    def test_silence_is_not_speech(self, provider):
        assert provider.detect_speech(np.zeros(1600, dtype=np.int16)) is False
        assert provider.detect_speech(np.array([], dtype=np.int16)) is False

    def test_loud_block_is_speech(self, provider):
        assert provider.detect_speech(np.full(1600, 8000, dtype=np.int16)) is True

    def test_wav_wrapping(self, provider):
        pcm = np.full(1600, 1000, dtype=np.int16).tobytes()

        data = provider.audio_to_wav_bytes(pcm)

        with wave.open(io.BytesIO(data), 'rb') as wav_file:
            assert wav_file.getnchannels() == 1
            assert wav_file.getsampwidth() == 2
            assert wav_file.getframerate() == 16000
            assert wav_file.readframes(1600) == pcm

    @pytest.mark.asyncio
    async def test_unavailable_without_api_key(self, provider):
        assert provider.is_available() is False
        assert await provider.initialize() is False
        await provider.stop_streaming()
        await provider.cleanup()
