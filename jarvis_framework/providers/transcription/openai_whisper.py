"""
OpenAI Whisper speech capture provider.

ARCHITECTURE:
- Microphone audio captured with a sounddevice callback (audio thread)
- Chunks handed to the event loop with call_soon_threadsafe
- RMS energy gate splits speech into utterances on trailing silence
- Each finished utterance is sent to the Whisper API and yielded as a final result
"""

import asyncio
import io
import threading
import wave
from typing import AsyncIterator, Dict, Any, Optional

import numpy as np
import openai
from openai import AsyncOpenAI

try:
    import sounddevice as sd
except OSError:
    # PortAudio shared library missing; capture reports itself unavailable
    sd = None

try:
    from ...interfaces.transcription import TranscriptionInterface
    from ...models.data_models import TranscriptionResult, CaptureErrorCode
    from ...utils.error_handling import CaptureError
    from ...utils.logging_config import get_logger
except ImportError:
    from jarvis_framework.interfaces.transcription import TranscriptionInterface
    from jarvis_framework.models.data_models import TranscriptionResult, CaptureErrorCode
    from jarvis_framework.utils.error_handling import CaptureError
    from jarvis_framework.utils.logging_config import get_logger

logger = get_logger("capture")

_STOP = object()


class OpenAIWhisperCaptureProvider(TranscriptionInterface):
    """
    Utterance-based capture with OpenAI Whisper.

    Configuration options:
    - api_key: OpenAI API key
    - model: Whisper model (default: "whisper-1")
    - sample_rate: Audio sample rate (default: 16000)
    - language: Language code (default: "en")
    - silence_threshold: RMS energy above which a block counts as speech
    - silence_duration: Seconds of trailing silence that end an utterance
    - no_speech_timeout: Seconds without any speech before giving up
    - max_utterance_seconds: Hard cap on one utterance
    - input_device_index: Optional sounddevice input device
    """

    def __init__(self, config: Dict[str, Any]):
        self.api_key = config.get('api_key')
        self.model = config.get('model', 'whisper-1')
        self.sample_rate = int(config.get('sample_rate', 16000))
        self.language = config.get('language', 'en')
        self.silence_threshold = float(config.get('silence_threshold', 0.01))
        self.silence_duration = float(config.get('silence_duration', 1.2))
        self.no_speech_timeout = float(config.get('no_speech_timeout', 8.0))
        self.max_utterance_seconds = float(config.get('max_utterance_seconds', 30.0))
        self.input_device_index = config.get('input_device_index')

        self.frames_per_buffer = int(config.get('frames_per_buffer', 1600))  # 100ms at 16kHz
        self.channels = 1

        self._client: Optional[AsyncOpenAI] = None
        self._audio_stream = None
        self._audio_queue: Optional[asyncio.Queue] = None
        self._event_loop: Optional[asyncio.AbstractEventLoop] = None
        self._shutdown_flag = threading.Event()
        self._is_active = False

    async def initialize(self) -> bool:
        if not self.api_key:
            logger.warning("No OpenAI API key; speech capture disabled")
            return False
        try:
            self._client = AsyncOpenAI(api_key=self.api_key)
            logger.info("OpenAI Whisper client initialized")
            return True
        except Exception as e:
            logger.error(f"Failed to initialize OpenAI client: {e}")
            return False

    def is_available(self) -> bool:
        if not self.api_key or sd is None:
            return False
        try:
            device = sd.query_devices(self.input_device_index, kind='input')
        except Exception as e:
            logger.debug(f"No usable input device: {e}")
            return False
        return bool(device) and device.get('max_input_channels', 0) > 0

    @property
    def is_active(self) -> bool:
        return self._is_active

    def _audio_callback(self, indata: np.ndarray, frames: int, time_info: dict, status):
        """Runs in sounddevice's audio thread."""
        if self._shutdown_flag.is_set():
            return
        if status:
            logger.debug(f"Audio callback status: {status}")
        loop, queue = self._event_loop, self._audio_queue
        if loop is None or queue is None:
            return
        try:
            loop.call_soon_threadsafe(self._queue_audio_threadsafe, indata.copy())
        except RuntimeError:
            pass

    def _queue_audio_threadsafe(self, audio_data: np.ndarray):
        if self._audio_queue is None or self._shutdown_flag.is_set():
            return
        try:
            self._audio_queue.put_nowait(audio_data)
        except asyncio.QueueFull:
            try:
                self._audio_queue.get_nowait()
                self._audio_queue.put_nowait(audio_data)
            except (asyncio.QueueEmpty, asyncio.QueueFull):
                pass

    def _open_stream(self) -> None:
        self._event_loop = asyncio.get_running_loop()
        self._audio_queue = asyncio.Queue(maxsize=100)
        self._shutdown_flag.clear()
        try:
            self._audio_stream = sd.InputStream(
                device=self.input_device_index,
                samplerate=self.sample_rate,
                channels=self.channels,
                dtype='int16',
                blocksize=self.frames_per_buffer,
                callback=self._audio_callback
            )
            self._audio_stream.start()
        except sd.PortAudioError as e:
            self._close_stream()
            code = (CaptureErrorCode.PERMISSION_DENIED
                    if 'permission' in str(e).lower() else CaptureErrorCode.AUDIO_CAPTURE)
            raise CaptureError(code, f"Could not open microphone: {e}") from e

    def _close_stream(self) -> None:
        self._shutdown_flag.set()
        stream, self._audio_stream = self._audio_stream, None
        if stream is not None:
            try:
                stream.stop()
                stream.close()
            except Exception as e:
                logger.debug(f"Audio stream close error: {e}")
        self._audio_queue = None
        self._event_loop = None

    def detect_speech(self, audio_data: np.ndarray) -> bool:
        """Energy-based speech detection for one block of int16 samples."""
        if audio_data.size == 0:
            return False
        energy = np.sqrt(np.mean(audio_data.astype(np.float32) ** 2)) / 32768.0
        return bool(energy > self.silence_threshold)

    def audio_to_wav_bytes(self, audio_bytes: bytes) -> bytes:
        """Convert raw PCM bytes to WAV format for the Whisper API."""
        wav_buffer = io.BytesIO()
        with wave.open(wav_buffer, 'wb') as wav_file:
            wav_file.setnchannels(self.channels)
            wav_file.setsampwidth(2)
            wav_file.setframerate(self.sample_rate)
            wav_file.writeframes(audio_bytes)
        return wav_buffer.getvalue()

    async def _transcribe(self, audio_bytes: bytes) -> str:
        audio_file = io.BytesIO(self.audio_to_wav_bytes(audio_bytes))
        audio_file.name = "utterance.wav"
        try:
            response = await self._client.audio.transcriptions.create(
                model=self.model,
                file=audio_file,
                language=self.language,
                response_format="text"
            )
        except openai.APIConnectionError as e:
            raise CaptureError(CaptureErrorCode.NETWORK, f"Whisper unreachable: {e}") from e
        except (openai.AuthenticationError, openai.PermissionDeniedError) as e:
            raise CaptureError(CaptureErrorCode.NOT_ALLOWED, f"Whisper refused the request: {e}") from e
        except openai.APIError as e:
            raise CaptureError(CaptureErrorCode.NETWORK, f"Whisper request failed: {e}") from e
        text = response if isinstance(response, str) else getattr(response, 'text', '')
        return (text or '').strip()

    async def start_streaming(self) -> AsyncIterator[TranscriptionResult]:
        if self._client is None and not await self.initialize():
            raise CaptureError(CaptureErrorCode.NOT_SUPPORTED)

        self._open_stream()
        self._is_active = True
        logger.info("Microphone open")

        loop = asyncio.get_running_loop()
        block_seconds = self.frames_per_buffer / self.sample_rate
        utterance = bytearray()
        speaking = False
        silence = 0.0
        started_at = loop.time()

        try:
            while not self._shutdown_flag.is_set():
                queue = self._audio_queue
                if queue is None:
                    break
                wait_for = None if speaking else max(0.0, started_at + self.no_speech_timeout - loop.time())
                try:
                    chunk = await asyncio.wait_for(queue.get(), timeout=wait_for)
                except asyncio.TimeoutError:
                    raise CaptureError(CaptureErrorCode.NO_SPEECH)
                if chunk is _STOP:
                    break

                if self.detect_speech(chunk):
                    speaking = True
                    silence = 0.0
                elif speaking:
                    silence += block_seconds

                if not speaking:
                    continue
                utterance.extend(chunk.tobytes())

                utterance_seconds = len(utterance) / 2 / self.sample_rate
                if silence >= self.silence_duration or utterance_seconds >= self.max_utterance_seconds:
                    text = await self._transcribe(bytes(utterance))
                    utterance.clear()
                    speaking = False
                    silence = 0.0
                    started_at = loop.time()
                    if text:
                        yield TranscriptionResult(text=text, is_final=True,
                                                  metadata={'duration': utterance_seconds})
        finally:
            self._close_stream()
            self._is_active = False
            logger.info("Microphone closed")

    async def stop_streaming(self) -> None:
        if not self._is_active:
            return
        loop, queue = self._event_loop, self._audio_queue
        self._shutdown_flag.set()
        if loop is not None and queue is not None:
            try:
                queue.put_nowait(_STOP)
            except asyncio.QueueFull:
                pass

    async def cleanup(self) -> None:
        await self.stop_streaming()
        self._close_stream()
        if self._client is not None:
            await self._client.close()
        self._client = None
