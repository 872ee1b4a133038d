"""
Fake collaborators for driving the orchestrator step by step.

Gates hold a call open until the test releases it, and fake playback
handles finish only when told to.
"""

import asyncio
from typing import List, Optional

from jarvis_framework.interfaces import (
    AudioPlayer,
    PlaybackHandle,
    ResponseInterface,
    TextToSpeechInterface,
    TranscriptionInterface,
)
from jarvis_framework.models.data_models import AudioFormat, AudioOutput, ResponseResult, TranscriptionResult
from jarvis_framework.utils.error_handling import PlaybackError


_END = object()


async def settle(rounds: int = 50):
    """Let every runnable task advance until the system is quiescent."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class FakeResponse(ResponseInterface):
    """Scripted response generator."""

    def __init__(self, reply: str = "Certainly, sir."):
        self.reply = reply
        self.error: Optional[Exception] = None
        self.fallback = False
        self.gate: Optional[asyncio.Event] = None
        self.calls = []
        self.cleaned_up = False

    async def initialize(self) -> bool:
        return True

    async def generate(self, message, history=(), endpoint_override=None) -> ResponseResult:
        self.calls.append({'message': message, 'history': tuple(history), 'endpoint': endpoint_override})
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return ResponseResult(text=self.reply, success=not self.fallback, fallback=self.fallback)

    async def cleanup(self) -> None:
        self.cleaned_up = True


class FakeTTS(TextToSpeechInterface):
    """Synthesizer returning a fixed buffer."""

    def __init__(self):
        self.error: Optional[Exception] = None
        self.gate: Optional[asyncio.Event] = None
        self.calls = []

    async def initialize(self) -> bool:
        return True

    async def synthesize(self, text, voice=None) -> AudioOutput:
        self.calls.append({'text': text, 'voice': voice})
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return AudioOutput(audio_data=b"ID3fake-mp3", format=AudioFormat.MP3, sample_rate=44100, voice=voice)

    async def cleanup(self) -> None:
        pass


class FakeHandle(PlaybackHandle):
    """Playback that lasts until finish(), fail() or release()."""

    def __init__(self, audio: AudioOutput):
        super().__init__()
        self.audio = audio
        self.stopped = False
        self._done = asyncio.Event()
        self._error: Optional[Exception] = None

    def finish(self) -> None:
        self._done.set()

    def fail(self, error: Optional[Exception] = None) -> None:
        self._error = error or PlaybackError("decoder crashed")
        self._done.set()

    def _stop_output(self) -> None:
        self.stopped = True
        self._done.set()

    async def _play_to_end(self) -> None:
        await self._done.wait()
        if self._error is not None:
            raise self._error


class FakePlayer(AudioPlayer):
    def __init__(self):
        self.handles: List[FakeHandle] = []
        self.launch_error: Optional[Exception] = None

    @property
    def last(self) -> FakeHandle:
        return self.handles[-1]

    async def launch(self, audio: AudioOutput) -> PlaybackHandle:
        if self.launch_error is not None:
            raise self.launch_error
        handle = FakeHandle(audio)
        self.handles.append(handle)
        return handle


class FakeCapture(TranscriptionInterface):
    """Speech capture fed by the test: say(), partial(), fail(), end()."""

    def __init__(self, available: bool = True):
        self.available = available
        self.starts = 0
        self.stops = 0
        self._queue: Optional[asyncio.Queue] = None
        self._active = False

    async def initialize(self) -> bool:
        return True

    def is_available(self) -> bool:
        return self.available

    @property
    def is_active(self) -> bool:
        return self._active

    async def start_streaming(self):
        self.starts += 1
        queue = self._queue = asyncio.Queue()
        self._active = True
        try:
            while True:
                item = await queue.get()
                if item is _END:
                    return
                if isinstance(item, BaseException):
                    raise item
                yield item
        finally:
            self._active = False

    async def stop_streaming(self) -> None:
        self.stops += 1
        if self._queue is not None:
            self._queue.put_nowait(_END)

    def say(self, text: str) -> None:
        self._queue.put_nowait(TranscriptionResult(text=text, is_final=True))

    def partial(self, text: str) -> None:
        self._queue.put_nowait(TranscriptionResult(text=text, is_final=False))

    def fail(self, error: Exception) -> None:
        self._queue.put_nowait(error)

    def end(self) -> None:
        self._queue.put_nowait(_END)

    async def cleanup(self) -> None:
        await self.stop_streaming()




class FakeHTTPResponse:
    """Async context manager standing in for an aiohttp response."""

    def __init__(self, status: int = 200, json_data=None, body: bytes = b"", json_error: Optional[Exception] = None):
        self.status = status
        self._json = json_data
        self._body = body
        self._json_error = json_error

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def json(self, content_type=None):
        if self._json_error is not None:
            raise self._json_error
        return self._json

    async def text(self) -> str:
        return self._body.decode() if self._body else str(self._json)

    async def read(self) -> bytes:
        return self._body


class FakeHTTPSession:
    """Records POSTs and answers with a canned FakeHTTPResponse or raises."""

    def __init__(self, response: Optional[FakeHTTPResponse] = None, error: Optional[Exception] = None):
        self.response = response or FakeHTTPResponse()
        self.error = error
        self.posts = []
        self.closed = False

    def post(self, url, json=None, headers=None):
        self.posts.append({'url': url, 'json': json, 'headers': headers})
        if self.error is not None:
            raise self.error
        return self.response

    async def close(self):
        self.closed = True
