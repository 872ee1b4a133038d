"""
Tests for the speech capture adapter.
"""

import asyncio

import pytest

from jarvis_framework.models.data_models import CaptureErrorCode
from jarvis_framework.utils.error_handling import CaptureError
from jarvis_framework.utils.speech_capture import SpeechCaptureAdapter, classify_capture_exception

from fakes import FakeCapture, settle


class Recorder:
    def __init__(self):
        self.transcripts = []
        self.errors = []
        self.ends = []

    async def on_transcript(self, text, session):
        self.transcripts.append((text, session))

    async def on_error(self, code, message, session):
        self.errors.append((code, session))

    async def on_end(self, session):
        self.ends.append(session)


def make_adapter(provider):
    recorder = Recorder()
    adapter = SpeechCaptureAdapter(provider, recorder.on_transcript, recorder.on_error, recorder.on_end)
    return adapter, recorder


@pytest.mark.parametrize("error,code", [
    (CaptureError(CaptureErrorCode.NO_SPEECH), CaptureErrorCode.NO_SPEECH),
    (PermissionError("denied"), CaptureErrorCode.PERMISSION_DENIED),
    (ConnectionResetError("reset"), CaptureErrorCode.NETWORK),
    (asyncio.TimeoutError(), CaptureErrorCode.NETWORK),
    (OSError("device busy"), CaptureErrorCode.AUDIO_CAPTURE),
    (RuntimeError("?"), CaptureErrorCode.UNKNOWN),
])
def test_classify_capture_exception(error, code):
    assert classify_capture_exception(error) == code


class TestSpeechCaptureAdapter:

    @pytest.mark.asyncio
    async def test_forwards_final_transcripts_only(self):
        provider = FakeCapture()
        adapter, recorder = make_adapter(provider)
        await adapter.initialize()

        assert adapter.start() is True
        await settle()
        provider.partial("turn on")
        provider.say("  turn on the lights ")
        provider.say("   ")
        await settle()

        assert recorder.transcripts == [("turn on the lights", adapter.session)]
        await adapter.cleanup()

    @pytest.mark.asyncio
    async def test_start_is_noop_while_listening(self):
        provider = FakeCapture()
        adapter, _ = make_adapter(provider)

        adapter.start()
        session = adapter.session
        assert adapter.start() is True
        await settle()

        assert adapter.session == session
        assert provider.starts == 1
        await adapter.cleanup()

    @pytest.mark.asyncio
    async def test_stop_drops_session(self):
        provider = FakeCapture()
        adapter, recorder = make_adapter(provider)
        adapter.start()
        await settle()
        session = adapter.session

        await adapter.stop()
        await adapter.stop()
        await settle()

        assert not adapter.is_listening
        assert adapter.session > session
        assert recorder.ends == []
        assert recorder.errors == []

    @pytest.mark.asyncio
    async def test_error_reported_with_code(self):
        provider = FakeCapture()
        adapter, recorder = make_adapter(provider)
        adapter.start()
        await settle()

        provider.fail(CaptureError(CaptureErrorCode.PERMISSION_DENIED))
        await settle()

        assert recorder.errors == [(CaptureErrorCode.PERMISSION_DENIED, adapter.session)]
        assert not adapter.is_listening

    @pytest.mark.asyncio
    async def test_natural_end_reported(self):
        provider = FakeCapture()
        adapter, recorder = make_adapter(provider)
        adapter.start()
        await settle()

        provider.end()
        await settle()

        assert recorder.ends == [adapter.session]
        assert not adapter.is_listening

    @pytest.mark.asyncio
    async def test_unavailable(self):
        adapter, _ = make_adapter(FakeCapture(available=False))

        assert await adapter.initialize() is False
        assert adapter.start() is False
        assert not adapter.is_listening

    @pytest.mark.asyncio
    async def test_no_provider(self):
        adapter, _ = make_adapter(None)

        assert adapter.is_available is False
        assert adapter.start() is False
        await adapter.stop()
