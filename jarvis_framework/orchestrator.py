"""
Conversation orchestrator.

Owns the session state and drives the collaborators through one turn at a
time: capture speech (or accept typed text), ask the response generator for a
reply, synthesize it, play it, and in continuous mode arm a delayed return to
listening.

Every command and every collaborator result is applied under one asyncio
lock, so events are handled one at a time in arrival order. Collaborator
calls run as separate tasks and re-enter through the lock carrying the turn
number they were issued under; a result whose turn was abandoned (interrupt,
stop, clear, mode switch) is dropped.
"""

import asyncio
from collections import deque
from typing import Any, Awaitable, Callable, Deque, Dict, List, Optional, Set, Tuple

try:
    from .interfaces import (
        TranscriptionInterface,
        ResponseInterface,
        TextToSpeechInterface,
        SettingsStoreInterface,
        AudioPlayer,
        PlaybackHandle,
        PlaybackExit
    )
    from .models.data_models import (
        AudioOutput,
        CaptureErrorCode,
        ConversationMode,
        Message,
        MessageRole,
        Notification,
        ResponseResult,
        SessionStatus
    )
    from .utils.audio_playback import AudioPlaybackManager
    from .utils.error_handling import (
        ComponentError,
        ErrorHandler,
        ErrorSeverity,
        ResponseGenerationError,
        safe_cleanup
    )
    from .utils.logging_config import get_logger
    from .utils.message_log import MessageLog
    from .utils.relisten import RelistenScheduler, RelistenTimer, DEFAULT_RELISTEN_DELAY
    from .utils.settings_store import get_webhook_url
    from .utils.speech_capture import SpeechCaptureAdapter
    from .utils.state_machine import ConversationStateMachine, StateListener
except ImportError:
    from jarvis_framework.interfaces import (
        TranscriptionInterface,
        ResponseInterface,
        TextToSpeechInterface,
        SettingsStoreInterface,
        AudioPlayer,
        PlaybackHandle,
        PlaybackExit
    )
    from jarvis_framework.models.data_models import (
        AudioOutput,
        CaptureErrorCode,
        ConversationMode,
        Message,
        MessageRole,
        Notification,
        ResponseResult,
        SessionStatus
    )
    from jarvis_framework.utils.audio_playback import AudioPlaybackManager
    from jarvis_framework.utils.error_handling import (
        ComponentError,
        ErrorHandler,
        ErrorSeverity,
        ResponseGenerationError,
        safe_cleanup
    )
    from jarvis_framework.utils.logging_config import get_logger
    from jarvis_framework.utils.message_log import MessageLog
    from jarvis_framework.utils.relisten import RelistenScheduler, RelistenTimer, DEFAULT_RELISTEN_DELAY
    from jarvis_framework.utils.settings_store import get_webhook_url
    from jarvis_framework.utils.speech_capture import SpeechCaptureAdapter
    from jarvis_framework.utils.state_machine import ConversationStateMachine, StateListener

logger = get_logger("orchestrator")

NotificationListener = Callable[[Notification], None]

DEFAULT_HISTORY_WINDOW = 5

STATUS_HINTS = {
    ConversationMode.SINGLE: {
        SessionStatus.IDLE: "Click to start listening",
        SessionStatus.LISTENING: "Listening to your voice...",
        SessionStatus.PROCESSING: "Processing your request...",
        SessionStatus.SPEAKING: "JARVIS is responding...",
    },
    ConversationMode.CONTINUOUS: {
        SessionStatus.IDLE: "🎤 Ready to listen...",
        SessionStatus.LISTENING: "👂 Listening to your voice...",
        SessionStatus.PROCESSING: "🧠 Processing your request...",
        SessionStatus.SPEAKING: "🗣️ JARVIS is responding...",
    },
}


class ConversationOrchestrator:
    """
    Conversation state machine driver.

    Collaborators are injected; see ``factory.build_orchestrator`` for
    construction from configuration.
    """

    def __init__(self,
                 response: ResponseInterface,
                 tts: TextToSpeechInterface,
                 player: AudioPlayer,
                 capture: Optional[TranscriptionInterface] = None,
                 settings: Optional[SettingsStoreInterface] = None,
                 config: Optional[Dict[str, Any]] = None):
        config = config or {}
        self.config = config

        self.history_window = int(config.get('history_window', DEFAULT_HISTORY_WINDOW))
        self.voice_id: Optional[str] = config.get('voice_id')
        initial_mode = ConversationMode(config.get('initial_mode', ConversationMode.SINGLE.value))

        self.state_machine = ConversationStateMachine(mode=initial_mode)
        self.messages = MessageLog()
        self.error_handler = ErrorHandler()
        self.playback = AudioPlaybackManager(player)
        self.relisten = RelistenScheduler(
            float(config.get('relisten_delay', DEFAULT_RELISTEN_DELAY)),
            spawn=self._spawn
        )
        self.capture = SpeechCaptureAdapter(
            capture,
            on_transcript=self._on_capture_transcript,
            on_error=self._on_capture_error,
            on_end=self._on_capture_end
        )

        self._response = response
        self._tts = tts
        self._settings = settings

        self._lock = asyncio.Lock()
        self._turn = 0
        self._tasks: Set[asyncio.Task] = set()
        self._notification_listeners: List[NotificationListener] = []
        self.notifications: Deque[Notification] = deque(maxlen=50)

        self.is_initialized = False

    # ------------------------------------------------------------------
    # Read-only views for the presentation layer
    # ------------------------------------------------------------------

    @property
    def status(self) -> SessionStatus:
        return self.state_machine.status

    @property
    def mode(self) -> ConversationMode:
        return self.state_machine.mode

    @property
    def active(self) -> bool:
        return self.state_machine.active

    @property
    def turn(self) -> int:
        return self._turn

    @property
    def is_capture_available(self) -> bool:
        return self.capture.is_available

    def get_messages(self) -> Tuple[Message, ...]:
        return self.messages.snapshot()

    def get_state(self) -> Dict[str, Any]:
        return self.state_machine.snapshot()

    def status_hint(self) -> str:
        if self.mode == ConversationMode.CONTINUOUS and not self.active:
            return "Start a conversation to begin continuous chat"
        return STATUS_HINTS[self.mode][self.status]

    def add_state_listener(self, listener: StateListener) -> None:
        self.state_machine.add_listener(listener)

    def add_notification_listener(self, listener: NotificationListener) -> None:
        self._notification_listeners.append(listener)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self) -> bool:
        """Initialize every collaborator and probe capture availability once."""
        logger.info("Initializing conversation orchestrator...")
        ready = True
        for component, provider in (("response", self._response), ("tts", self._tts)):
            try:
                if not await provider.initialize():
                    ready = False
                    logger.error(f"{component} provider failed to initialize")
            except Exception as e:
                ready = False
                self.error_handler.handle_error(ComponentError(
                    component=component,
                    severity=ErrorSeverity.FATAL,
                    message="Initialization failed",
                    exception=e
                ))

        if not await self.capture.initialize():
            logger.warning("Voice input unavailable; text input only")

        self.is_initialized = ready
        return ready

    async def cleanup(self) -> None:
        """Stop everything in flight and release collaborator resources."""
        async with self._lock:
            self.state_machine.set_active(False)
            await self._halt_turn("shutdown")

        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

        await safe_cleanup(self.capture.cleanup, self._response.cleanup, self._tts.cleanup)
        self.is_initialized = False
        logger.info("Orchestrator cleaned up")

    async def join_pending(self, timeout: Optional[float] = None) -> None:
        """Wait until no collaborator call started by this orchestrator is running."""
        async def _drain():
            while self._tasks:
                await asyncio.gather(*list(self._tasks), return_exceptions=True)
        await asyncio.wait_for(_drain(), timeout=timeout)

    def get_status(self) -> Dict[str, Any]:
        return {
            'initialized': self.is_initialized,
            'state': self.state_machine.get_status(),
            'turn': self._turn,
            'messages': len(self.messages),
            'capture_available': self.capture.is_available,
            'listening': self.capture.is_listening,
            'playback_active': self.playback.has_active_handle,
            'relisten_armed': self.relisten.is_armed,
            'errors': self.error_handler.get_error_summary(),
        }

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def mic_toggle(self) -> None:
        async with self._lock:
            await self._mic_toggle()

    async def submit_text(self, text: str) -> None:
        """Typed input; equivalent to a finalized transcript."""
        async with self._lock:
            await self._accept_transcript(text, source="text")

    async def start_conversation(self) -> None:
        async with self._lock:
            if self.mode == ConversationMode.SINGLE:
                await self._mic_toggle()
                return
            if not self.capture.is_available:
                self._notify_capture_unavailable()
                return
            self.state_machine.set_active(True)
            if self.status == SessionStatus.IDLE:
                self._begin_listening("conversation started")

    async def stop_conversation(self) -> None:
        async with self._lock:
            self.state_machine.set_active(False)
            await self._halt_turn("conversation stopped")

    async def toggle_mode(self) -> None:
        async with self._lock:
            if self.mode == ConversationMode.CONTINUOUS:
                self.state_machine.set_mode(ConversationMode.SINGLE)
                # The turn in flight belongs to the continuous session; end it
                await self._halt_turn("switched to single mode")
            else:
                self.state_machine.set_mode(ConversationMode.CONTINUOUS)

    async def interrupt(self) -> None:
        async with self._lock:
            if self.status != SessionStatus.SPEAKING:
                logger.debug(f"Interrupt ignored while {self.status.value}")
                return

            # Silence first, then decide where to go
            self.playback.stop()
            self.relisten.cancel()
            self._abandon_turn()

            if self.mode == ConversationMode.CONTINUOUS and self.active:
                self._begin_listening("interrupted")
            else:
                self.state_machine.transition_to(SessionStatus.IDLE, "interrupted")

    async def clear(self) -> None:
        async with self._lock:
            self.messages.clear()
            self.state_machine.set_active(False)
            await self._halt_turn("conversation cleared")
            logger.info("Conversation cleared")

    # ------------------------------------------------------------------
    # Transitions (lock held)
    # ------------------------------------------------------------------

    async def _mic_toggle(self) -> None:
        if self.status == SessionStatus.IDLE:
            if not self.capture.is_available:
                self._notify_capture_unavailable()
                return
            self._begin_listening("mic toggled")
        elif self.status == SessionStatus.LISTENING:
            await self.capture.stop()
            self.state_machine.transition_to(SessionStatus.IDLE, "mic toggled")
        else:
            logger.debug(f"Mic toggle ignored while {self.status.value}")

    def _begin_listening(self, reason: str) -> bool:
        if not self.capture.start():
            self._notify_capture_unavailable()
            if self.status != SessionStatus.IDLE:
                self.state_machine.transition_to(SessionStatus.IDLE, "capture unavailable")
            return False
        self.state_machine.transition_to(SessionStatus.LISTENING, reason)
        return True

    def _abandon_turn(self) -> None:
        self._turn += 1

    async def _halt_turn(self, reason: str) -> None:
        """Cancel timer and playback, stop capture, drop the current turn, go idle."""
        self.relisten.cancel()
        self.playback.stop()
        if self.capture.is_listening:
            await self.capture.stop()
        if self.status in (SessionStatus.PROCESSING, SessionStatus.SPEAKING):
            self._abandon_turn()
        self.state_machine.transition_to(SessionStatus.IDLE, reason)

    def _is_current(self, turn: int, expected: SessionStatus, what: str) -> bool:
        if turn == self._turn and self.status == expected:
            return True
        logger.debug(f"Discarding stale {what} (turn {turn}, current {self._turn}, status {self.status.value})")
        return False

    async def _accept_transcript(self, text: str, source: str) -> None:
        text = (text or "").strip()
        if not text:
            logger.debug(f"Ignoring empty {source} input")
            return
        if self.status in (SessionStatus.PROCESSING, SessionStatus.SPEAKING):
            logger.warning(f"Ignoring {source} input while {self.status.value}")
            return

        if self.capture.is_listening:
            await self.capture.stop()
        self.relisten.cancel()

        history = self.messages.recent(self.history_window)
        self.messages.append(MessageRole.USER, text)
        self._turn += 1
        self.state_machine.transition_to(SessionStatus.PROCESSING, f"{source} received")
        self._spawn(self._request_response(self._turn, text, history))

    # ------------------------------------------------------------------
    # Collaborator calls (run as tasks, re-enter through the lock)
    # ------------------------------------------------------------------

    def _spawn(self, coro: Awaitable[None]) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _request_response(self, turn: int, text: str, history: Tuple[Message, ...]) -> None:
        endpoint = None
        try:
            if self._settings is not None and self._settings.blocking:
                loop = asyncio.get_running_loop()
                endpoint = await loop.run_in_executor(None, get_webhook_url, self._settings)
            else:
                endpoint = get_webhook_url(self._settings)
        except Exception as e:
            logger.warning(f"Could not read webhook override: {e}")

        try:
            result = await self._response.generate(text, history, endpoint_override=endpoint)
            if result is None or not (result.text or "").strip():
                raise ResponseGenerationError("Response generator returned no text")
        except asyncio.CancelledError:
            raise
        except Exception as e:
            await self._on_response_failed(turn, e)
            return
        await self._on_response_received(turn, result)

    async def _on_response_received(self, turn: int, result: ResponseResult) -> None:
        async with self._lock:
            if not self._is_current(turn, SessionStatus.PROCESSING, "response"):
                return
            reply = result.text.strip()
            if result.fallback:
                logger.warning(f"Using fallback reply ({result.error})")
            self.messages.append(MessageRole.ASSISTANT, reply)
            self.state_machine.transition_to(SessionStatus.SPEAKING, "response received")
            self._spawn(self._request_synthesis(turn, reply))

    async def _on_response_failed(self, turn: int, error: Exception) -> None:
        async with self._lock:
            if not self._is_current(turn, SessionStatus.PROCESSING, "response failure"):
                return
            self._report("response", error, "Processing Error",
                         "Failed to process your request. Please try again.")
            self.state_machine.transition_to(SessionStatus.IDLE, "response failed")

    async def _request_synthesis(self, turn: int, text: str) -> None:
        try:
            audio = await self._tts.synthesize(text, voice=self.voice_id)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            await self._on_synthesis_failed(turn, e)
            return
        await self._on_audio_ready(turn, audio)

    async def _on_synthesis_failed(self, turn: int, error: Exception) -> None:
        async with self._lock:
            if not self._is_current(turn, SessionStatus.SPEAKING, "synthesis failure"):
                return
            # The reply is already in the log; only the voice is lost
            self._report("tts", error, "Voice Unavailable",
                         "The reply is shown as text, but it could not be spoken.",
                         severity=ErrorSeverity.WARNING)
            self.state_machine.transition_to(SessionStatus.IDLE, "synthesis failed")

    async def _on_audio_ready(self, turn: int, audio: AudioOutput) -> None:
        async with self._lock:
            if not self._is_current(turn, SessionStatus.SPEAKING, "audio"):
                return
            try:
                handle = await self.playback.play(audio)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self._fail_playback(e)
                return
            self._spawn(self._watch_playback(turn, handle))

    async def _watch_playback(self, turn: int, handle: PlaybackHandle) -> None:
        try:
            reason = await self.playback.wait(handle)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            async with self._lock:
                if self._is_current(turn, SessionStatus.SPEAKING, "playback failure"):
                    self._fail_playback(e)
            return
        if reason == PlaybackExit.COMPLETED:
            await self._on_playback_ended(turn)

    def _fail_playback(self, error: Exception) -> None:
        self._report("playback", error, "Playback Error", "The spoken reply could not be played.")
        self.state_machine.transition_to(SessionStatus.IDLE, "playback failed")

    async def _on_playback_ended(self, turn: int) -> None:
        async with self._lock:
            if not self._is_current(turn, SessionStatus.SPEAKING, "playback end"):
                return
            self.state_machine.transition_to(SessionStatus.IDLE, "playback ended")
            if self.mode == ConversationMode.CONTINUOUS and self.active:
                self.relisten.arm(self._on_relisten_due)

    async def _on_relisten_due(self, timer: RelistenTimer) -> None:
        async with self._lock:
            if timer.cancelled or timer is not self.relisten.current:
                return
            if not (self.mode == ConversationMode.CONTINUOUS and self.active):
                return
            if self.status != SessionStatus.IDLE:
                logger.debug(f"Relisten skipped while {self.status.value}")
                return
            self._begin_listening("relisten")

    # ------------------------------------------------------------------
    # Capture events
    # ------------------------------------------------------------------

    async def _on_capture_transcript(self, text: str, session: int) -> None:
        async with self._lock:
            if session != self.capture.session or self.status != SessionStatus.LISTENING:
                logger.debug("Discarding transcript from a stopped capture session")
                return
            await self._accept_transcript(text, source="transcript")

    async def _on_capture_error(self, code: CaptureErrorCode, message: str, session: int) -> None:
        async with self._lock:
            if session != self.capture.session:
                return
            await self.capture.stop()
            self.relisten.cancel()
            self.state_machine.set_active(False)
            self._report("capture", RuntimeError(message), "Voice Recognition Error",
                         f"Speech recognition error: {code.description}",
                         context={'code': code.value})
            if self.status == SessionStatus.LISTENING:
                self.state_machine.transition_to(SessionStatus.IDLE, f"capture error: {code.value}")

    async def _on_capture_end(self, session: int) -> None:
        async with self._lock:
            if session != self.capture.session or self.status != SessionStatus.LISTENING:
                return
            if self.mode == ConversationMode.CONTINUOUS and self.active:
                logger.debug("Capture ended on its own; restarting")
                self.capture.start()
                return
            self.state_machine.transition_to(SessionStatus.IDLE, "capture ended")

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def _notify_capture_unavailable(self) -> None:
        self._publish(Notification(
            title="Voice Input Unavailable",
            description="Speech recognition is not supported here. You can still type your messages.",
            severity="info",
            component="capture"
        ))

    def _report(self,
                component: str,
                error: Exception,
                title: str,
                description: str,
                severity: ErrorSeverity = ErrorSeverity.RECOVERABLE,
                context: Optional[Dict[str, Any]] = None) -> None:
        self.error_handler.handle_error(ComponentError(
            component=component,
            severity=severity,
            message=title,
            exception=error,
            context=context or {}
        ))
        self._publish(Notification(
            title=title,
            description=description,
            severity="warning" if severity == ErrorSeverity.WARNING else "error",
            component=component
        ))

    def _publish(self, notification: Notification) -> None:
        self.notifications.append(notification)
        for listener in list(self._notification_listeners):
            try:
                listener(notification)
            except Exception as e:
                logger.warning(f"Notification listener failed: {e}")
