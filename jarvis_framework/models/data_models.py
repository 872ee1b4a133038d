"""
Common data structures for the voice conversation framework.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any


class MessageRole(str, Enum):
    """Enum for message roles."""
    USER = "user"
    ASSISTANT = "assistant"


class SessionStatus(str, Enum):
    """Assistant status shown to the presentation layer."""
    IDLE = "idle"
    LISTENING = "listening"
    PROCESSING = "processing"
    SPEAKING = "speaking"


class ConversationMode(str, Enum):
    """Single turn vs. continuous auto-relisten loop."""
    SINGLE = "single"
    CONTINUOUS = "continuous"


class AudioFormat(str, Enum):
    """Enum for audio formats."""
    MP3 = "mp3"
    WAV = "wav"
    PCM16 = "pcm16"
    OGG = "ogg"


class CaptureErrorCode(str, Enum):
    """Failures reported by the speech capture adapter."""
    PERMISSION_DENIED = "permission_denied"
    NO_SPEECH = "no_speech"
    NETWORK = "network"
    AUDIO_CAPTURE = "audio_capture"
    NOT_ALLOWED = "not_allowed"
    NOT_SUPPORTED = "not_supported"
    ABORTED = "aborted"
    UNKNOWN = "unknown"

    @property
    def description(self) -> str:
        return _CAPTURE_ERROR_DESCRIPTIONS[self]


_CAPTURE_ERROR_DESCRIPTIONS = {
    CaptureErrorCode.PERMISSION_DENIED: "Microphone permission was denied",
    CaptureErrorCode.NO_SPEECH: "No speech was detected",
    CaptureErrorCode.NETWORK: "Speech service is unreachable",
    CaptureErrorCode.AUDIO_CAPTURE: "Audio capture device failed",
    CaptureErrorCode.NOT_ALLOWED: "Speech service is not permitted in this environment",
    CaptureErrorCode.NOT_SUPPORTED: "Speech recognition is not supported here",
    CaptureErrorCode.ABORTED: "Speech capture was aborted",
    CaptureErrorCode.UNKNOWN: "Speech capture failed",
}


@dataclass(frozen=True)
class Message:
    """One turn entry in the conversation log. Immutable once created."""
    role: MessageRole
    content: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the wire format sent as conversation history."""
        return {
            'id': self.id,
            'role': self.role.value,
            'content': self.content,
            'timestamp': self.timestamp.isoformat(),
        }


@dataclass
class SessionState:
    """The single source of truth for assistant status."""
    status: SessionStatus = SessionStatus.IDLE
    mode: ConversationMode = ConversationMode.SINGLE
    active: bool = False

    def snapshot(self) -> Dict[str, Any]:
        return {
            'status': self.status.value,
            'mode': self.mode.value,
            'active': self.active,
        }


@dataclass
class TranscriptionResult:
    """Standardized output from all STT providers."""
    text: str
    is_final: bool
    timestamp: float = field(default_factory=lambda: datetime.now().timestamp())
    confidence: Optional[float] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return f"{'[FINAL]' if self.is_final else '[PARTIAL]'} {self.text}"


@dataclass
class ResponseResult:
    """Standardized output from response generators."""
    text: str
    success: bool = True
    fallback: bool = False
    error: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class AudioOutput:
    """Standardized output from all TTS providers."""
    audio_data: bytes
    format: AudioFormat
    sample_rate: int
    voice: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def get_size_mb(self) -> float:
        """Get audio data size in megabytes."""
        return len(self.audio_data) / (1024 * 1024)

    def is_valid(self) -> bool:
        """Check if audio output is valid."""
        return len(self.audio_data) > 0 and self.sample_rate > 0


@dataclass
class Notification:
    """User-visible, non-fatal notice (error or info)."""
    title: str
    description: str
    severity: str = "error"
    component: str = "orchestrator"
    timestamp: float = field(default_factory=lambda: datetime.now().timestamp())
