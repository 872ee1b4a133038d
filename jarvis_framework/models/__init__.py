"""
Data models for the voice conversation framework.
"""

from .data_models import (
    MessageRole,
    SessionStatus,
    ConversationMode,
    AudioFormat,
    CaptureErrorCode,
    Message,
    SessionState,
    TranscriptionResult,
    ResponseResult,
    AudioOutput,
    Notification
)

__all__ = [
    'MessageRole',
    'SessionStatus',
    'ConversationMode',
    'AudioFormat',
    'CaptureErrorCode',
    'Message',
    'SessionState',
    'TranscriptionResult',
    'ResponseResult',
    'AudioOutput',
    'Notification'
]
