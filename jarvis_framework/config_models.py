"""
Pydantic configuration models with validation.
"""

import os
from typing import Optional, Dict, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .models.data_models import ConversationMode


class WhisperCaptureConfig(BaseModel):
    """OpenAI Whisper speech capture configuration."""
    api_key: Optional[str] = Field(None, description="OpenAI API key (capture disabled when missing)")
    model: str = Field("whisper-1", description="Whisper model")
    sample_rate: int = Field(16000, ge=8000, le=48000, description="Audio sample rate")
    language: str = Field("en", description="Language code")
    silence_threshold: float = Field(0.01, gt=0.0, lt=1.0, description="Speech energy threshold")
    silence_duration: float = Field(1.2, gt=0.0, le=10.0, description="Trailing silence ending an utterance")
    no_speech_timeout: float = Field(8.0, gt=0.0, description="Seconds before no-speech error")
    max_utterance_seconds: float = Field(30.0, gt=0.0, le=120.0, description="Longest utterance")
    input_device_index: Optional[int] = Field(None, description="Audio input device index")


class WebhookConfig(BaseModel):
    """Automation webhook response configuration."""
    webhook_url: Optional[str] = Field(None, description="Default webhook URL")
    timeout: float = Field(30.0, gt=0.0, le=300.0, description="Request timeout in seconds")
    fallback_on_error: bool = Field(True, description="Answer with a canned reply on failure")

    @field_validator('webhook_url')
    @classmethod
    def validate_url(cls, v):
        if v and not v.startswith(('http://', 'https://')):
            raise ValueError('Webhook URL must start with http:// or https://')
        return v or None


class ElevenLabsConfig(BaseModel):
    """ElevenLabs TTS configuration."""
    model_config = ConfigDict(protected_namespaces=())

    api_key: str = Field(..., description="ElevenLabs API key")
    voice_id: str = Field("onwK4e9ZLuTAKqWW03F9", min_length=1, description="Fixed voice identifier")
    model_id: str = Field("eleven_multilingual_v2", description="Synthesis model")
    stability: float = Field(0.5, ge=0.0, le=1.0, description="Voice stability")
    similarity_boost: float = Field(0.75, ge=0.0, le=1.0, description="Voice similarity boost")
    timeout: float = Field(30.0, gt=0.0, le=300.0, description="Request timeout in seconds")

    @field_validator('api_key')
    @classmethod
    def validate_api_key(cls, v):
        if not v or len(v) < 10:
            raise ValueError('Invalid ElevenLabs API key (too short)')
        return v


class PlaybackConfig(BaseModel):
    """ffplay playback configuration."""
    binary: str = Field("ffplay", min_length=1, description="ffplay executable")
    volume: Optional[int] = Field(None, ge=0, le=100, description="Playback volume")


class ConversationConfig(BaseModel):
    """Conversation behaviour configuration."""
    history_window: int = Field(5, ge=0, le=50, description="Prior messages sent with each request")
    relisten_delay: float = Field(1.0, ge=0.0, le=10.0, description="Pause before listening again")
    initial_mode: ConversationMode = Field(ConversationMode.SINGLE, description="Mode at startup")
    voice_id: Optional[str] = Field(None, description="Voice passed to the synthesizer")


class FrameworkConfig(BaseModel):
    """Complete framework configuration."""
    capture: WhisperCaptureConfig
    response: WebhookConfig
    tts: ElevenLabsConfig
    playback: PlaybackConfig = Field(default_factory=PlaybackConfig)
    conversation: ConversationConfig = Field(default_factory=ConversationConfig)

    @model_validator(mode='after')
    def default_voice(self):
        """Use the synthesizer's voice unless the conversation overrides it."""
        if not self.conversation.voice_id:
            self.conversation.voice_id = self.tts.voice_id
        return self

    @classmethod
    def from_env(cls) -> 'FrameworkConfig':
        """Load configuration from environment variables."""
        return cls(
            capture=WhisperCaptureConfig(api_key=os.getenv('OPENAI_API_KEY') or None),
            response=WebhookConfig(webhook_url=os.getenv('N8N_WEBHOOK_URL') or None),
            tts=ElevenLabsConfig(
                api_key=os.getenv('ELEVENLABS_API_KEY', ''),
                **({'voice_id': os.environ['ELEVENLABS_VOICE_ID']} if os.getenv('ELEVENLABS_VOICE_ID') else {})
            ),
        )

    def to_legacy_dict(self) -> Dict[str, Any]:
        """Convert to the configuration dictionary format used by the factory."""
        conversation = self.conversation.model_dump()
        conversation['initial_mode'] = self.conversation.initial_mode.value
        return {
            'capture': {'provider': 'openai_whisper', 'config': self.capture.model_dump()},
            'response': {'provider': 'webhook', 'config': self.response.model_dump()},
            'tts': {'provider': 'elevenlabs', 'config': self.tts.model_dump()},
            'playback': {'provider': 'ffplay', 'config': self.playback.model_dump()},
            'conversation': conversation,
        }


def validate_framework_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate the sections of a configuration dictionary that have models.

    Raises:
        pydantic.ValidationError: If any section is invalid
    """
    WhisperCaptureConfig(**config['capture']['config'])
    WebhookConfig(**config['response']['config'])
    if config['tts']['provider'] == 'elevenlabs':
        ElevenLabsConfig(**config['tts']['config'])
    PlaybackConfig(**config['playback']['config'])
    ConversationConfig(**config['conversation'])
    return config
