"""
Factory for creating provider instances based on configuration.
"""

from pathlib import Path
from typing import Dict, Any, Optional

try:
    from .interfaces import (
        TranscriptionInterface,
        ResponseInterface,
        TextToSpeechInterface,
        SettingsStoreInterface,
        AudioPlayer
    )
    from .providers.transcription import OpenAIWhisperCaptureProvider
    from .providers.response import WebhookResponseProvider
    from .providers.tts import ElevenLabsTTSProvider, OpenAITTSProvider
    from .providers.playback import FfplayAudioPlayer
    from .utils.settings_store import JsonSettingsStore
    from .orchestrator import ConversationOrchestrator
except ImportError:
    from jarvis_framework.interfaces import (
        TranscriptionInterface,
        ResponseInterface,
        TextToSpeechInterface,
        SettingsStoreInterface,
        AudioPlayer
    )
    from jarvis_framework.providers.transcription import OpenAIWhisperCaptureProvider
    from jarvis_framework.providers.response import WebhookResponseProvider
    from jarvis_framework.providers.tts import ElevenLabsTTSProvider, OpenAITTSProvider
    from jarvis_framework.providers.playback import FfplayAudioPlayer
    from jarvis_framework.utils.settings_store import JsonSettingsStore
    from jarvis_framework.orchestrator import ConversationOrchestrator


class ProviderFactory:
    """Factory for creating provider instances."""

    CAPTURE_PROVIDERS = {
        'openai_whisper': OpenAIWhisperCaptureProvider,
    }

    RESPONSE_PROVIDERS = {
        'webhook': WebhookResponseProvider,
    }

    TTS_PROVIDERS = {
        'elevenlabs': ElevenLabsTTSProvider,
        'openai_tts': OpenAITTSProvider,
    }

    PLAYBACK_PROVIDERS = {
        'ffplay': FfplayAudioPlayer,
    }

    @staticmethod
    def _create(registry: Dict[str, Any], kind: str, provider_name: str, config: Dict[str, Any]):
        if provider_name not in registry:
            available = ', '.join(registry.keys())
            raise ValueError(f"Unsupported {kind} provider: {provider_name}. Available: {available}")
        return registry[provider_name](config)

    @classmethod
    def create_capture_provider(cls, provider_name: str, config: Dict[str, Any]) -> TranscriptionInterface:
        """
        Create a speech capture provider instance.

        Raises:
            ValueError: If provider name is not supported
        """
        return cls._create(cls.CAPTURE_PROVIDERS, 'capture', provider_name, config)

    @classmethod
    def create_response_provider(cls, provider_name: str, config: Dict[str, Any]) -> ResponseInterface:
        """
        Create a response provider instance.

        Raises:
            ValueError: If provider name is not supported
        """
        return cls._create(cls.RESPONSE_PROVIDERS, 'response', provider_name, config)

    @classmethod
    def create_tts_provider(cls, provider_name: str, config: Dict[str, Any]) -> TextToSpeechInterface:
        """
        Create a TTS provider instance.

        Raises:
            ValueError: If provider name is not supported
        """
        return cls._create(cls.TTS_PROVIDERS, 'TTS', provider_name, config)

    @classmethod
    def create_player(cls, provider_name: str, config: Dict[str, Any]) -> AudioPlayer:
        return cls._create(cls.PLAYBACK_PROVIDERS, 'playback', provider_name, config)

    @classmethod
    def create_all_providers(cls, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create every provider that has a section in the configuration.

        Returns:
            Dict keyed by section name ('capture', 'response', 'tts', 'playback')
        """
        creators = {
            'capture': cls.create_capture_provider,
            'response': cls.create_response_provider,
            'tts': cls.create_tts_provider,
            'playback': cls.create_player,
        }
        providers = {}
        for section, create in creators.items():
            if section in config:
                providers[section] = create(config[section]['provider'], config[section]['config'])
        return providers


def build_orchestrator(config: Dict[str, Any],
                       settings: Optional[SettingsStoreInterface] = None) -> ConversationOrchestrator:
    """Construct a ConversationOrchestrator with providers from configuration."""
    providers = ProviderFactory.create_all_providers(config)
    if settings is None and config.get('settings', {}).get('path'):
        settings = JsonSettingsStore(Path(config['settings']['path']))
    return ConversationOrchestrator(
        response=providers['response'],
        tts=providers['tts'],
        player=providers['playback'],
        capture=providers.get('capture'),
        settings=settings,
        config=config.get('conversation', {})
    )
