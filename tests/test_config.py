"""
Tests for configuration models, the configuration dictionary and the provider factory.
"""

import pytest
from pydantic import ValidationError

from jarvis_framework.config import get_framework_config
from jarvis_framework.config_models import (
    ConversationConfig,
    ElevenLabsConfig,
    FrameworkConfig,
    WebhookConfig,
    validate_framework_config,
)
from jarvis_framework.factory import ProviderFactory, build_orchestrator
from jarvis_framework.models.data_models import ConversationMode
from jarvis_framework.providers.playback import FfplayAudioPlayer
from jarvis_framework.providers.response import WebhookResponseProvider
from jarvis_framework.providers.tts import ElevenLabsTTSProvider
from jarvis_framework.utils.settings_store import JsonSettingsStore


@pytest.fixture
def framework_config(tmp_path):
    return {
        'capture': {'provider': 'openai_whisper', 'config': {'api_key': None}},
        'response': {'provider': 'webhook', 'config': {'webhook_url': "https://n8n.example.com/webhook/jarvis"}},
        'tts': {'provider': 'elevenlabs', 'config': {'api_key': "el-test-mock-api-key"}},
        'playback': {'provider': 'ffplay', 'config': {'binary': 'ffplay'}},
        'conversation': {'history_window': 5, 'relisten_delay': 1.0, 'initial_mode': 'continuous',
                         'voice_id': "onwK4e9ZLuTAKqWW03F9"},
        'settings': {'path': str(tmp_path / "settings.json")},
    }


class TestConfigModels:

    def test_webhook_url_must_be_http(self):
        with pytest.raises(ValidationError):
            WebhookConfig(webhook_url="ftp://example.com/hook")
        assert WebhookConfig(webhook_url="").webhook_url is None

    def test_elevenlabs_key_length(self):
        with pytest.raises(ValidationError):
            ElevenLabsConfig(api_key="short")

    def test_conversation_bounds(self):
        with pytest.raises(ValidationError):
            ConversationConfig(relisten_delay=-1)
        assert ConversationConfig().history_window == 5

    def test_framework_config_defaults_voice(self, monkeypatch):
        monkeypatch.setenv('ELEVENLABS_API_KEY', "el-test-mock-api-key")
        monkeypatch.delenv('ELEVENLABS_VOICE_ID', raising=False)

        config = FrameworkConfig.from_env()

        assert config.conversation.voice_id == "onwK4e9ZLuTAKqWW03F9"
        legacy = config.to_legacy_dict()
        assert legacy['tts']['provider'] == 'elevenlabs'
        assert legacy['conversation']['initial_mode'] == 'single'

    def test_validate_framework_config(self, framework_config):
        assert validate_framework_config(framework_config) is framework_config

        framework_config['conversation']['initial_mode'] = 'sometimes'
        with pytest.raises(ValidationError):
            validate_framework_config(framework_config)


class TestFrameworkConfigDict:

    def test_sections(self):
        config = get_framework_config()

        assert set(config) == {'capture', 'response', 'tts', 'playback', 'conversation', 'settings'}
        for section in ('capture', 'response', 'tts', 'playback'):
            assert set(config[section]) == {'provider', 'config'}
        assert config['conversation']['history_window'] == 5
        assert 'voice_id' in config['conversation']


class TestProviderFactory:

    def test_unknown_provider(self):
        with pytest.raises(ValueError, match="Unsupported response provider"):
            ProviderFactory.create_response_provider('carrier_pigeon', {})

    def test_create_all_providers(self, framework_config):
        providers = ProviderFactory.create_all_providers(framework_config)

        assert isinstance(providers['response'], WebhookResponseProvider)
        assert isinstance(providers['tts'], ElevenLabsTTSProvider)
        assert isinstance(providers['playback'], FfplayAudioPlayer)
        assert set(providers) == {'capture', 'response', 'tts', 'playback'}

    @pytest.mark.asyncio
    async def test_build_orchestrator(self, framework_config):
        orchestrator = build_orchestrator(framework_config)

        assert orchestrator.mode == ConversationMode.CONTINUOUS
        assert orchestrator.voice_id == "onwK4e9ZLuTAKqWW03F9"
        assert isinstance(orchestrator._settings, JsonSettingsStore)
