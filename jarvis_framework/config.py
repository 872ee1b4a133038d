"""
Configuration for the voice conversation framework.
Organized into discrete feature sections for clarity.
"""

import os
from pathlib import Path
from typing import Dict, Any
from dotenv import load_dotenv


# =============================================================================
# SECTION 1: ENVIRONMENT & CREDENTIALS
# =============================================================================

# Load environment variables from the project root
parent_dir = Path(__file__).parent.parent
env_path = parent_dir / ".env"
if env_path.exists():
    load_dotenv(env_path)


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}")


# =============================================================================
# SECTION 2: PROVIDER SELECTION
# =============================================================================

CAPTURE_PROVIDER = os.getenv("CAPTURE_PROVIDER", "openai_whisper")
RESPONSE_PROVIDER = os.getenv("RESPONSE_PROVIDER", "webhook")
TTS_PROVIDER = os.getenv("TTS_PROVIDER", "elevenlabs")  # Options: "elevenlabs", "openai_tts"
PLAYBACK_PROVIDER = "ffplay"


# =============================================================================
# SECTION 3: SPEECH CAPTURE (OpenAI Whisper)
# =============================================================================

WHISPER_CAPTURE_CONFIG = {
    "api_key": os.getenv("OPENAI_API_KEY"),
    "model": "whisper-1",
    "sample_rate": 16000,
    "language": "en",
    "silence_threshold": 0.01,      # RMS energy that counts as speech
    "silence_duration": 1.2,        # Trailing silence that ends an utterance
    "no_speech_timeout": 8.0,       # Give up if nobody speaks
    "max_utterance_seconds": 30.0,
}


# =============================================================================
# SECTION 4: RESPONSE GENERATOR (automation webhook)
# =============================================================================

WEBHOOK_CONFIG = {
    "webhook_url": os.getenv("N8N_WEBHOOK_URL"),
    "timeout": _env_float("WEBHOOK_TIMEOUT", 30.0),
    "fallback_on_error": True,
}


# =============================================================================
# SECTION 5: SPEECH SYNTHESIS
# =============================================================================

ELEVENLABS_CONFIG = {
    "api_key": os.getenv("ELEVENLABS_API_KEY"),
    "voice_id": os.getenv("ELEVENLABS_VOICE_ID", "onwK4e9ZLuTAKqWW03F9"),
    "model_id": "eleven_multilingual_v2",
    "stability": 0.5,
    "similarity_boost": 0.75,
    "timeout": 30.0,
}

OPENAI_TTS_CONFIG = {
    "api_key": os.getenv("OPENAI_API_KEY"),
    "model": "gpt-4o-mini-tts",
    "voice": "onyx",
    "speed": 1.0,
    "response_format": "mp3",
}


# =============================================================================
# SECTION 6: PLAYBACK
# =============================================================================

PLAYBACK_CONFIG = {
    "binary": os.getenv("FFPLAY_BINARY", "ffplay"),
    "volume": None,
}


# =============================================================================
# SECTION 7: CONVERSATION BEHAVIOUR
# =============================================================================

CONVERSATION_CONFIG = {
    "history_window": 5,            # Prior messages sent with each request
    "relisten_delay": _env_float("RELISTEN_DELAY", 1.0),
    "initial_mode": os.getenv("CONVERSATION_MODE", "single"),
}


# =============================================================================
# SECTION 8: SETTINGS STORE
# =============================================================================

SETTINGS_PATH = Path(os.getenv("JARVIS_SETTINGS_PATH", Path.home() / ".jarvis" / "settings.json"))


def _tts_section() -> Dict[str, Any]:
    if TTS_PROVIDER == "openai_tts":
        return {'provider': 'openai_tts', 'config': dict(OPENAI_TTS_CONFIG)}
    return {'provider': TTS_PROVIDER, 'config': dict(ELEVENLABS_CONFIG)}


def get_framework_config() -> Dict[str, Any]:
    """
    Build the complete framework configuration dictionary.

    Returns:
        Dict with one {'provider', 'config'} section per collaborator plus
        'conversation' and 'settings'
    """
    tts = _tts_section()
    conversation = dict(CONVERSATION_CONFIG)
    # The synthesizer voice is fixed for a session
    conversation.setdefault('voice_id', tts['config'].get('voice_id') or tts['config'].get('voice'))

    return {
        'capture': {'provider': CAPTURE_PROVIDER, 'config': dict(WHISPER_CAPTURE_CONFIG)},
        'response': {'provider': RESPONSE_PROVIDER, 'config': dict(WEBHOOK_CONFIG)},
        'tts': tts,
        'playback': {'provider': PLAYBACK_PROVIDER, 'config': dict(PLAYBACK_CONFIG)},
        'conversation': conversation,
        'settings': {'path': str(SETTINGS_PATH)},
    }


def _mask(value: Any) -> str:
    if not value:
        return "(not set)"
    value = str(value)
    return f"{'*' * 8}{value[-4:]}"


def print_config_summary() -> None:
    """Print a human-readable configuration summary (secrets masked)."""
    config = get_framework_config()
    print(f"Capture:      {config['capture']['provider']} (key {_mask(config['capture']['config'].get('api_key'))})")
    print(f"Response:     {config['response']['provider']} → {config['response']['config'].get('webhook_url') or '(no default URL)'}")
    print(f"TTS:          {config['tts']['provider']} (key {_mask(config['tts']['config'].get('api_key'))})")
    print(f"Voice:        {config['conversation'].get('voice_id')}")
    print(f"Playback:     {config['playback']['provider']} ({config['playback']['config'].get('binary')})")
    print(f"History:      {config['conversation']['history_window']} messages")
    print(f"Relisten:     {config['conversation']['relisten_delay']}s")
    print(f"Initial mode: {config['conversation']['initial_mode']}")
    print(f"Settings:     {config['settings']['path']}")
