"""
JARVIS voice framework - voice/text conversational front end.

Turns spoken or typed input into a synthesized spoken reply:
- Speech capture (OpenAI Whisper via sounddevice)
- Reply generation through an automation webhook
- Text-to-speech (ElevenLabs or OpenAI)
- ffplay audio playback with immediate interruption
- Single-turn and continuous (auto-relisten) conversation modes

Usage:
    from jarvis_framework import build_orchestrator, get_framework_config

    orchestrator = build_orchestrator(get_framework_config())
    await orchestrator.initialize()
    await orchestrator.submit_text("What's on my calendar?")
"""

from .orchestrator import ConversationOrchestrator
from .factory import ProviderFactory, build_orchestrator
from .config import get_framework_config
from . import interfaces
from . import models
from . import providers

__version__ = "1.0.0"

__all__ = [
    'ConversationOrchestrator',
    'ProviderFactory',
    'build_orchestrator',
    'get_framework_config',
    'interfaces',
    'models',
    'providers'
]
