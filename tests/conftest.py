"""
Pytest configuration and shared fixtures for jarvis_framework tests.
"""

import sys
from pathlib import Path

import pytest
import pytest_asyncio

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from jarvis_framework.orchestrator import ConversationOrchestrator

from fakes import FakeCapture, FakePlayer, FakeResponse, FakeTTS


@pytest.fixture
def response():
    return FakeResponse()


@pytest.fixture
def tts():
    return FakeTTS()


@pytest.fixture
def player():
    return FakePlayer()


@pytest.fixture
def capture():
    return FakeCapture()


@pytest_asyncio.fixture
async def make_orchestrator(response, tts, player, capture):
    """Build (and afterwards clean up) orchestrators wired to the fakes."""
    created = []

    async def _make(capture_provider=capture, settings=None, **config):
        config.setdefault('relisten_delay', 0.01)
        orchestrator = ConversationOrchestrator(
            response=response,
            tts=tts,
            player=player,
            capture=capture_provider,
            settings=settings,
            config=config
        )
        await orchestrator.initialize()
        created.append(orchestrator)
        return orchestrator

    yield _make

    for orchestrator in created:
        await orchestrator.cleanup()
