"""
Pytest configuration and shared fixtures.

Test settings are set as environment variables before any tera import so the
module-level settings pick them up.
"""

import os
import tempfile
from pathlib import Path

import pytest

_LOG_DIR = tempfile.mkdtemp(prefix="tera-tests-")

os.environ["GROQ_API_KEY"] = ""
os.environ["TTS_BACKEND"] = "narration"
os.environ["REPLY_DELAY_MIN_MS"] = "0"
os.environ["REPLY_DELAY_MAX_MS"] = "0"
os.environ["NARRATION_VOICE_GENDER"] = "female"
os.environ["AGENT_LOG_PATH"] = str(Path(_LOG_DIR) / "agent_log.md")

# Clear settings cache before any app imports to ensure test env vars are used
from tera.config import get_settings
get_settings.cache_clear()

from tera.logging.agent_logger import AgentLogger
from tera.core.pipeline import ConversationOrchestrator
from tera.services.llm import LLMService
from tera.services.stt import STTService
from tera.services.tts import TTSService

from tests.fakes import FakeGroqClient, FakeSpeechPlatform


@pytest.fixture
def groq_client():
    return FakeGroqClient(content="T-Fiber installation usually takes two to three days.")


@pytest.fixture
def platform():
    return FakeSpeechPlatform()


@pytest.fixture
def agent_logger(tmp_path):
    return AgentLogger(str(tmp_path / "agent_log.md"))


@pytest.fixture
def orchestrator(groq_client, agent_logger):
    """Orchestrator with fake Groq client and narration speech, no platform."""
    return ConversationOrchestrator(
        llm_service=LLMService(client=groq_client),
        tts_service=TTSService("narration"),
        stt_service=STTService(client=groq_client),
        agent_logger=agent_logger
    )


@pytest.fixture
def voice_orchestrator(groq_client, agent_logger, platform):
    """Orchestrator wired to the fake speech platform."""
    return ConversationOrchestrator(
        llm_service=LLMService(client=groq_client),
        tts_service=TTSService("narration"),
        stt_service=STTService(client=groq_client),
        agent_logger=agent_logger,
        platform=platform
    )
