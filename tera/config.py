"""
Configuration management for TeRA.
Loads settings from environment variables with sensible defaults.
"""

from pathlib import Path
from typing import Optional, List
from pydantic_settings import BaseSettings
from pydantic import Field
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # =========================
    # Application Settings
    # =========================
    APP_NAME: str = "Ask TeRA"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = Field(default=False, description="Enable debug mode")
    ENVIRONMENT: str = Field(default="development", description="Environment name")

    # =========================
    # API Keys
    # =========================
    GROQ_API_KEY: Optional[str] = Field(
        default=None,
        description="Groq API key for reply generation and transcription"
    )

    # =========================
    # Server Settings
    # =========================
    HOST: str = Field(default="0.0.0.0", description="Server host")
    PORT: int = Field(default=8000, description="Server port")

    # =========================
    # Model Settings
    # =========================
    LLM_MODEL_ID: str = Field(
        default="llama-3.1-8b-instant",
        description="Groq chat model used for the generative fallback"
    )
    LLM_TEMPERATURE: float = Field(default=0.4, description="Sampling temperature")
    LLM_MAX_TOKENS: int = Field(default=512, description="Maximum tokens per reply")
    STT_MODEL_ID: str = Field(
        default="whisper-large-v3",
        description="Groq Whisper model used for transcription"
    )

    # =========================
    # Speech Settings
    # =========================
    TTS_BACKEND: str = Field(
        default="narration",
        description="'narration' echoes text for platform speech, 'edge' generates audio"
    )
    EDGE_TTS_VOICE_EN: str = Field(default="en-IN-NeerjaNeural", description="edge-tts English voice")
    EDGE_TTS_VOICE_TE: str = Field(default="te-IN-ShrutiNeural", description="edge-tts Telugu voice")
    NARRATION_VOICE_GENDER: str = Field(
        default="female",
        description="Preferred substring in platform voice names, empty to disable"
    )

    # =========================
    # Audio Capture Settings
    # =========================
    AUDIO_SAMPLE_RATE: int = Field(default=16000, description="Audio sample rate in Hz")
    AUDIO_CHANNELS: int = Field(default=1, description="Number of audio channels")
    AUDIO_CHUNK_SIZE: int = Field(default=1600, description="Audio chunk size (100ms at 16kHz)")

    # =========================
    # Latency Settings
    # =========================
    LLM_TIMEOUT_SECONDS: float = Field(default=15.0, description="LLM API timeout")
    STT_TIMEOUT_SECONDS: float = Field(default=30.0, description="Transcription API timeout")
    REPLY_DELAY_MIN_MS: int = Field(default=200, description="Minimum typing pause before a reply")
    REPLY_DELAY_MAX_MS: int = Field(default=500, description="Maximum typing pause before a reply")

    # =========================
    # Session Settings
    # =========================
    SESSION_TIMEOUT_MINUTES: int = Field(default=30, description="Session idle timeout")
    MAX_SESSIONS: int = Field(default=100, description="Maximum concurrent sessions")

    # =========================
    # Logging Settings
    # =========================
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    AGENT_LOG_PATH: Path = Field(
        default=Path("./logs/agent_log.md"),
        description="Path to agent markdown log"
    )

    # =========================
    # Supported Languages
    # =========================
    SUPPORTED_LANGUAGES: List[str] = Field(
        default=["en", "te"],
        description="Supported language codes"
    )
    DEFAULT_LANGUAGE: str = Field(default="en", description="Default language")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Language mapping for display names
LANGUAGE_NAMES = {
    "en": "English",
    "te": "Telugu (తెలుగు)"
}

# Language to platform narration locale
NARRATION_LOCALES = {
    "en": "en-US",
    "te": "te-IN"
}
