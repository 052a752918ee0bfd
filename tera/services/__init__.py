"""Services module initialization."""

from tera.services.stt import STTService
from tera.services.tts import TTSService
from tera.services.llm import LLMService

__all__ = [
    "STTService",
    "TTSService",
    "LLMService"
]
