"""Core module initialization."""

from tera.core.exceptions import (
    TeraException,
    STTException,
    TTSException,
    LLMException,
    PlatformException,
    SessionException
)
from tera.core.language import LanguageCode, detect_language

__all__ = [
    "TeraException",
    "STTException",
    "TTSException",
    "LLMException",
    "PlatformException",
    "SessionException",
    "LanguageCode",
    "detect_language"
]
