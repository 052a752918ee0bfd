"""
Speech platform capability interface.

Microphone capture and narration belong to whatever hosts the assistant (a
desktop, a browser). The orchestrator only talks to this interface; the
desktop implementation lives in ``tera.services.platform.local``.
"""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, List, Optional

from tera.config import get_settings, NARRATION_LOCALES
from tera.core.language import LanguageCode

logger = logging.getLogger(__name__)
settings = get_settings()


@dataclass(frozen=True)
class Voice:
    """A narration voice offered by the platform."""
    id: str
    name: str
    lang: str
    default: bool = False

    def matches_language(self, language: LanguageCode) -> bool:
        lang = self.lang.lower().replace("_", "-")
        locale = NARRATION_LOCALES[language.value].lower()
        return lang == locale or lang.startswith(f"{language.value}-") or lang == language.value


class SpeechPlatform(ABC):
    """Host capabilities the assistant needs for voice input and output."""

    @abstractmethod
    async def start_capture(self):
        """
        Take the microphone and start recording.

        Raises:
            CaptureUnavailableException: no microphone or no permission
        """

    @abstractmethod
    async def stop_capture(self) -> Optional[str]:
        """Stop recording, release the microphone and return an audio data URI."""

    @abstractmethod
    def list_voices(self) -> List[Voice]:
        """Narration voices currently available."""

    @abstractmethod
    async def synthesize(self, text: str, locale: str, voice: Optional[Voice] = None):
        """
        Narrate text, returning when narration ends.

        Raises:
            PlaybackException: the platform reported a narration error
        """

    @abstractmethod
    async def cancel_synthesis(self):
        """Stop any narration in progress."""

    @abstractmethod
    async def play_audio(self, audio: bytes, mime_type: str):
        """
        Play generated audio, returning when playback ends.

        Raises:
            PlaybackException: the audio could not be played
        """

    @abstractmethod
    async def stop_audio(self):
        """Stop any audio playback in progress."""


def select_voice(
    voices: Iterable[Voice],
    language: LanguageCode,
    gender: Optional[str] = None
) -> Optional[Voice]:
    """
    Best-effort voice choice for narration.

    Preference: language + gender word in the name, then (English only) the
    platform's default English voice, then any voice of the language. ``None``
    leaves the choice to the platform.
    """
    language = LanguageCode(language)
    gender = (settings.NARRATION_VOICE_GENDER if gender is None else gender).lower()
    candidates = [v for v in voices if v.matches_language(language)]

    if gender:
        for voice in candidates:
            if re.search(rf"\b{re.escape(gender)}\b", voice.name.lower()):
                return voice

    if language == LanguageCode.EN:
        for voice in candidates:
            if voice.default:
                return voice

    if candidates:
        return candidates[0]

    logger.debug(f"No {language.value} voice among platform voices")
    return None
