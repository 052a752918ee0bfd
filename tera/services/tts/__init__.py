"""
Text-to-Speech Service.
Turns bot replies into an audio reference the client can play.

Two backends:
- ``narration``: returns the text itself as a ``data:text/plain`` URI so the
  client's built-in speech synthesis reads it out
- ``edge``: generates MP3 audio with edge-tts, returned as ``data:audio/mpeg``
"""

import logging
from dataclasses import dataclass
from typing import Optional

import edge_tts

from tera.config import get_settings
from tera.core.data_uri import build_audio_uri, build_narration_uri
from tera.core.exceptions import TTSException, TTSUnsupportedBackendException
from tera.core.language import LanguageCode

logger = logging.getLogger(__name__)
settings = get_settings()

SUPPORTED_BACKENDS = ["narration", "edge"]


@dataclass
class TTSResult:
    """Result from text-to-speech synthesis."""
    audio_data_uri: str
    language: LanguageCode
    backend: str


class TTSService:
    """
    Speech synthesis adapter.

    Failures raise ``TTSException``; callers keep the message without audio.
    """

    def __init__(self, backend: Optional[str] = None):
        self._backend = (backend or settings.TTS_BACKEND).lower()
        self._voices = {
            LanguageCode.EN: settings.EDGE_TTS_VOICE_EN,
            LanguageCode.TE: settings.EDGE_TTS_VOICE_TE
        }

    @property
    def backend(self) -> str:
        return self._backend

    async def initialize(self):
        """Validate the configured backend."""
        if self._backend not in SUPPORTED_BACKENDS:
            raise TTSUnsupportedBackendException(self._backend, SUPPORTED_BACKENDS)
        logger.info(f"TTS service initialized with backend: {self._backend}")

    async def synthesize(self, text: str, language: LanguageCode) -> TTSResult:
        """
        Synthesize speech for a reply.

        Args:
            text: Text to speak
            language: Language code (en, te)

        Returns:
            TTSResult with the audio data URI
        """
        language = LanguageCode(language)

        if self._backend == "narration":
            return TTSResult(
                audio_data_uri=build_narration_uri(text),
                language=language,
                backend=self._backend
            )

        if self._backend == "edge":
            audio = await self._edge_tts_synthesize(text, language)
            return TTSResult(
                audio_data_uri=build_audio_uri(audio, "audio/mpeg"),
                language=language,
                backend=self._backend
            )

        raise TTSUnsupportedBackendException(self._backend, SUPPORTED_BACKENDS)

    async def _edge_tts_synthesize(self, text: str, language: LanguageCode) -> bytes:
        """Generate MP3 audio with edge-tts."""
        if not text.strip():
            raise TTSException("Nothing to synthesize", details={"language": language.value})

        voice = self._voices[language]

        try:
            communicate = edge_tts.Communicate(text, voice)
            audio_data = b''

            async for chunk in communicate.stream():
                if chunk["type"] == "audio":
                    audio_data += chunk["data"]

        except Exception as e:
            logger.error(f"edge-tts error: {e}")
            raise TTSException(f"Speech generation failed: {e}", details={"voice": voice})

        if not audio_data:
            raise TTSException("Speech generation returned no audio", details={"voice": voice})

        logger.info(f"Synthesized {len(audio_data)} bytes with {voice}")
        return audio_data

    async def cleanup(self):
        """Cleanup resources."""
        logger.info("TTS service cleaned up")
