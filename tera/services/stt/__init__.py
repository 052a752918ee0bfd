"""
Speech-to-Text Service using Groq Whisper.
Transcribes recorded audio data URIs in English or Telugu.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Optional

from groq import AsyncGroq

from tera.config import get_settings
from tera.core.data_uri import parse_data_uri
from tera.core.exceptions import (
    STTException,
    STTInvalidAudioException,
    STTNoAudioException,
    UnsupportedAudioFormatException
)
from tera.core.language import LanguageCode

logger = logging.getLogger(__name__)
settings = get_settings()

# File extension Whisper uses to sniff the container format
AUDIO_EXTENSIONS = {
    "audio/webm": "webm",
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/wave": "wav",
    "audio/mpeg": "mp3",
    "audio/mp3": "mp3",
    "audio/ogg": "ogg",
    "audio/mp4": "m4a",
    "audio/m4a": "m4a",
    "audio/flac": "flac",
}


@dataclass
class STTResult:
    """Result from speech-to-text transcription."""
    text: str
    language: LanguageCode
    audio_bytes: int
    processing_time_ms: Optional[float] = None


class STTService:
    """
    Transcription adapter around Groq's Whisper endpoint.

    Failures surface as ``STTException`` so the caller can show a notice and
    leave the input empty.
    """

    def __init__(self, client: Optional[Any] = None):
        self._client = client
        self._model = settings.STT_MODEL_ID

    @property
    def is_configured(self) -> bool:
        return self._client is not None or bool(settings.GROQ_API_KEY)

    async def initialize(self):
        """Create the Groq client when an API key is available."""
        if self._client is not None:
            return

        if not settings.GROQ_API_KEY:
            logger.warning("GROQ_API_KEY not set, transcription is unavailable")
            return

        self._client = AsyncGroq(api_key=settings.GROQ_API_KEY)
        logger.info(f"STT service initialized with model: {self._model}")

    async def transcribe(self, audio_data_uri: str, language: LanguageCode) -> STTResult:
        """
        Transcribe a recorded audio data URI.

        Args:
            audio_data_uri: ``data:<mimetype>;base64,<audio>``
            language: Language spoken in the recording

        Returns:
            STTResult with the transcription
        """
        language = LanguageCode(language)

        try:
            audio = parse_data_uri(audio_data_uri)
        except UnsupportedAudioFormatException:
            raise STTInvalidAudioException("not a data URI")

        if not audio.mime_type.startswith("audio/") or not audio.is_base64:
            raise STTInvalidAudioException(f"expected base64 audio, got {audio.mime_type}")

        if not audio.data:
            raise STTNoAudioException()

        if self._client is None:
            raise STTException("Transcription service is not configured")

        extension = AUDIO_EXTENSIONS.get(audio.mime_type, "webm")
        start_time = time.time()

        try:
            transcription = await asyncio.wait_for(
                self._client.audio.transcriptions.create(
                    file=(f"recording.{extension}", audio.data),
                    model=self._model,
                    language=language.value,
                    response_format="json"
                ),
                timeout=settings.STT_TIMEOUT_SECONDS
            )
        except asyncio.TimeoutError:
            raise STTException(
                f"Transcription timed out after {settings.STT_TIMEOUT_SECONDS} seconds",
                details={"timeout_seconds": settings.STT_TIMEOUT_SECONDS}
            )
        except Exception as e:
            logger.error(f"Transcription error: {e}")
            raise STTException(f"Transcription failed: {e}")

        text = (getattr(transcription, "text", None) or "").strip()
        processing_time_ms = (time.time() - start_time) * 1000
        logger.info(f"Transcribed {len(audio.data)} bytes in {processing_time_ms:.0f}ms")

        return STTResult(
            text=text,
            language=language,
            audio_bytes=len(audio.data),
            processing_time_ms=processing_time_ms
        )

    async def cleanup(self):
        """Cleanup resources."""
        if self._client is not None and hasattr(self._client, "close"):
            await self._client.close()
        self._client = None
        logger.info("STT service cleaned up")
