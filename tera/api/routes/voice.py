"""
Voice REST Endpoints.
Transcription of recorded audio, speech synthesis and narration voice choice.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Request
from pydantic import BaseModel

from tera.config import get_settings, NARRATION_LOCALES
from tera.core.language import LanguageCode
from tera.services.platform import Voice, select_voice

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter()


class TranscribeRequest(BaseModel):
    """Recorded audio as a data URI, e.g. ``data:audio/webm;base64,...``."""
    audio_data_uri: str
    language: Optional[LanguageCode] = None
    session_id: Optional[str] = None


class SynthesizeRequest(BaseModel):
    text: str
    language: LanguageCode = LanguageCode.EN


class VoiceModel(BaseModel):
    """A voice offered by the client's speech platform."""
    id: str = ""
    name: str
    lang: str
    default: bool = False


class VoiceSelectRequest(BaseModel):
    voices: List[VoiceModel]
    language: LanguageCode
    gender: Optional[str] = None


@router.post("/transcribe")
async def transcribe(request: Request, body: TranscribeRequest):
    """
    Transcribe recorded audio into text for the input box.

    Failures come back as an empty transcription plus a notice; the
    conversation is left unchanged.
    """
    session = await request.app.state.session_manager.get_or_create_session(
        body.session_id,
        body.language
    )
    language = body.language or session.voice_language

    outcome = await request.app.state.orchestrator.transcribe(
        session,
        body.audio_data_uri,
        language
    )

    return {
        "session_id": session.session_id,
        "text": outcome.text,
        "language": LanguageCode(language).value,
        "notices": [n.to_dict() for n in outcome.notices]
    }


@router.post("/synthesize")
async def synthesize(request: Request, body: SynthesizeRequest):
    """Produce an audio reference for text."""
    result = await request.app.state.tts_service.synthesize(body.text, body.language)

    return {
        "audio_data_uri": result.audio_data_uri,
        "language": result.language.value,
        "backend": result.backend
    }


@router.post("/select")
async def select(body: VoiceSelectRequest):
    """Pick the narration voice for a language from the client's voice list."""
    voices = [Voice(id=v.id or v.name, name=v.name, lang=v.lang, default=v.default) for v in body.voices]
    voice = select_voice(voices, body.language, body.gender)

    return {
        "language": body.language.value,
        "locale": NARRATION_LOCALES[body.language.value],
        "voice": {
            "id": voice.id,
            "name": voice.name,
            "lang": voice.lang,
            "default": voice.default
        } if voice else None
    }
