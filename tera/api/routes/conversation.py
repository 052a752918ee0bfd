"""
Conversation REST Endpoints.
Send messages, read the log and drive playback state.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Request, HTTPException
from pydantic import BaseModel

from tera.config import get_settings
from tera.core.exceptions import SessionNotFoundException
from tera.core.language import LanguageCode
from tera.core.session import Conversation

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter()


class StartRequest(BaseModel):
    """Request model for opening a conversation."""
    language: LanguageCode = LanguageCode.EN
    session_id: Optional[str] = None


class ConversationMessage(BaseModel):
    """Request model for sending a message."""
    text: str
    session_id: Optional[str] = None


class LanguageRequest(BaseModel):
    """Request model for choosing the voice language."""
    language: LanguageCode


class PlaybackRequest(BaseModel):
    """Request model for reporting client-side playback state."""
    playing: bool


class ConversationResponse(BaseModel):
    """Response model for one conversation turn."""
    session_id: str
    user_message: dict
    bot_message: dict
    reply_source: str
    language: str
    latency_ms: float
    notices: List[dict] = []


async def _require_session(request: Request, session_id: str) -> Conversation:
    session = await request.app.state.session_manager.get_session(session_id)
    if session is None:
        raise SessionNotFoundException(session_id)
    return session


@router.post("/start")
async def start_conversation(request: Request, body: StartRequest):
    """Open a conversation and return the welcome message."""
    session = await request.app.state.session_manager.get_or_create_session(
        body.session_id,
        body.language
    )
    orchestrator = request.app.state.orchestrator
    orchestrator.set_voice_language(session, body.language)

    welcome = await orchestrator.start_conversation(session)

    return {
        "session_id": session.session_id,
        "message": welcome.to_dict(),
        "notices": [n.to_dict() for n in session.drain_notices()]
    }


@router.post("/message", response_model=ConversationResponse)
async def send_message(request: Request, message: ConversationMessage):
    """
    Send a text message and get a response.
    This is the main conversation endpoint.
    """
    if not message.text.strip():
        raise HTTPException(status_code=400, detail="No text provided")

    session = await request.app.state.session_manager.get_or_create_session(message.session_id)
    result = await request.app.state.orchestrator.send_message(session, message.text)

    return ConversationResponse(
        session_id=session.session_id,
        user_message=result.user_message.to_dict(),
        bot_message=result.bot_message.to_dict(),
        reply_source=result.source.value,
        language=result.bot_message.language.value,
        latency_ms=result.latency_ms,
        notices=[n.to_dict() for n in result.notices]
    )


@router.get("/history/{session_id}")
async def get_history(request: Request, session_id: str):
    """Get the message log for a session."""
    session = await _require_session(request, session_id)

    return {
        "session_id": session_id,
        "state": session.to_dict(),
        "messages": [m.to_dict() for m in session.messages],
        "count": len(session.messages)
    }


@router.put("/{session_id}/language")
async def set_language(request: Request, session_id: str, body: LanguageRequest):
    """Choose the language used for voice input."""
    session = await _require_session(request, session_id)
    request.app.state.orchestrator.set_voice_language(session, body.language)

    return {
        "session_id": session_id,
        "voice_language": session.voice_language.value
    }


@router.post("/{session_id}/messages/{message_id}/playback")
async def set_playback(
    request: Request,
    session_id: str,
    message_id: str,
    body: PlaybackRequest
):
    """Record that the client started or finished playing a message."""
    session = await _require_session(request, session_id)
    session.set_playing(message_id, body.playing)

    return {
        "session_id": session_id,
        "active_playing_id": session.active_playing_id,
        "message": session.get_message(message_id).to_dict()
    }


@router.delete("/session/{session_id}")
async def clear_session(request: Request, session_id: str):
    """Delete a conversation."""
    deleted = await request.app.state.session_manager.delete_session(session_id)
    if not deleted:
        raise SessionNotFoundException(session_id)

    return {
        "session_id": session_id,
        "status": "cleared"
    }
