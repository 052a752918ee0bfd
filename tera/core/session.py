"""
Session Management for TeRA.
Holds each conversation's message log, UI-facing flags and pending notices.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional, Dict, Any, List
from uuid import uuid4
import logging

from tera.config import get_settings
from tera.core.exceptions import MessageNotFoundException
from tera.core.language import LanguageCode

logger = logging.getLogger(__name__)
settings = get_settings()


class ResolutionStage(str, Enum):
    """Where a submitted message is in the reply pipeline."""
    IDLE = "idle"
    USER_MESSAGE_RECORDED = "user_message_recorded"
    AWAITING_REPLY = "awaiting_reply"
    PIN_CODE_REPLY = "pin_code_reply"
    FAQ_REPLY = "faq_reply"
    GENERATED_REPLY = "generated_reply"
    FALLBACK_REPLY = "fallback_reply"
    REPLY_RECORDED = "reply_recorded"
    AWAITING_AUDIO = "awaiting_audio"


@dataclass
class Notice:
    """Advisory message shown to the user (recording, speech and AI errors)."""
    title: str
    description: str
    variant: str = "default"  # "default", "warning", "destructive"
    duration_ms: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "variant": self.variant,
            "duration_ms": self.duration_ms
        }


@dataclass
class Message:
    """Single chat message."""
    text: str
    is_user: bool
    language: LanguageCode
    id: str = field(default_factory=lambda: uuid4().hex)
    timestamp: datetime = field(default_factory=datetime.now)
    audio_data_uri: Optional[str] = None
    is_playing_audio: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert message to dictionary."""
        return {
            "id": self.id,
            "text": self.text,
            "is_user": self.is_user,
            "timestamp": self.timestamp.isoformat(),
            "language": self.language.value,
            "audio_data_uri": self.audio_data_uri,
            "is_playing_audio": self.is_playing_audio
        }


@dataclass
class Conversation:
    """
    One user's chat session.

    The message log is append-only; messages are only touched to attach audio
    or to flip their playing flag.
    """
    session_id: str
    created_at: datetime = field(default_factory=datetime.now)
    last_activity: datetime = field(default_factory=datetime.now)

    voice_language: LanguageCode = LanguageCode.EN
    stage: ResolutionStage = ResolutionStage.IDLE
    is_recording: bool = False
    is_transcribing: bool = False
    active_playing_id: Optional[str] = None
    telugu_voice_warning_shown: bool = False

    messages: List[Message] = field(default_factory=list)
    notices: List[Notice] = field(default_factory=list)
    resolution_lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    @property
    def is_bot_typing(self) -> bool:
        return self.stage != ResolutionStage.IDLE

    def add_message(self, message: Message) -> Message:
        """Append a message unless it is already in the log."""
        if self.find_message(message.id) is None:
            self.messages.append(message)
        self.last_activity = datetime.now()
        return message

    def find_message(self, message_id: str) -> Optional[Message]:
        for message in self.messages:
            if message.id == message_id:
                return message
        return None

    def get_message(self, message_id: str) -> Message:
        message = self.find_message(message_id)
        if message is None:
            raise MessageNotFoundException(self.session_id, message_id)
        return message

    def attach_audio(self, message_id: str, audio_data_uri: str):
        self.get_message(message_id).audio_data_uri = audio_data_uri

    def set_playing(self, message_id: str, playing: bool):
        """Mark one message as playing; every other message stops."""
        target = self.get_message(message_id)
        if playing:
            for message in self.messages:
                message.is_playing_audio = message.id == message_id
            self.active_playing_id = message_id
            return

        target.is_playing_audio = False
        if self.active_playing_id == message_id:
            self.active_playing_id = None

    def notify(self, notice: Notice):
        logger.info(f"[{self.session_id}] Notice: {notice.title} - {notice.description}")
        self.notices.append(notice)

    def drain_notices(self) -> List[Notice]:
        """Return and clear pending notices."""
        notices, self.notices = self.notices, []
        return notices

    def is_expired(self) -> bool:
        """Check if session has expired due to inactivity."""
        timeout = timedelta(minutes=settings.SESSION_TIMEOUT_MINUTES)
        return datetime.now() - self.last_activity > timeout

    def to_dict(self) -> Dict[str, Any]:
        """Convert session to dictionary."""
        return {
            "session_id": self.session_id,
            "created_at": self.created_at.isoformat(),
            "last_activity": self.last_activity.isoformat(),
            "voice_language": self.voice_language.value,
            "stage": self.stage.value,
            "is_bot_typing": self.is_bot_typing,
            "is_recording": self.is_recording,
            "is_transcribing": self.is_transcribing,
            "active_playing_id": self.active_playing_id,
            "message_count": len(self.messages)
        }


class SessionManager:
    """
    Manages conversations with automatic cleanup of idle ones.
    """

    def __init__(self):
        self._sessions: Dict[str, Conversation] = {}
        self._lock = asyncio.Lock()
        self._cleanup_task: Optional[asyncio.Task] = None

    async def start(self):
        """Start the session manager and cleanup task."""
        self._cleanup_task = asyncio.create_task(self._cleanup_loop())
        logger.info("Session manager started")

    async def stop(self):
        """Stop the session manager."""
        if self._cleanup_task:
            self._cleanup_task.cancel()
            try:
                await self._cleanup_task
            except asyncio.CancelledError:
                pass
        logger.info("Session manager stopped")

    async def create_session(
        self,
        session_id: Optional[str] = None,
        language: Optional[LanguageCode] = None
    ) -> Conversation:
        """Create a new conversation."""
        async with self._lock:
            if len(self._sessions) >= settings.MAX_SESSIONS:
                await self._evict_oldest()

            session_id = session_id or str(uuid4())
            session = Conversation(
                session_id=session_id,
                voice_language=language or LanguageCode(settings.DEFAULT_LANGUAGE)
            )
            self._sessions[session_id] = session

            logger.info(f"Created new session: {session_id}")
            return session

    async def get_session(self, session_id: str) -> Optional[Conversation]:
        """Get an existing conversation."""
        async with self._lock:
            session = self._sessions.get(session_id)

            if session and session.is_expired():
                await self._remove_session(session_id)
                return None

            return session

    async def get_or_create_session(
        self,
        session_id: Optional[str] = None,
        language: Optional[LanguageCode] = None
    ) -> Conversation:
        """Get existing conversation or create new one."""
        if session_id:
            session = await self.get_session(session_id)
            if session:
                return session

        return await self.create_session(session_id, language)

    async def delete_session(self, session_id: str) -> bool:
        """Delete a conversation."""
        async with self._lock:
            return await self._remove_session(session_id)

    async def get_active_session_count(self) -> int:
        """Get count of live conversations."""
        async with self._lock:
            return sum(1 for s in self._sessions.values() if not s.is_expired())

    async def _remove_session(self, session_id: str) -> bool:
        """Remove session (must be called with lock held)."""
        if session_id in self._sessions:
            del self._sessions[session_id]
            logger.info(f"Removed session: {session_id}")
            return True
        return False

    async def _evict_oldest(self):
        """Evict least recently active session (must be called with lock held)."""
        if not self._sessions:
            return

        oldest_session = min(
            self._sessions.values(),
            key=lambda s: s.last_activity
        )

        await self._remove_session(oldest_session.session_id)

    async def _cleanup_loop(self):
        """Periodically clean up expired sessions."""
        while True:
            try:
                await asyncio.sleep(60)

                async with self._lock:
                    expired = [
                        sid for sid, session in self._sessions.items()
                        if session.is_expired()
                    ]

                    for sid in expired:
                        await self._remove_session(sid)

                    if expired:
                        logger.info(f"Cleaned up {len(expired)} expired sessions")

            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in session cleanup: {e}")
