"""
Conversation Orchestrator for TeRA.
Resolves each user message through pin code → FAQ → generative fallback,
records the reply and attaches speech.
"""

import asyncio
import random
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List, Tuple
import logging

from tera.config import get_settings
from tera.core.exceptions import (
    CaptureUnavailableException,
    ConversationBusyException,
    PlatformException,
    STTException,
    TTSException
)
from tera.core.language import LanguageCode, detect_language
from tera.core.playback import PlaybackController
from tera.core.session import Conversation, Message, Notice, ResolutionStage
from tera.knowledge.faqs import get_faq_response
from tera.knowledge.responses import DEFAULT_RESPONSES, WELCOME_MESSAGES
from tera.knowledge.serviceability import check_for_pin_code, check_pin_code_serviceability
from tera.logging.agent_logger import AgentLogger
from tera.services.llm import LLMService
from tera.services.platform import SpeechPlatform
from tera.services.stt import STTService
from tera.services.tts import TTSService

logger = logging.getLogger(__name__)
settings = get_settings()


class ReplySource(str, Enum):
    """Which tier produced a bot reply."""
    PIN_CODE = "pin_code"
    FAQ = "faq"
    GENERATED = "generated"
    FALLBACK = "fallback"


REPLY_STAGES = {
    ReplySource.PIN_CODE: ResolutionStage.PIN_CODE_REPLY,
    ReplySource.FAQ: ResolutionStage.FAQ_REPLY,
    ReplySource.GENERATED: ResolutionStage.GENERATED_REPLY,
    ReplySource.FALLBACK: ResolutionStage.FALLBACK_REPLY,
}


@dataclass
class TurnResult:
    """Result of one submitted message."""
    user_message: Message
    bot_message: Message
    source: ReplySource
    latency_ms: float
    notices: List[Notice] = field(default_factory=list)


@dataclass
class TranscriptionOutcome:
    """Transcribed text for the input box; empty when transcription failed."""
    text: str
    notices: List[Notice] = field(default_factory=list)


class ConversationOrchestrator:
    """
    Sequences user input through the reply tiers and owns conversation state
    transitions.

    Flow per message:
    1. Detect language and record the user message
    2. Pin code in the text → serviceability reply
    3. Otherwise first matching FAQ → FAQ reply
    4. Otherwise generative fallback (apology on failure)
    5. Record the bot reply, then synthesize and attach its audio
    """

    def __init__(
        self,
        llm_service: LLMService,
        tts_service: TTSService,
        stt_service: STTService,
        agent_logger: AgentLogger,
        platform: Optional[SpeechPlatform] = None
    ):
        self.llm = llm_service
        self.tts = tts_service
        self.stt = stt_service
        self.logger = agent_logger
        self.platform = platform
        self.playback = PlaybackController(platform) if platform else None

    # =========================
    # Messages
    # =========================

    async def start_conversation(self, conversation: Conversation) -> Message:
        """Record the welcome message in the selected voice language."""
        language = conversation.voice_language
        await self.logger.log_session_start(conversation.session_id, language.value)

        welcome = Message(
            text=WELCOME_MESSAGES[language.value],
            is_user=False,
            language=language
        )
        conversation.add_message(welcome)
        await self._attach_audio(conversation, welcome)
        await self.logger.log_reply(conversation.session_id, welcome.text, language.value, "welcome")
        return welcome

    async def send_message(self, conversation: Conversation, text: str) -> Optional[TurnResult]:
        """
        Handle a submitted message.

        Returns None for blank input.

        Raises:
            ConversationBusyException: a previous message is still being resolved
        """
        if not text or not text.strip():
            return None

        if conversation.resolution_lock.locked():
            raise ConversationBusyException(conversation.session_id)

        async with conversation.resolution_lock:
            start_time = time.time()
            try:
                language = detect_language(text)
                user_message = conversation.add_message(Message(
                    text=text,
                    is_user=True,
                    language=language
                ))
                conversation.stage = ResolutionStage.USER_MESSAGE_RECORDED
                await self.logger.log_user_message(conversation.session_id, text, language.value)

                conversation.stage = ResolutionStage.AWAITING_REPLY
                reply_text, source = await self.resolve_reply(conversation, text, language)
                conversation.stage = REPLY_STAGES[source]

                await self._typing_pause()

                bot_message = conversation.add_message(Message(
                    text=reply_text,
                    is_user=False,
                    language=language
                ))
                conversation.stage = ResolutionStage.REPLY_RECORDED
                latency_ms = (time.time() - start_time) * 1000
                await self.logger.log_reply(
                    conversation.session_id,
                    reply_text,
                    language.value,
                    source.value,
                    latency_ms
                )

                conversation.stage = ResolutionStage.AWAITING_AUDIO
                await self._attach_audio(conversation, bot_message)
            finally:
                conversation.stage = ResolutionStage.IDLE

        return TurnResult(
            user_message=user_message,
            bot_message=bot_message,
            source=source,
            latency_ms=round(latency_ms, 2),
            notices=conversation.drain_notices()
        )

    async def resolve_reply(
        self,
        conversation: Conversation,
        text: str,
        language: LanguageCode
    ) -> Tuple[str, ReplySource]:
        """Pin code first, FAQ second, generative fallback last."""
        pin_code = check_for_pin_code(text)
        if pin_code:
            logger.info(f"Pin code detected: {pin_code}")
            return check_pin_code_serviceability(pin_code, language.value), ReplySource.PIN_CODE

        faq_response = get_faq_response(text, language.value)
        if faq_response:
            return faq_response, ReplySource.FAQ

        try:
            reply = await self.llm.generate_reply(text, language)
        except Exception as e:
            logger.exception(f"Generative fallback crashed: {e}")
            await self.logger.log_error(conversation.session_id, "llm_error", str(e))
            conversation.notify(Notice(
                title="AI Response Error",
                description="Failed to get a response from the AI. Using default response.",
                variant="destructive"
            ))
            return DEFAULT_RESPONSES[language.value], ReplySource.FALLBACK

        if reply.is_fallback:
            if reply.error:
                await self.logger.log_error(conversation.session_id, "llm_error", reply.error)
            return reply.text, ReplySource.FALLBACK

        if not reply.text.strip():
            return DEFAULT_RESPONSES[language.value], ReplySource.FALLBACK

        return reply.text, ReplySource.GENERATED

    async def _typing_pause(self):
        low = max(0, settings.REPLY_DELAY_MIN_MS)
        high = max(low, settings.REPLY_DELAY_MAX_MS)
        if high > 0:
            await asyncio.sleep(random.uniform(low, high) / 1000)

    async def _attach_audio(self, conversation: Conversation, message: Message):
        """Synthesize speech for a bot message; keep the message if that fails."""
        try:
            result = await self.tts.synthesize(message.text, message.language)
        except TTSException as e:
            logger.error(f"Error generating speech: {e.message}")
            await self.logger.log_error(conversation.session_id, "tts_error", e.message)
            conversation.notify(Notice(
                title="Speech Generation Error",
                description="Failed to generate audio for the bot's response.",
                variant="destructive"
            ))
            return

        conversation.attach_audio(message.id, result.audio_data_uri)

    # =========================
    # Voice input
    # =========================

    def set_voice_language(self, conversation: Conversation, language: LanguageCode):
        """Select the recording language; re-arms the Telugu voice warning."""
        conversation.voice_language = LanguageCode(language)
        conversation.telugu_voice_warning_shown = False

    async def transcribe(
        self,
        conversation: Conversation,
        audio_data_uri: str,
        language: Optional[LanguageCode] = None
    ) -> TranscriptionOutcome:
        """Transcribe recorded audio into text for the input box."""
        language = LanguageCode(language or conversation.voice_language)
        conversation.is_transcribing = True

        try:
            result = await self.stt.transcribe(audio_data_uri, language)
        except STTException as e:
            logger.error(f"Error transcribing audio: {e.message}")
            await self.logger.log_error(conversation.session_id, "stt_error", e.message)
            conversation.notify(Notice(
                title="Transcription Error",
                description="Could not transcribe audio. Please try again.",
                variant="destructive"
            ))
            return TranscriptionOutcome(text="", notices=conversation.drain_notices())
        finally:
            conversation.is_transcribing = False

        await self.logger.log_transcription(
            conversation.session_id,
            result.text,
            language.value,
            result.processing_time_ms
        )
        return TranscriptionOutcome(text=result.text, notices=conversation.drain_notices())

    async def start_recording(self, conversation: Conversation) -> bool:
        """Start microphone capture; False (with a notice) if unavailable."""
        if self.platform is None:
            conversation.notify(Notice(
                title="Voice Recording Error",
                description="Audio recording is not supported here.",
                variant="destructive"
            ))
            return False

        try:
            await self.platform.start_capture()
        except CaptureUnavailableException as e:
            conversation.notify(Notice(
                title="Voice Recording Error",
                description=e.message,
                variant="destructive"
            ))
            return False

        conversation.is_recording = True
        return True

    async def stop_recording(self, conversation: Conversation) -> TranscriptionOutcome:
        """Stop capture and transcribe in the selected voice language."""
        if self.platform is None or not conversation.is_recording:
            return TranscriptionOutcome(text="", notices=conversation.drain_notices())

        conversation.is_transcribing = True
        audio_data_uri = None
        try:
            audio_data_uri = await self.platform.stop_capture()
        except PlatformException as e:
            logger.error(f"Error stopping capture: {e.message}")
            conversation.notify(Notice(
                title="Voice Recording Error",
                description=e.message,
                variant="destructive"
            ))
        finally:
            conversation.is_recording = False
            if not audio_data_uri:
                conversation.is_transcribing = False

        if not audio_data_uri:
            return TranscriptionOutcome(text="", notices=conversation.drain_notices())

        return await self.transcribe(conversation, audio_data_uri, conversation.voice_language)

    # =========================
    # Playback
    # =========================

    async def play_message(self, conversation: Conversation, message_id: str) -> List[Notice]:
        """Play a message's audio on the platform, stopping anything else."""
        if self.playback is None:
            conversation.notify(Notice(
                title="Playback Error",
                description="Speech playback is not supported here.",
                variant="warning"
            ))
            return conversation.drain_notices()

        await self.playback.play(conversation, message_id)
        return conversation.drain_notices()

    async def stop_playback(self, conversation: Conversation):
        if self.playback is not None:
            await self.playback.stop()
        if conversation.active_playing_id:
            conversation.set_playing(conversation.active_playing_id, False)
