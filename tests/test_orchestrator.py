"""
Tests for the conversation orchestrator.

Tests cover:
- Reply tier order (pin code, FAQ, generative fallback)
- Apology fallbacks when generation fails or is empty
- Message log and stage bookkeeping
- Busy conversations
- Speech attachment failures
- Voice recording and transcription
"""

import asyncio
import base64

import pytest

from tera.core.exceptions import (
    CaptureUnavailableException,
    ConversationBusyException,
    PlaybackException,
    TTSException,
)
from tera.core.language import LanguageCode
from tera.core.pipeline import ReplySource
from tera.core.session import Conversation, ResolutionStage
from tera.knowledge.responses import DEFAULT_RESPONSES, ERROR_REPLY_APOLOGIES, EMPTY_REPLY_APOLOGIES
from tera.services.llm import LLMService, build_messages


def send(orchestrator, conversation, text):
    return asyncio.run(orchestrator.send_message(conversation, text))


class TestReplyTiers:
    """Which tier answers a message."""

    def test_greeting_answered_by_faq(self, orchestrator, groq_client):
        conversation = Conversation(session_id="s1")
        result = send(orchestrator, conversation, "hello")

        assert result.source == ReplySource.FAQ
        assert result.bot_message.text == (
            "Hello! I am TeRA, your T-Fiber assistant. How can I help you today?"
        )
        assert groq_client.chat_calls == []

    def test_pin_code_beats_faq(self, orchestrator, groq_client):
        conversation = Conversation(session_id="s1")
        result = send(orchestrator, conversation, "hello, is 500081 covered?")

        assert result.source == ReplySource.PIN_CODE
        assert "500081" in result.bot_message.text
        assert result.bot_message.text.startswith("Great news!")
        assert groq_client.chat_calls == []

    def test_telugu_pin_code_reply_in_telugu(self, orchestrator):
        conversation = Conversation(session_id="s1")
        result = send(orchestrator, conversation, "మా పిన్ ౧౨౩౪౫౬")

        assert result.source == ReplySource.PIN_CODE
        assert result.bot_message.language == LanguageCode.TE
        assert result.bot_message.text.startswith("మేము వేగంగా విస్తరిస్తున్నాము!")
        assert "123456" in result.bot_message.text

    def test_unmatched_question_goes_to_llm(self, orchestrator, groq_client):
        conversation = Conversation(session_id="s1")
        result = send(orchestrator, conversation, "How long does installation take?")

        assert result.source == ReplySource.GENERATED
        assert result.bot_message.text == "T-Fiber installation usually takes two to three days."
        messages = groq_client.chat_calls[0]["messages"]
        assert messages[-1] == {"role": "user", "content": "How long does installation take?"}

    def test_llm_error_becomes_apology(self, orchestrator, groq_client):
        groq_client.error = RuntimeError("connection reset")
        conversation = Conversation(session_id="s1")
        result = send(orchestrator, conversation, "How long does installation take?")

        assert result.source == ReplySource.FALLBACK
        assert result.bot_message.text == ERROR_REPLY_APOLOGIES["en"]

    def test_completion_without_choices_becomes_apology(self, orchestrator, groq_client):
        groq_client.malformed = True
        conversation = Conversation(session_id="s1")
        result = send(orchestrator, conversation, "How long does installation take?")

        assert result.source == ReplySource.FALLBACK
        assert result.bot_message.text == ERROR_REPLY_APOLOGIES["en"]
        assert result.notices == []

    def test_generate_reply_never_raises_on_malformed_completion(self, groq_client):
        groq_client.malformed = True
        service = LLMService(client=groq_client)

        reply = asyncio.run(service.generate_reply("installation time?", LanguageCode.TE))

        assert reply.is_fallback
        assert reply.text == ERROR_REPLY_APOLOGIES["te"]
        assert reply.error

    def test_empty_llm_output_becomes_apology(self, orchestrator, groq_client):
        groq_client.content = "   "
        conversation = Conversation(session_id="s1")
        result = send(orchestrator, conversation, "ఇన్‌స్టాలేషన్ ఎంత సమయం పడుతుంది?")

        assert result.source == ReplySource.FALLBACK
        assert result.bot_message.text == EMPTY_REPLY_APOLOGIES["te"]

    def test_crashing_generator_uses_default_response(self, orchestrator):
        async def explode(text, language):
            raise RuntimeError("unexpected")

        orchestrator.llm.generate_reply = explode
        conversation = Conversation(session_id="s1")
        result = send(orchestrator, conversation, "How long does installation take?")

        assert result.source == ReplySource.FALLBACK
        assert result.bot_message.text == DEFAULT_RESPONSES["en"]
        assert [n.title for n in result.notices] == ["AI Response Error"]

    def test_unconfigured_llm_apologises(self, orchestrator):
        orchestrator.llm = LLMService()
        conversation = Conversation(session_id="s1")
        result = send(orchestrator, conversation, "How long does installation take?")

        assert result.source == ReplySource.FALLBACK
        assert result.bot_message.text == ERROR_REPLY_APOLOGIES["en"]


class TestConversationLog:
    """Message log and state bookkeeping."""

    def test_blank_input_ignored(self, orchestrator):
        conversation = Conversation(session_id="s1")
        assert send(orchestrator, conversation, "   ") is None
        assert conversation.messages == []

    def test_user_then_bot_message(self, orchestrator):
        conversation = Conversation(session_id="s1")
        result = send(orchestrator, conversation, "hello")

        assert conversation.messages == [result.user_message, result.bot_message]
        assert result.user_message.is_user
        assert not result.bot_message.is_user
        assert conversation.stage == ResolutionStage.IDLE
        assert not conversation.is_bot_typing

    def test_reply_carries_narration_audio(self, orchestrator):
        conversation = Conversation(session_id="s1")
        result = send(orchestrator, conversation, "hello")

        assert result.bot_message.audio_data_uri.startswith("data:text/plain;charset=utf-8,")
        assert result.user_message.audio_data_uri is None

    def test_speech_failure_keeps_message(self, orchestrator):
        async def fail(text, language):
            raise TTSException("voice service down")

        orchestrator.tts.synthesize = fail
        conversation = Conversation(session_id="s1")
        result = send(orchestrator, conversation, "hello")

        assert result.bot_message in conversation.messages
        assert result.bot_message.audio_data_uri is None
        assert [n.title for n in result.notices] == ["Speech Generation Error"]

    def test_welcome_message(self, orchestrator):
        conversation = Conversation(session_id="s1", voice_language=LanguageCode.TE)
        welcome = asyncio.run(orchestrator.start_conversation(conversation))

        assert welcome.text.startswith("నమస్కారం! నేను TeRA")
        assert welcome.language == LanguageCode.TE
        assert conversation.messages == [welcome]

    def test_busy_conversation_rejects_second_message(self, orchestrator, groq_client):
        conversation = Conversation(session_id="s1")

        async def scenario():
            groq_client.gate = asyncio.Event()
            first = asyncio.create_task(
                orchestrator.send_message(conversation, "How long does installation take?")
            )
            while not groq_client.chat_calls:
                await asyncio.sleep(0)

            assert conversation.is_bot_typing
            with pytest.raises(ConversationBusyException):
                await orchestrator.send_message(conversation, "hello")

            groq_client.gate.set()
            return await first

        result = asyncio.run(scenario())

        assert result.source == ReplySource.GENERATED
        assert len(conversation.messages) == 2

    def test_prompt_names_reply_language(self):
        messages = build_messages("ప్లాన్ ధర?", LanguageCode.TE)
        assert "respond in Telugu" in messages[0]["content"]


class TestVoiceInput:
    """Recording and transcription."""

    AUDIO_URI = "data:audio/webm;base64," + base64.b64encode(b"webm-bytes").decode()

    def test_transcription(self, orchestrator, groq_client):
        groq_client.transcription = "what are the plans"
        conversation = Conversation(session_id="s1")
        outcome = asyncio.run(orchestrator.transcribe(conversation, self.AUDIO_URI, LanguageCode.EN))

        assert outcome.text == "what are the plans"
        assert outcome.notices == []
        assert not conversation.is_transcribing
        assert conversation.messages == []

    def test_transcription_failure_notice(self, orchestrator):
        conversation = Conversation(session_id="s1")
        outcome = asyncio.run(orchestrator.transcribe(conversation, "garbage", LanguageCode.EN))

        assert outcome.text == ""
        assert [n.title for n in outcome.notices] == ["Transcription Error"]
        assert not conversation.is_transcribing

    def test_record_and_transcribe_in_voice_language(self, voice_orchestrator, groq_client, platform):
        conversation = Conversation(session_id="s1")
        voice_orchestrator.set_voice_language(conversation, LanguageCode.TE)

        async def scenario():
            assert await voice_orchestrator.start_recording(conversation)
            assert conversation.is_recording
            return await voice_orchestrator.stop_recording(conversation)

        outcome = asyncio.run(scenario())

        assert outcome.text == "hello"
        assert groq_client.transcription_calls[0]["language"] == "te"
        assert not conversation.is_recording
        assert not platform.capturing

    def test_capture_unavailable(self, voice_orchestrator, platform):
        platform.capture_error = CaptureUnavailableException("Microphone permission denied")
        conversation = Conversation(session_id="s1")

        assert not asyncio.run(voice_orchestrator.start_recording(conversation))
        notices = conversation.drain_notices()
        assert notices[0].title == "Voice Recording Error"
        assert not conversation.is_recording

    def test_recording_without_platform(self, orchestrator):
        conversation = Conversation(session_id="s1")

        assert not asyncio.run(orchestrator.start_recording(conversation))
        assert conversation.drain_notices()[0].title == "Voice Recording Error"

    def test_failed_capture_stop_leaves_controls_usable(self, voice_orchestrator, groq_client, platform):
        platform.stop_capture_error = PlaybackException("device lost")
        conversation = Conversation(session_id="s1")

        async def scenario():
            assert await voice_orchestrator.start_recording(conversation)
            return await voice_orchestrator.stop_recording(conversation)

        outcome = asyncio.run(scenario())

        assert outcome.text == ""
        assert [n.title for n in outcome.notices] == ["Voice Recording Error"]
        assert not conversation.is_recording
        assert not conversation.is_transcribing
        assert groq_client.transcription_calls == []
