"""
Tests for audio references, speech services and narration voice choice.
"""

import asyncio
import base64

import pytest

from tera.core.data_uri import (
    AudioReferenceKind,
    build_audio_uri,
    build_narration_uri,
    classify_audio_reference,
    parse_data_uri,
)
from tera.core.exceptions import (
    STTException,
    STTInvalidAudioException,
    STTNoAudioException,
    TTSUnsupportedBackendException,
    UnsupportedAudioFormatException,
)
from tera.core.language import LanguageCode
from tera.services.platform import Voice, select_voice
from tera.services.stt import STTService
from tera.services.tts import TTSService

from tests.fakes import FakeGroqClient


class TestDataURI:
    """Audio reference encoding."""

    def test_narration_uri_escapes_like_encode_uri_component(self):
        uri = build_narration_uri("Hi there! (ok)")
        assert uri == "data:text/plain;charset=utf-8,Hi%20there!%20(ok)"

    def test_narration_uri_text_round_trips_telugu(self):
        uri = build_narration_uri("నమస్కారం 500001")
        assert parse_data_uri(uri).text == "నమస్కారం 500001"

    def test_audio_uri(self):
        uri = build_audio_uri(b"ID3", "audio/mpeg")
        parsed = parse_data_uri(uri)
        assert uri.startswith("data:audio/mpeg;base64,")
        assert parsed.mime_type == "audio/mpeg"
        assert parsed.is_base64
        assert parsed.data == b"ID3"

    def test_classification(self):
        assert classify_audio_reference("data:audio/mpeg;base64,AAAA") == AudioReferenceKind.AUDIO
        assert classify_audio_reference("data:text/plain,hi") == AudioReferenceKind.NARRATION
        assert classify_audio_reference("https://example.com/a.mp3") == AudioReferenceKind.UNSUPPORTED

    @pytest.mark.parametrize("uri", ["", "not a uri", "data:audio/webm;base64", "data:audio/webm;base64,@@@"])
    def test_malformed(self, uri):
        with pytest.raises(UnsupportedAudioFormatException):
            parse_data_uri(uri)


class TestVoiceSelection:
    """Best-effort narration voice choice."""

    VOICES = [
        Voice(id="1", name="Microsoft David", lang="en-US", default=True),
        Voice(id="2", name="Google UK English Female", lang="en-GB"),
        Voice(id="3", name="Telugu Male", lang="te-IN"),
        Voice(id="4", name="Telugu Female", lang="te_IN"),
    ]

    def test_gender_preference(self):
        assert select_voice(self.VOICES, LanguageCode.EN, "female").id == "2"

    def test_male_does_not_match_female(self):
        assert select_voice(self.VOICES, LanguageCode.TE, "male").id == "3"

    def test_english_default_voice(self):
        assert select_voice(self.VOICES, LanguageCode.EN, "").id == "1"

    def test_any_voice_of_language(self):
        voices = [Voice(id="9", name="Chitra", lang="te-IN")]
        assert select_voice(voices, LanguageCode.TE, "female").id == "9"

    def test_no_voice_for_language(self):
        assert select_voice(self.VOICES[:2], LanguageCode.TE) is None


class TestTTSService:
    """Speech synthesis backends."""

    def test_narration_backend(self):
        result = asyncio.run(TTSService("narration").synthesize("Hello", LanguageCode.EN))
        assert result.audio_data_uri == "data:text/plain;charset=utf-8,Hello"
        assert result.backend == "narration"

    def test_unknown_backend_rejected(self):
        with pytest.raises(TTSUnsupportedBackendException):
            asyncio.run(TTSService("festival").initialize())


class TestSTTService:
    """Groq Whisper transcription adapter."""

    AUDIO_URI = "data:audio/webm;base64," + base64.b64encode(b"webm-bytes").decode()

    def test_transcribes_with_language_hint(self):
        client = FakeGroqClient(transcription="  నా పిన్ కోడ్  ")
        result = asyncio.run(STTService(client=client).transcribe(self.AUDIO_URI, LanguageCode.TE))

        assert result.text == "నా పిన్ కోడ్"
        call = client.transcription_calls[0]
        assert call["language"] == "te"
        assert call["file"] == ("recording.webm", b"webm-bytes")

    def test_invalid_uri(self):
        with pytest.raises(STTInvalidAudioException):
            asyncio.run(STTService(client=FakeGroqClient()).transcribe("garbage", LanguageCode.EN))

    def test_non_audio_uri(self):
        with pytest.raises(STTInvalidAudioException):
            asyncio.run(STTService(client=FakeGroqClient()).transcribe("data:text/plain,hi", LanguageCode.EN))

    def test_empty_audio(self):
        with pytest.raises(STTNoAudioException):
            asyncio.run(STTService(client=FakeGroqClient()).transcribe("data:audio/webm;base64,", LanguageCode.EN))

    def test_api_failure(self):
        client = FakeGroqClient()
        client.transcription_error = RuntimeError("boom")
        with pytest.raises(STTException):
            asyncio.run(STTService(client=client).transcribe(self.AUDIO_URI, LanguageCode.EN))

    def test_not_configured(self):
        with pytest.raises(STTException):
            asyncio.run(STTService().transcribe(self.AUDIO_URI, LanguageCode.EN))
