"""
Tests for the HTTP API.

Runs the real application without a Groq key, so unmatched questions get the
generative fallback apology.
"""

import pytest
from fastapi.testclient import TestClient

from tera.main import app


@pytest.fixture(scope="function")
def client():
    """Create test client with a fresh application state for each test."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def session_id(client):
    """A started English conversation."""
    response = client.post("/api/v1/conversation/start", json={"language": "en"})
    assert response.status_code == 200
    return response.json()["session_id"]


def send(client, session_id, text):
    return client.post(
        "/api/v1/conversation/message",
        json={"text": text, "session_id": session_id}
    )


class TestHealth:
    """Health and info endpoints."""

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["name"] == "Ask TeRA"

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert "x-process-time-ms" in response.headers

    def test_ready_without_groq_key(self, client):
        data = client.get("/health/ready").json()

        assert data["status"] == "ready"
        assert data["services"]["llm_configured"] is False
        assert data["services"]["tts_backend"] == "narration"

    def test_live(self, client):
        assert client.get("/health/live").json()["status"] == "alive"


class TestConversation:
    """Conversation endpoints."""

    def test_start_returns_welcome(self, client):
        response = client.post("/api/v1/conversation/start", json={"language": "te"})

        assert response.status_code == 200
        message = response.json()["message"]
        assert message["text"].startswith("నమస్కారం! నేను TeRA")
        assert message["language"] == "te"
        assert message["audio_data_uri"].startswith("data:text/plain;charset=utf-8,")

    def test_faq_reply(self, client, session_id):
        response = send(client, session_id, "hello")

        assert response.status_code == 200
        data = response.json()
        assert data["reply_source"] == "faq"
        assert data["session_id"] == session_id
        assert data["bot_message"]["text"].startswith("Hello! I am TeRA")

    def test_pin_code_reply(self, client, session_id):
        data = send(client, session_id, "Is 501510 serviceable?").json()

        assert data["reply_source"] == "pin_code"
        assert data["bot_message"]["text"] == (
            "Great news! T-Fiber service is available in your area (Pin Code: 501510)."
        )

    def test_telugu_message(self, client, session_id):
        data = send(client, session_id, "నా పిన్ కోడ్ ౫౦౦౦౦౧").json()

        assert data["language"] == "te"
        assert data["bot_message"]["text"].startswith("శుభవార్త!")
        assert "500001" in data["bot_message"]["text"]

    def test_fallback_apology_without_key(self, client, session_id):
        data = send(client, session_id, "How long does installation take?").json()

        assert data["reply_source"] == "fallback"
        assert data["bot_message"]["text"] == "Sorry, an error occurred. Please try again."

    def test_empty_text_rejected(self, client, session_id):
        response = send(client, session_id, "   ")

        assert response.status_code == 400

    def test_history(self, client, session_id):
        send(client, session_id, "hello")
        data = client.get(f"/api/v1/conversation/history/{session_id}").json()

        assert data["count"] == 3
        assert [m["is_user"] for m in data["messages"]] == [False, True, False]
        assert data["state"]["stage"] == "idle"

    def test_unknown_session(self, client):
        response = client.get("/api/v1/conversation/history/missing")

        assert response.status_code == 404
        assert response.json()["error"] == "SESSION_ERROR"

    def test_set_voice_language(self, client, session_id):
        response = client.put(
            f"/api/v1/conversation/{session_id}/language",
            json={"language": "te"}
        )

        assert response.status_code == 200
        assert response.json()["voice_language"] == "te"

    def test_invalid_voice_language(self, client, session_id):
        response = client.put(
            f"/api/v1/conversation/{session_id}/language",
            json={"language": "hi"}
        )

        assert response.status_code == 422

    def test_playback_state(self, client, session_id):
        bot_id = send(client, session_id, "hello").json()["bot_message"]["id"]

        data = client.post(
            f"/api/v1/conversation/{session_id}/messages/{bot_id}/playback",
            json={"playing": True}
        ).json()
        assert data["active_playing_id"] == bot_id
        assert data["message"]["is_playing_audio"] is True

        data = client.post(
            f"/api/v1/conversation/{session_id}/messages/{bot_id}/playback",
            json={"playing": False}
        ).json()
        assert data["active_playing_id"] is None

    def test_playback_unknown_message(self, client, session_id):
        response = client.post(
            f"/api/v1/conversation/{session_id}/messages/nope/playback",
            json={"playing": True}
        )

        assert response.status_code == 404

    def test_clear_session(self, client, session_id):
        response = client.delete(f"/api/v1/conversation/session/{session_id}")

        assert response.status_code == 200
        assert client.get(f"/api/v1/conversation/history/{session_id}").status_code == 404


class TestVoice:
    """Voice endpoints."""

    def test_transcribe_failure_returns_notice(self, client, session_id):
        response = client.post(
            "/api/v1/voice/transcribe",
            json={"audio_data_uri": "not audio", "session_id": session_id}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["text"] == ""
        assert data["notices"][0]["title"] == "Transcription Error"

    def test_synthesize(self, client):
        data = client.post(
            "/api/v1/voice/synthesize",
            json={"text": "Hello", "language": "en"}
        ).json()

        assert data["audio_data_uri"] == "data:text/plain;charset=utf-8,Hello"
        assert data["backend"] == "narration"

    def test_select_voice(self, client):
        data = client.post(
            "/api/v1/voice/select",
            json={
                "language": "te",
                "voices": [
                    {"name": "Microsoft David", "lang": "en-US", "default": True},
                    {"name": "Telugu", "lang": "te-IN"},
                ]
            }
        ).json()

        assert data["locale"] == "te-IN"
        assert data["voice"]["name"] == "Telugu"

    def test_select_voice_none_available(self, client):
        data = client.post(
            "/api/v1/voice/select",
            json={"language": "te", "voices": []}
        ).json()

        assert data["voice"] is None
