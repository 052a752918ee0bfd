"""
Tests for the desktop speech platform's audio player handling.

Needs the ``voice`` extra; a shell script stands in for the audio player.
"""

import asyncio
import sys

import pytest

pytest.importorskip("pyaudio")
pytest.importorskip("pyttsx3")

from tera.core.data_uri import build_audio_uri
from tera.core.language import LanguageCode
from tera.core.playback import PlaybackController
from tera.core.session import Conversation, Message
from tera.services.platform import local


@pytest.fixture
def slow_player(tmp_path, monkeypatch):
    """A player that keeps 'playing' for 30 seconds; yields spawned processes."""
    script = tmp_path / "slow-player"
    script.write_text("#!/bin/sh\nexec sleep 30\n")
    script.chmod(0o755)
    monkeypatch.setattr(local, "PLAYER_COMMANDS", [[str(script)]])

    spawned = []
    spawn = asyncio.create_subprocess_exec

    async def recording_spawn(*args, **kwargs):
        process = await spawn(*args, **kwargs)
        spawned.append(process)
        return process

    monkeypatch.setattr(local.asyncio, "create_subprocess_exec", recording_spawn)
    return spawned


@pytest.mark.skipif(sys.platform == "win32", reason="uses a POSIX shell script as player")
class TestLocalAudioPlayer:
    """External player lifecycle."""

    def _conversation(self):
        conversation = Conversation(session_id="s1")
        message = conversation.add_message(Message(
            text="Hi",
            is_user=False,
            language=LanguageCode.EN,
            audio_data_uri=build_audio_uri(b"mp3", "audio/mpeg")
        ))
        return conversation, message

    async def _wait_for_player(self, spawned):
        for _ in range(200):
            if spawned:
                return
            await asyncio.sleep(0.01)
        raise AssertionError("player was never started")

    def test_stop_terminates_player(self, slow_player):
        controller = PlaybackController(local.LocalSpeechPlatform())
        conversation, message = self._conversation()

        async def scenario():
            await controller.play(conversation, message.id)
            await self._wait_for_player(slow_player)
            await controller.stop()

        asyncio.run(scenario())

        assert slow_player[0].returncode is not None
        assert not message.is_playing_audio

    def test_cancelled_playback_terminates_player(self, slow_player):
        platform = local.LocalSpeechPlatform()

        async def scenario():
            task = asyncio.create_task(platform.play_audio(b"mp3", "audio/mpeg"))
            await self._wait_for_player(slow_player)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        asyncio.run(scenario())

        assert slow_player[0].returncode is not None
