"""
Playback Controller.
Plays a message's audio reference on the speech platform, one stream at a time.
"""

import asyncio
import logging
from typing import Optional, Tuple

from tera.config import NARRATION_LOCALES
from tera.core.data_uri import AudioReferenceKind, classify_audio_reference, parse_data_uri
from tera.core.exceptions import PlatformException, UnsupportedAudioFormatException
from tera.core.language import LanguageCode
from tera.core.session import Conversation, Message, Notice
from tera.services.platform import SpeechPlatform, select_voice

logger = logging.getLogger(__name__)


class PlaybackController:
    """
    Starts audio or narration for a message.

    Starting playback always stops whatever was playing before, so at most one
    audio or narration stream is active. Playback runs as a background task;
    its completion or failure clears the message's playing flag.
    """

    def __init__(self, platform: SpeechPlatform):
        self.platform = platform
        self._task: Optional[asyncio.Task] = None
        self._current: Optional[Tuple[Conversation, str]] = None

    @property
    def is_playing(self) -> bool:
        return self._task is not None and not self._task.done()

    async def stop(self):
        """Cancel the current playback, generated audio and narration alike."""
        await self.platform.stop_audio()
        await self.platform.cancel_synthesis()

        if self.is_playing:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None

        # A task cancelled before its first step never reaches its finally
        if self._current is not None:
            conversation, message_id = self._current
            conversation.set_playing(message_id, False)
            self._current = None

    async def play(self, conversation: Conversation, message_id: str) -> Optional[asyncio.Task]:
        """
        Start playback for a message.

        Returns the playback task, or None when nothing could be started
        (a notice explains why).
        """
        message = conversation.get_message(message_id)
        await self.stop()

        if not message.audio_data_uri:
            conversation.notify(Notice(
                title="Playback Error",
                description="No audio is available for this message.",
                variant="warning"
            ))
            return None

        kind = classify_audio_reference(message.audio_data_uri)
        if kind == AudioReferenceKind.UNSUPPORTED:
            logger.warning(f"Unsupported audio reference: {message.audio_data_uri[:64]}")
            conversation.notify(Notice(
                title="Playback Error",
                description="Unsupported audio format.",
                variant="warning"
            ))
            return None

        try:
            reference = parse_data_uri(message.audio_data_uri)
        except UnsupportedAudioFormatException as e:
            logger.warning(f"Malformed audio reference: {e.details}")
            conversation.notify(Notice(
                title="Playback Error",
                description="Unsupported audio format.",
                variant="warning"
            ))
            return None

        conversation.set_playing(message.id, True)
        self._current = (conversation, message.id)

        if kind == AudioReferenceKind.AUDIO:
            coro = self.platform.play_audio(reference.data, reference.mime_type)
        else:
            coro = self._narrate(conversation, message, reference.text)

        self._task = asyncio.create_task(self._run(conversation, message.id, coro))
        return self._task

    async def _narrate(self, conversation: Conversation, message: Message, text: str):
        language = LanguageCode(message.language)
        voices = self.platform.list_voices()
        voice = select_voice(voices, language)

        if voice is None and language == LanguageCode.TE:
            self._warn_missing_telugu_voice(conversation, has_voices=bool(voices))
        if voice is not None:
            logger.info(f"Using {language.value} voice: {voice.name} ({voice.lang})")

        await self.platform.synthesize(text, NARRATION_LOCALES[language.value], voice)

    def _warn_missing_telugu_voice(self, conversation: Conversation, has_voices: bool):
        """One notice per voice-language selection."""
        if conversation.telugu_voice_warning_shown:
            return

        if has_voices:
            conversation.notify(Notice(
                title="Telugu Speech Note",
                description=(
                    "Your device may not have a dedicated Telugu voice. Speech quality "
                    "might be affected or a default voice used."
                ),
                duration_ms=7000
            ))
        else:
            conversation.notify(Notice(
                title="Speech Voice Loading",
                description=(
                    "Voices might still be loading. If speech doesn't work, please try "
                    "again shortly."
                ),
                duration_ms=5000
            ))
        conversation.telugu_voice_warning_shown = True

    async def _run(self, conversation: Conversation, message_id: str, coro):
        try:
            await coro
        except PlatformException as e:
            logger.error(f"Playback error: {e.message}")
            conversation.notify(Notice(
                title="Speech Error",
                description=f"Could not speak the response. Error: {e.message}",
                variant="destructive"
            ))
        finally:
            conversation.set_playing(message_id, False)
