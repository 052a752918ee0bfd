"""
Desktop speech platform.

- Microphone capture with PyAudio, returned as a WAV data URI
- Narration with the OS voices through pyttsx3
- Generated audio played by an external player (mpv, ffplay, mpg123, afplay)
"""

import asyncio
import io
import logging
import os
import shutil
import tempfile
import wave
from typing import List, Optional

import pyaudio
import pyttsx3

from tera.config import get_settings
from tera.core.data_uri import build_audio_uri
from tera.core.exceptions import CaptureUnavailableException, PlaybackException
from tera.services.platform import SpeechPlatform, Voice

logger = logging.getLogger(__name__)
settings = get_settings()

PLAYER_COMMANDS = [
    ["mpv", "--really-quiet", "--no-video"],
    ["ffplay", "-nodisp", "-autoexit", "-loglevel", "quiet"],
    ["mpg123", "-q"],
    ["afplay"],
]

AUDIO_SUFFIXES = {
    "audio/mpeg": ".mp3",
    "audio/wav": ".wav",
    "audio/x-wav": ".wav",
    "audio/ogg": ".ogg",
    "audio/webm": ".webm",
}


def _voice_language(voice) -> str:
    """pyttsx3 drivers report languages as str or as espeak-style bytes."""
    for lang in getattr(voice, "languages", None) or []:
        if isinstance(lang, bytes):
            lang = lang.decode("utf-8", errors="ignore").lstrip("\x00\x01\x02\x03\x04\x05")
        if lang:
            return str(lang)
    # Some drivers only encode the language in the voice id
    return str(getattr(voice, "id", "")).rsplit("\\", 1)[-1]


class LocalSpeechPlatform(SpeechPlatform):
    """Speech platform backed by the machine the assistant runs on."""

    def __init__(self):
        self._audio: Optional[pyaudio.PyAudio] = None
        self._stream = None
        self._frames: List[bytes] = []
        self._sample_width = 2

        self._engine = None
        self._player: Optional[asyncio.subprocess.Process] = None

    # =========================
    # Microphone
    # =========================

    def _on_audio(self, in_data, frame_count, time_info, status):
        self._frames.append(in_data)
        return (None, pyaudio.paContinue)

    async def start_capture(self):
        if self._stream is not None:
            logger.debug("Capture already running")
            return

        self._frames = []
        self._audio = pyaudio.PyAudio()

        try:
            self._stream = self._audio.open(
                format=pyaudio.paInt16,
                channels=settings.AUDIO_CHANNELS,
                rate=settings.AUDIO_SAMPLE_RATE,
                input=True,
                frames_per_buffer=settings.AUDIO_CHUNK_SIZE,
                stream_callback=self._on_audio
            )
            self._sample_width = self._audio.get_sample_size(pyaudio.paInt16)
            self._stream.start_stream()
        except (OSError, IOError) as e:
            logger.error(f"Error accessing microphone: {e}")
            self._release_microphone()
            raise CaptureUnavailableException(
                "No microphone found. Please ensure a microphone is connected and enabled."
            )

        logger.info("Microphone capture started")

    async def stop_capture(self) -> Optional[str]:
        if self._stream is None:
            return None

        try:
            self._stream.stop_stream()
        except OSError as e:
            raise CaptureUnavailableException(f"Could not stop microphone: {e}")
        finally:
            self._release_microphone()

        if not self._frames:
            return None

        buffer = io.BytesIO()
        with wave.open(buffer, "wb") as wf:
            wf.setnchannels(settings.AUDIO_CHANNELS)
            wf.setsampwidth(self._sample_width)
            wf.setframerate(settings.AUDIO_SAMPLE_RATE)
            wf.writeframes(b"".join(self._frames))

        self._frames = []
        logger.info(f"Microphone capture stopped ({buffer.tell()} bytes)")
        return build_audio_uri(buffer.getvalue(), "audio/wav")

    def _release_microphone(self):
        if self._stream is not None:
            try:
                self._stream.close()
            except OSError as e:
                logger.warning(f"Error closing microphone stream: {e}")
            self._stream = None
        if self._audio is not None:
            self._audio.terminate()
            self._audio = None

    # =========================
    # Narration
    # =========================

    def list_voices(self) -> List[Voice]:
        engine = pyttsx3.init()
        try:
            default_id = engine.getProperty("voice")
            return [
                Voice(
                    id=str(v.id),
                    name=str(v.name or v.id),
                    lang=_voice_language(v),
                    default=v.id == default_id
                )
                for v in engine.getProperty("voices")
            ]
        finally:
            engine.stop()

    def _speak_blocking(self, text: str, voice: Optional[Voice]):
        engine = pyttsx3.init()
        self._engine = engine
        try:
            if voice is not None:
                engine.setProperty("voice", voice.id)
            engine.say(text)
            engine.runAndWait()
        finally:
            self._engine = None

    async def synthesize(self, text: str, locale: str, voice: Optional[Voice] = None):
        logger.info(f"Narrating {len(text)} chars, locale={locale}, voice={voice.name if voice else 'default'}")
        try:
            await asyncio.to_thread(self._speak_blocking, text, voice)
        except RuntimeError as e:
            raise PlaybackException(str(e))

    async def cancel_synthesis(self):
        engine = self._engine
        if engine is not None:
            engine.stop()

    # =========================
    # Generated audio
    # =========================

    async def play_audio(self, audio: bytes, mime_type: str):
        command = next((c for c in PLAYER_COMMANDS if shutil.which(c[0])), None)
        if command is None:
            raise PlaybackException("No audio player found (install mpv or ffmpeg)")

        fd, path = tempfile.mkstemp(suffix=AUDIO_SUFFIXES.get(mime_type, ".mp3"))
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(audio)

            self._player = await asyncio.create_subprocess_exec(
                *command, path,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL
            )
            return_code = await self._player.wait()
            # Negative codes mean we terminated it ourselves
            if return_code > 0:
                raise PlaybackException(f"{command[0]} exited with code {return_code}")
        finally:
            player, self._player = self._player, None
            # Cancelled while playing: the player must not outlive the task
            if player is not None and player.returncode is None:
                try:
                    player.terminate()
                except ProcessLookupError:
                    pass
                await player.wait()
            os.unlink(path)

    async def stop_audio(self):
        player = self._player
        if player is not None and player.returncode is None:
            try:
                player.terminate()
            except ProcessLookupError:
                logger.debug("Audio player already exited")
