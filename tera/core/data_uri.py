"""
Data URI helpers.

Audio references travel between services as self-describing data URIs:
- ``data:audio/<type>;base64,<bytes>`` carries generated or recorded audio
- ``data:text/plain;charset=utf-8,<percent-encoded text>`` carries text that
  the platform should narrate itself
"""

import base64
import binascii
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict
from urllib.parse import quote, unquote_to_bytes

from tera.core.exceptions import UnsupportedAudioFormatException

NARRATION_PREFIX = "data:text/plain"
AUDIO_PREFIX = "data:audio"


class AudioReferenceKind(str, Enum):
    """What a message's audio reference asks the platform to do."""
    AUDIO = "audio"
    NARRATION = "narration"
    UNSUPPORTED = "unsupported"


@dataclass
class DataURI:
    """Parsed data URI."""
    mime_type: str
    data: bytes
    parameters: Dict[str, str] = field(default_factory=dict)
    is_base64: bool = False

    @property
    def text(self) -> str:
        charset = self.parameters.get("charset", "utf-8")
        return self.data.decode(charset)


def build_audio_uri(audio: bytes, mime_type: str = "audio/mpeg") -> str:
    """Encode audio bytes as a base64 data URI."""
    encoded = base64.b64encode(audio).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def build_narration_uri(text: str) -> str:
    """Encode text as a plain-text data URI for platform narration."""
    # Same escaping as JavaScript's encodeURIComponent
    encoded = quote(text, safe="!~*'()")
    return f"{NARRATION_PREFIX};charset=utf-8,{encoded}"


def parse_data_uri(uri: str) -> DataURI:
    """
    Parse a data URI into its media type, parameters and payload.

    Raises:
        UnsupportedAudioFormatException: if the string is not a data URI
    """
    if not uri or not uri.startswith("data:"):
        raise UnsupportedAudioFormatException(uri or "")

    header, sep, payload = uri[len("data:"):].partition(",")
    if not sep:
        raise UnsupportedAudioFormatException(uri)

    parts = [p.strip() for p in header.split(";") if p.strip()]
    mime_type = "text/plain"
    if parts and "=" not in parts[0] and parts[0] != "base64":
        mime_type = parts.pop(0).lower()

    parameters: Dict[str, str] = {}
    is_base64 = False
    for part in parts:
        if part == "base64":
            is_base64 = True
        elif "=" in part:
            key, _, value = part.partition("=")
            parameters[key.lower()] = value

    if is_base64:
        try:
            data = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError):
            raise UnsupportedAudioFormatException(uri)
    else:
        data = unquote_to_bytes(payload)

    return DataURI(
        mime_type=mime_type,
        data=data,
        parameters=parameters,
        is_base64=is_base64
    )


def classify_audio_reference(uri: str) -> AudioReferenceKind:
    """Tell generated audio apart from narration text."""
    if uri.startswith(AUDIO_PREFIX):
        return AudioReferenceKind.AUDIO
    if uri.startswith(NARRATION_PREFIX):
        return AudioReferenceKind.NARRATION
    return AudioReferenceKind.UNSUPPORTED
