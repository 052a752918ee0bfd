"""
Core exceptions for TeRA.
Custom exception classes for structured error handling.
"""

from typing import Optional, Dict, Any


class TeraException(Exception):
    """Base exception for TeRA errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "TERA_ERROR",
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


# =========================
# STT Exceptions
# =========================

class STTException(TeraException):
    """Base exception for transcription errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="STT_ERROR",
            status_code=502,
            details=details
        )


class STTNoAudioException(STTException):
    """Raised when the audio payload is empty."""

    def __init__(self):
        super().__init__(
            message="No audio detected in input",
            details={"error_type": "no_audio"}
        )


class STTInvalidAudioException(STTException):
    """Raised when the audio payload is not a usable data URI."""

    def __init__(self, reason: str):
        super().__init__(
            message=f"Invalid audio data URI: {reason}",
            details={"error_type": "invalid_audio", "reason": reason}
        )


# =========================
# TTS Exceptions
# =========================

class TTSException(TeraException):
    """Base exception for speech synthesis errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="TTS_ERROR",
            status_code=502,
            details=details
        )


class TTSUnsupportedBackendException(TTSException):
    """Raised when the configured TTS backend is unknown."""

    def __init__(self, backend: str, supported: list):
        super().__init__(
            message=f"TTS backend '{backend}' is not supported",
            details={"backend": backend, "supported_backends": supported}
        )


# =========================
# LLM Exceptions
# =========================

class LLMException(TeraException):
    """Base exception for LLM errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="LLM_ERROR",
            status_code=502,
            details=details
        )


class LLMNotConfiguredException(LLMException):
    """Raised when no Groq API key is configured."""

    def __init__(self):
        super().__init__(
            message="GROQ_API_KEY is not set",
            details={"error_type": "not_configured"}
        )


class LLMAPIException(LLMException):
    """Raised when Groq API returns an error."""

    def __init__(self, api_error: str):
        super().__init__(
            message=f"LLM API error: {api_error}",
            details={"api_error": api_error}
        )


class LLMTimeoutException(LLMException):
    """Raised when LLM processing times out."""

    def __init__(self, timeout_seconds: float):
        super().__init__(
            message=f"LLM processing timed out after {timeout_seconds} seconds",
            details={"timeout_seconds": timeout_seconds}
        )


class LLMRateLimitException(LLMException):
    """Raised when LLM API rate limit is exceeded."""

    def __init__(self, retry_after: Optional[float] = None):
        super().__init__(
            message="LLM API rate limit exceeded",
            details={"retry_after_seconds": retry_after}
        )


# =========================
# Platform Exceptions
# =========================

class PlatformException(TeraException):
    """Base exception for microphone and playback errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="PLATFORM_ERROR",
            status_code=400,
            details=details
        )


class CaptureUnavailableException(PlatformException):
    """Raised when no microphone can be opened."""

    def __init__(self, reason: str):
        super().__init__(
            message=reason,
            details={"error_type": "capture_unavailable"}
        )


class UnsupportedAudioFormatException(PlatformException):
    """Raised when an audio reference uses an unknown data URI scheme."""

    def __init__(self, audio_reference: str):
        super().__init__(
            message="Unsupported audio format",
            details={"audio_reference": audio_reference[:64]}
        )


class PlaybackException(PlatformException):
    """Raised when the platform fails to play audio or narrate text."""

    def __init__(self, error: str):
        super().__init__(
            message=f"Playback failed: {error}",
            details={"error": error}
        )


# =========================
# Session Exceptions
# =========================

class SessionException(TeraException):
    """Base exception for session errors."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 400
    ):
        super().__init__(
            message=message,
            error_code="SESSION_ERROR",
            status_code=status_code,
            details=details
        )


class SessionNotFoundException(SessionException):
    """Raised when session is not found."""

    def __init__(self, session_id: str):
        super().__init__(
            message=f"Session '{session_id}' not found",
            details={"session_id": session_id},
            status_code=404
        )


class MessageNotFoundException(SessionException):
    """Raised when a message id is not part of the conversation."""

    def __init__(self, session_id: str, message_id: str):
        super().__init__(
            message=f"Message '{message_id}' not found in session '{session_id}'",
            details={"session_id": session_id, "message_id": message_id},
            status_code=404
        )


class ConversationBusyException(SessionException):
    """Raised when a reply is already being resolved for the conversation."""

    def __init__(self, session_id: str):
        super().__init__(
            message=f"Session '{session_id}' is still resolving the previous message",
            details={"session_id": session_id},
            status_code=409
        )
