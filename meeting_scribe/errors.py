"""Exceptions raised across the transcription pipeline.

TranscriptionError is the only failure type that crosses the pipeline
boundary. DecodeError and ChunkingError stay internal to chunking and are
converted by the orchestrator.
"""

import json
from typing import Any, Optional


class ErrorCode:
    INVALID_API_KEY = "INVALID_API_KEY"
    MISSING_API_KEY = "MISSING_API_KEY"
    FORBIDDEN = "FORBIDDEN"
    RATE_LIMITED = "RATE_LIMITED"
    BAD_REQUEST = "BAD_REQUEST"
    INVALID_FORMAT = "INVALID_FORMAT"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    API_ERROR = "API_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    CHUNKING_FAILED = "CHUNKING_FAILED"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class TranscriptionError(Exception):
    """Structured failure with a stable code and a user-facing message.

    `details` carries diagnostics (traceback, raw provider payload) meant
    for logs, never for display.
    """

    def __init__(self, code: str, message: str, details: Optional[str] = None):
        self.code = code
        self.message = message
        self.details = details
        super().__init__(message)

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> dict:
        result = {"code": self.code, "message": self.message}
        if self.details:
            result["details"] = self.details
        return result


class DecodeError(Exception):
    """Raised when audio bytes cannot be decoded in-process."""


class ChunkingError(Exception):
    """Raised when server-side (ffmpeg) splitting fails or is unavailable."""


def error_from_response(status: int, message: str, provider: str, payload: Any = None) -> TranscriptionError:
    """Map a provider HTTP status to a TranscriptionError with a stable code."""
    if status == 401:
        return TranscriptionError(
            ErrorCode.INVALID_API_KEY,
            f"Invalid API key. Please check your {provider} API key in settings.",
        )
    if status == 403:
        return TranscriptionError(
            ErrorCode.FORBIDDEN,
            f"Access denied. Your {provider} plan may not include this model.",
        )
    if status == 429:
        return TranscriptionError(
            ErrorCode.RATE_LIMITED,
            "Rate limited. Please wait a moment and try again.",
        )
    if status == 400:
        lowered = message.lower()
        if "format" in lowered or "audio" in lowered:
            return TranscriptionError(
                ErrorCode.INVALID_FORMAT,
                "Unsupported audio format. Please use MP3, MP4, WAV, WEBM, or M4A.",
            )
        return TranscriptionError(ErrorCode.BAD_REQUEST, message)
    if status == 413:
        return TranscriptionError(
            ErrorCode.FILE_TOO_LARGE,
            "File is too large. Maximum size is 25 MB per chunk.",
        )
    return TranscriptionError(
        ErrorCode.API_ERROR,
        f"{provider} API error: {message}",
        details=json.dumps(payload, default=str) if payload is not None else None,
    )
