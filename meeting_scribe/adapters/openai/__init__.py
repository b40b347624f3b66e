"""OpenAI transcription adapter."""

from .transcription import OpenAITranscriptionAdapter

__all__ = ["OpenAITranscriptionAdapter"]
