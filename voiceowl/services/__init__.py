"""Application services outside the workflow core."""

from voiceowl.services.transcription_service import TranscriptionService

__all__ = ["TranscriptionService"]
