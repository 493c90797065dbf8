"""Transcript persistence."""

from voiceowl.kernel.store.transcript_store import TranscriptStore

__all__ = ["TranscriptStore"]
