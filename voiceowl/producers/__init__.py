"""
Transcription producers.

Both producers share the :class:`TranscriptionProducer` contract; the remote
one retries through :func:`with_retry`.
"""

from voiceowl.producers.base import TranscriptionProducer
from voiceowl.producers.mock import (
    SAMPLE_TRANSCRIPTIONS,
    WORKFLOW_TRANSCRIPTIONS,
    MockTranscriptionProducer,
)
from voiceowl.producers.remote import AZURE_TRANSCRIPTIONS, RemoteSpeechProducer
from voiceowl.producers.retry import RetryPolicy, with_retry

__all__ = [
    "TranscriptionProducer",
    "MockTranscriptionProducer",
    "RemoteSpeechProducer",
    "RetryPolicy",
    "with_retry",
    "SAMPLE_TRANSCRIPTIONS",
    "WORKFLOW_TRANSCRIPTIONS",
    "AZURE_TRANSCRIPTIONS",
]
