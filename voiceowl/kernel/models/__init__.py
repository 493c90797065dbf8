"""
Persistent models.

Importing this package registers every table on ``Base.metadata``.
"""

from voiceowl.kernel.models.base import Base, generate_uuid, utcnow
from voiceowl.kernel.models.transcription import (
    Transcription,
    TranscriptionSource,
    WorkflowStatus,
)

__all__ = [
    "Base",
    "generate_uuid",
    "utcnow",
    "Transcription",
    "TranscriptionSource",
    "WorkflowStatus",
]
