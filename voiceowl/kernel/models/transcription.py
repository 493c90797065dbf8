"""
Transcription model - one audio transcription and, optionally, its review workflow.

Workflow-bearing records carry a non-null ``workflow_status`` plus an
append-only ``workflow_history`` document. Records produced by the plain
transcription endpoints leave both empty.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy import DateTime, Index, Integer, JSON, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from voiceowl.kernel.models.base import Base, generate_uuid, utcnow


class WorkflowStatus(str, Enum):
    """States of the review workflow."""

    TRANSCRIPTION = "transcription"
    REVIEW = "review"
    APPROVAL = "approval"
    COMPLETED = "completed"
    REJECTED = "rejected"


class TranscriptionSource(str, Enum):
    """Which producer wrote the transcription text."""

    MOCK = "mock"
    AZURE = "azure"


class Transcription(Base):
    """
    Persisted transcript record.

    ``version`` is bumped on every workflow transition and is the guard for
    the conditional update in the store.
    """

    __tablename__ = "transcriptions"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    audio_url: Mapped[str] = mapped_column(
        String(2048),
        nullable=False,
    )
    transcription: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    source: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=TranscriptionSource.MOCK.value,
    )
    language: Mapped[str] = mapped_column(
        String(5),
        nullable=False,
        default="en-US",
    )

    # Workflow
    workflow_status: Mapped[Optional[str]] = mapped_column(
        String(20),
        nullable=True,
    )
    workflow_history: Mapped[Optional[List[Dict[str, Any]]]] = mapped_column(
        JSON,
        nullable=True,
    )
    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        index=True,
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    __table_args__ = (
        Index("ix_transcriptions_source_created", "source", "created_at"),
        Index("ix_transcriptions_status_updated", "workflow_status", "updated_at"),
    )

    @property
    def has_workflow(self) -> bool:
        return self.workflow_status is not None

    def __repr__(self) -> str:
        return f"<Transcription {self.id} {self.workflow_status or self.source}>"
