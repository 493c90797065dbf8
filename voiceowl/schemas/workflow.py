"""Workflow schemas."""

import uuid
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from voiceowl.kernel.models.transcription import WorkflowStatus
from voiceowl.schemas.validators import check_audio_url, check_language


class WorkflowCreate(BaseModel):
    """Start a workflow for an audio file."""

    model_config = ConfigDict(populate_by_name=True)

    audio_url: str = Field(..., alias="audioUrl", max_length=2048)
    language: Optional[str] = None

    @field_validator("audio_url")
    @classmethod
    def _audio_url_format(cls, v: str) -> str:
        return check_audio_url(v)

    @field_validator("language")
    @classmethod
    def _language_format(cls, v: Optional[str]) -> Optional[str]:
        return check_language(v)


class WorkflowTransition(BaseModel):
    """Request to move a workflow to another status."""

    model_config = ConfigDict(populate_by_name=True)

    new_status: WorkflowStatus = Field(..., alias="newStatus")
    comment: Optional[str] = Field(None, max_length=2000)
    reviewed_by: Optional[str] = Field(None, alias="reviewedBy", max_length=255)


class WorkflowHistoryEntry(BaseModel):
    """One audit entry."""

    model_config = ConfigDict(populate_by_name=True)

    status: str
    timestamp: datetime
    comment: Optional[str] = None
    reviewed_by: Optional[str] = Field(None, alias="reviewedBy")


class WorkflowStatusResponse(BaseModel):
    """Current status, full history and reachable statuses of a workflow."""

    model_config = ConfigDict(populate_by_name=True)

    id: uuid.UUID
    current_status: str = Field(..., alias="currentStatus")
    workflow_history: List[WorkflowHistoryEntry] = Field(
        default_factory=list, alias="workflowHistory"
    )
    can_transition: List[str] = Field(
        default_factory=list, alias="canTransition"
    )


class WorkflowRecordResponse(BaseModel):
    """Stored workflow record as returned by list endpoints."""

    model_config = ConfigDict(populate_by_name=True)

    id: uuid.UUID
    audio_url: str = Field(..., alias="audioUrl")
    transcription: str
    source: str
    language: str
    workflow_status: Optional[str] = Field(None, alias="workflowStatus")
    workflow_history: List[WorkflowHistoryEntry] = Field(
        default_factory=list, alias="workflowHistory"
    )
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")


class WorkflowListResponse(BaseModel):
    """One page of workflows."""

    workflows: List[WorkflowRecordResponse]
    total: int
    page: int
    limit: int


class WorkflowStatsResponse(BaseModel):
    """Per-status counts."""

    statistics: Dict[str, int]
    total: int
