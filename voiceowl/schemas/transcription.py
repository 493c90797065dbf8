"""Schemas for the plain (non-workflow) transcription endpoints."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from voiceowl.schemas.validators import check_audio_url, check_language


class TranscriptionCreate(BaseModel):
    """Create a transcription from an audio URL."""

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


class TranscriptionCreated(BaseModel):
    """Result of a create call."""

    id: uuid.UUID
    message: str


class TranscriptionResponse(BaseModel):
    """A stored transcription."""

    model_config = ConfigDict(populate_by_name=True)

    id: uuid.UUID
    audio_url: str = Field(..., alias="audioUrl")
    transcription: str
    source: str
    language: str
    workflow_status: Optional[str] = Field(None, alias="workflowStatus")
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")


class RemoteHealthResponse(BaseModel):
    """Health of the remote speech service."""

    status: str
    region: str
    timestamp: datetime
