"""
Stand-alone transcription endpoints (no review workflow).
"""

from fastapi import APIRouter, Query, status

from voiceowl.api.deps import Transcriptions
from voiceowl.schemas.common import ApiResponse, PaginatedResponse, Pagination
from voiceowl.schemas.transcription import (
    RemoteHealthResponse,
    TranscriptionCreate,
    TranscriptionCreated,
    TranscriptionResponse,
)

router = APIRouter()


@router.post(
    "/transcription",
    response_model=TranscriptionCreated,
    status_code=status.HTTP_201_CREATED,
)
async def create_transcription(body: TranscriptionCreate, service: Transcriptions):
    return await service.create_transcription(body.audio_url, body.language)


@router.post(
    "/azure-transcription",
    response_model=TranscriptionCreated,
    status_code=status.HTTP_201_CREATED,
)
async def create_azure_transcription(body: TranscriptionCreate, service: Transcriptions):
    """Transcribe through Azure Speech, falling back to a placeholder record on failure."""
    return await service.create_remote_transcription(body.audio_url, body.language)


@router.get(
    "/transcriptions",
    response_model=PaginatedResponse[TranscriptionResponse],
    response_model_exclude_none=True,
)
async def get_recent_transcriptions(
    service: Transcriptions,
    page: int = Query(1),
    limit: int = Query(10),
):
    """Transcriptions created in the last 30 days, newest first."""
    items, total = await service.get_recent(page=page, limit=limit)
    return PaginatedResponse(
        data=items,
        pagination=Pagination.create(page=page, limit=limit, total=total),
    )


@router.get(
    "/transcription/{transcription_id}",
    response_model=ApiResponse[TranscriptionResponse],
    response_model_exclude_none=True,
)
async def get_transcription(transcription_id: str, service: Transcriptions):
    return ApiResponse(data=await service.get_by_id(transcription_id))


@router.get("/azure/health", response_model=ApiResponse[RemoteHealthResponse])
async def azure_health(service: Transcriptions):
    health = await service.remote_producer.health()
    return ApiResponse(data=RemoteHealthResponse(**health))
