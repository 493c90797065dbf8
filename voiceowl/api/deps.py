"""
FastAPI dependencies.

Long-lived collaborators are built once in the application lifespan and
kept on ``app.state``; these helpers hand them to route handlers.
"""

from typing import Annotated

from fastapi import Depends, Request

from voiceowl.orchestration.state_machine import WorkflowStateMachine
from voiceowl.services.transcription_service import TranscriptionService


def get_state_machine(request: Request) -> WorkflowStateMachine:
    return request.app.state.state_machine


def get_transcription_service(request: Request) -> TranscriptionService:
    return request.app.state.transcription_service


StateMachine = Annotated[WorkflowStateMachine, Depends(get_state_machine)]
Transcriptions = Annotated[TranscriptionService, Depends(get_transcription_service)]


def get_client_ip(request: Request) -> str:
    """Extract client IP from request (X-Forwarded-For or direct)."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"
