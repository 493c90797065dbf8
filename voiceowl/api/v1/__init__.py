"""
API v1 routes.
"""

from fastapi import APIRouter

from voiceowl.api.v1 import transcriptions, workflows

router = APIRouter()

router.include_router(workflows.router, tags=["Workflow"])
router.include_router(transcriptions.router, tags=["Transcriptions"])
