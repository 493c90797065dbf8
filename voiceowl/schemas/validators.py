"""
Input format checks shared by request schemas and the state machine.
"""

import re
from typing import Optional

from voiceowl.kernel.models.transcription import WorkflowStatus

AUDIO_URL_PATTERN = re.compile(r"^(https?|ftp)://[^\s/$.?#].[^\s]*$", re.IGNORECASE)
LANGUAGE_PATTERN = re.compile(r"^[a-z]{2}-[A-Z]{2}$")

DEFAULT_LANGUAGE = "en-US"

INVALID_AUDIO_URL = "Invalid audioUrl format"
INVALID_LANGUAGE = "language must be in format xx-XX (e.g., en-US, fr-FR)"


def is_valid_audio_url(value: object) -> bool:
    return isinstance(value, str) and bool(AUDIO_URL_PATTERN.fullmatch(value))


def is_valid_language(value: object) -> bool:
    return isinstance(value, str) and bool(LANGUAGE_PATTERN.fullmatch(value))


def is_valid_status(value: object) -> bool:
    return value in {s.value for s in WorkflowStatus}


def check_audio_url(value: str) -> str:
    """Pydantic-friendly check: return the URL or raise ValueError."""
    value = value.strip()
    if not is_valid_audio_url(value):
        raise ValueError(INVALID_AUDIO_URL)
    return value


def check_language(value: Optional[str]) -> Optional[str]:
    """Pydantic-friendly check for an optional language tag. Empty means absent."""
    if not value:
        return None
    if not is_valid_language(value):
        raise ValueError(INVALID_LANGUAGE)
    return value
