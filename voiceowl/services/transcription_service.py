"""
Transcription service - the plain, non-workflow transcription feature.

Records written here have no workflow status and never appear in workflow
listings or statistics.
"""

import uuid
from datetime import timedelta
from typing import List, Optional, Tuple

from voiceowl.errors import NotFoundError, ProducerError, StoreError, ValidationError
from voiceowl.kernel.models.base import utcnow
from voiceowl.kernel.models.transcription import Transcription, TranscriptionSource
from voiceowl.kernel.store.transcript_store import TranscriptStore
from voiceowl.logging_config import get_logger
from voiceowl.producers.base import TranscriptionProducer
from voiceowl.producers.remote import RemoteSpeechProducer
from voiceowl.schemas.transcription import TranscriptionCreated, TranscriptionResponse
from voiceowl.schemas.validators import DEFAULT_LANGUAGE

logger = get_logger(__name__)

RECENT_WINDOW = timedelta(days=30)
FALLBACK_TRANSCRIPTION = (
    "This is a fallback transcription generated when Azure Speech Service is unavailable."
)


class TranscriptionService:
    """
    Creates and reads stand-alone transcriptions.

    Args:
        store: Transcript store handle.
        mock_producer: Producer for ``POST /transcription``.
        remote_producer: Producer for ``POST /azure-transcription``.
    """

    def __init__(
        self,
        store: TranscriptStore,
        mock_producer: TranscriptionProducer,
        remote_producer: RemoteSpeechProducer,
    ):
        self.store = store
        self.mock_producer = mock_producer
        self.remote_producer = remote_producer

    async def create_transcription(
        self,
        audio_url: str,
        language: Optional[str] = None,
    ) -> TranscriptionCreated:
        """Mock-transcribe and save. Producer failures propagate."""
        language = language or DEFAULT_LANGUAGE
        text = await self.mock_producer.produce(audio_url, language)
        record = await self.store.add(
            Transcription(
                audio_url=audio_url,
                transcription=text,
                source=self.mock_producer.source,
                language=language,
            )
        )
        logger.info("Transcription saved: %s", record.id)
        return TranscriptionCreated(id=record.id, message="Transcription saved")

    async def create_remote_transcription(
        self,
        audio_url: str,
        language: Optional[str] = None,
    ) -> TranscriptionCreated:
        """
        Transcribe through the remote speech service.

        When the remote path fails (after its retries) a fallback record is
        written instead. Only a failing fallback write is an error.
        """
        language = language or DEFAULT_LANGUAGE
        try:
            text = await self.remote_producer.produce(audio_url, language)
            record = await self.store.add(
                Transcription(
                    audio_url=audio_url,
                    transcription=text,
                    source=TranscriptionSource.AZURE.value,
                    language=language,
                )
            )
        except (ProducerError, StoreError) as exc:
            logger.error("Azure transcription failed: %s", exc)
            return await self._fallback(audio_url, language)

        logger.info("Azure transcription saved: %s", record.id)
        return TranscriptionCreated(id=record.id, message="Transcription saved")

    async def get_recent(self, page: int = 1, limit: int = 10) -> Tuple[List[TranscriptionResponse], int]:
        """Transcriptions from the last 30 days, newest first, with total count."""
        if page < 1 or limit < 1 or limit > 100:
            raise ValidationError(
                "Invalid pagination parameters. Page must be >= 1, limit must be 1-100"
            )
        records, total = await self.store.list_recent(
            since=utcnow() - RECENT_WINDOW,
            offset=(page - 1) * limit,
            limit=limit,
        )
        logger.info("Found %d transcriptions from last 30 days (page %d)", len(records), page)
        return [self.to_response(r) for r in records], total

    async def get_by_id(self, record_id: str) -> TranscriptionResponse:
        try:
            parsed = uuid.UUID(str(record_id))
        except ValueError:
            raise ValidationError("Invalid ID format")
        record = await self.store.get(parsed)
        if record is None:
            raise NotFoundError("Transcription not found")
        return self.to_response(record)

    @staticmethod
    def to_response(record: Transcription) -> TranscriptionResponse:
        return TranscriptionResponse(
            id=record.id,
            audio_url=record.audio_url,
            transcription=record.transcription,
            source=record.source,
            language=record.language,
            workflow_status=record.workflow_status,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )

    async def _fallback(self, audio_url: str, language: str) -> TranscriptionCreated:
        logger.info("Falling back to mock transcription for %s", audio_url)
        try:
            record = await self.store.add(
                Transcription(
                    audio_url=audio_url,
                    transcription=FALLBACK_TRANSCRIPTION,
                    source=TranscriptionSource.MOCK.value,
                    language=language,
                )
            )
        except StoreError as exc:
            logger.error("Fallback transcription also failed: %s", exc)
            raise StoreError("Both Azure and fallback transcription failed") from exc

        logger.info("Fallback transcription saved: %s", record.id)
        return TranscriptionCreated(id=record.id, message="Transcription saved (fallback mode)")
