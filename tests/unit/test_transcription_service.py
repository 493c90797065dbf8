"""Unit tests for the stand-alone transcription service."""

import random
import uuid

import pytest

from voiceowl.errors import NotFoundError, StoreError, ValidationError
from voiceowl.producers import (
    AZURE_TRANSCRIPTIONS,
    MockTranscriptionProducer,
    RemoteSpeechProducer,
    RetryPolicy,
)
from voiceowl.services import TranscriptionService
from voiceowl.services.transcription_service import FALLBACK_TRANSCRIPTION

URL = "https://example.com/audio.mp3"


def _service(store, remote_failure_rate: float = 0.0) -> TranscriptionService:
    return TranscriptionService(
        store,
        MockTranscriptionProducer(download_delay=0, rng=random.Random(5)),
        RemoteSpeechProducer(
            "real-key",
            "eastus",
            policy=RetryPolicy(base_delay=0, max_delay=0),
            failure_rate=remote_failure_rate,
            download_failure_rate=0.0,
            latency=0,
            download_delay=0,
            rng=random.Random(5),
        ),
    )


class TestCreate:
    @pytest.mark.asyncio
    async def test_mock_transcription_has_no_workflow(self, store):
        service = _service(store)
        created = await service.create_transcription(URL, "it-IT")
        assert created.message == "Transcription saved"
        record = await store.get(created.id)
        assert record.workflow_status is None
        assert record.language == "it-IT"
        assert record.source == "mock"

    @pytest.mark.asyncio
    async def test_remote_transcription(self, store):
        created = await _service(store).create_remote_transcription(URL)
        assert created.message == "Transcription saved"
        record = await store.get(created.id)
        assert record.source == "azure"
        assert record.transcription in AZURE_TRANSCRIPTIONS["en-US"]

    @pytest.mark.asyncio
    async def test_remote_falls_back_when_retries_exhausted(self, store):
        created = await _service(store, remote_failure_rate=1.0).create_remote_transcription(URL)
        assert created.message == "Transcription saved (fallback mode)"
        record = await store.get(created.id)
        assert record.source == "mock"
        assert record.transcription == FALLBACK_TRANSCRIPTION

    @pytest.mark.asyncio
    async def test_fallback_write_failure(self, store):
        class _BrokenStore(type(store)):
            async def add(self, record):
                raise StoreError("Failed to save transcription")

        service = _service(_BrokenStore(store._session_factory))
        with pytest.raises(StoreError, match="Both Azure and fallback transcription failed"):
            await service.create_remote_transcription(URL)


class TestRead:
    @pytest.mark.asyncio
    async def test_get_by_id(self, store):
        service = _service(store)
        created = await service.create_transcription(URL)
        found = await service.get_by_id(str(created.id))
        assert found.id == created.id
        assert found.audio_url == URL

    @pytest.mark.asyncio
    async def test_get_by_id_errors(self, store):
        service = _service(store)
        with pytest.raises(ValidationError, match="Invalid ID format"):
            await service.get_by_id("nope")
        with pytest.raises(NotFoundError):
            await service.get_by_id(str(uuid.uuid4()))

    @pytest.mark.asyncio
    async def test_recent_paging(self, store):
        service = _service(store)
        for _ in range(3):
            await service.create_transcription(URL)
        items, total = await service.get_recent(page=2, limit=2)
        assert total == 3
        assert len(items) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("page, limit", [(0, 10), (1, 0), (1, 101)])
    async def test_recent_rejects_bad_paging(self, store, page, limit):
        with pytest.raises(ValidationError, match="Invalid pagination parameters"):
            await _service(store).get_recent(page=page, limit=limit)
