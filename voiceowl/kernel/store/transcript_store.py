"""
Transcript store - the only component that talks to the database.

The store owns its sessions: each call opens a short-lived session from the
injected factory, so it is safe to use from request handlers and from
background timers alike.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import and_, delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from voiceowl.errors import StoreError
from voiceowl.kernel.models.transcription import Transcription, WorkflowStatus
from voiceowl.logging_config import get_logger

logger = get_logger(__name__)


class TranscriptStore:
    """
    Persistent collection of transcript and workflow records.

    Usage:
        store = TranscriptStore(async_session_maker)
        record = await store.add(Transcription(audio_url=url, transcription=text))
        ok = await store.compare_and_set(record.id, record.version, ...)
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def add(self, record: Transcription) -> Transcription:
        """Insert a new record and return it with defaults populated."""
        try:
            async with self._session_factory() as session:
                session.add(record)
                await session.commit()
                await session.refresh(record)
                return record
        except SQLAlchemyError as exc:
            logger.error("Failed to insert transcription: %s", exc)
            raise StoreError("Failed to save transcription") from exc

    async def get(self, record_id: uuid.UUID) -> Optional[Transcription]:
        """Fetch a record by id, or None."""
        try:
            async with self._session_factory() as session:
                return await session.get(Transcription, record_id)
        except SQLAlchemyError as exc:
            logger.error("Failed to load transcription %s: %s", record_id, exc)
            raise StoreError("Failed to load transcription") from exc

    async def compare_and_set(
        self,
        record_id: uuid.UUID,
        expected_version: int,
        *,
        workflow_status: str,
        workflow_history: List[Dict[str, Any]],
        updated_at: datetime,
    ) -> bool:
        """
        Write a new workflow state only if nobody else has since.

        Returns False when the stored version no longer equals
        ``expected_version`` (or the record is gone); nothing is written then.
        """
        stmt = (
            update(Transcription)
            .where(
                and_(
                    Transcription.id == record_id,
                    Transcription.version == expected_version,
                )
            )
            .values(
                workflow_status=workflow_status,
                workflow_history=workflow_history,
                updated_at=updated_at,
                version=expected_version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                await session.commit()
                return result.rowcount == 1
        except SQLAlchemyError as exc:
            logger.error("Failed to update transcription %s: %s", record_id, exc)
            raise StoreError("Failed to update workflow") from exc

    async def delete(self, record_id: uuid.UUID) -> bool:
        """Remove a record. Returns True if a row was deleted."""
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    delete(Transcription).where(Transcription.id == record_id)
                )
                await session.commit()
                return result.rowcount == 1
        except SQLAlchemyError as exc:
            logger.error("Failed to delete transcription %s: %s", record_id, exc)
            raise StoreError("Failed to delete transcription") from exc

    async def list_workflows(
        self,
        status: Optional[str] = None,
        offset: int = 0,
        limit: int = 10,
    ) -> Tuple[List[Transcription], int]:
        """
        Workflow-bearing records, most recently updated first.

        Records never transitioned have no ``updated_at`` and sort after the
        rest by creation time. ``total`` ignores the paging window.
        """
        condition = (
            Transcription.workflow_status == status
            if status
            else Transcription.workflow_status.is_not(None)
        )
        query = (
            select(Transcription)
            .where(condition)
            .order_by(
                Transcription.updated_at.desc().nulls_last(),
                Transcription.created_at.desc(),
            )
            .offset(offset)
            .limit(limit)
        )
        count_query = select(func.count(Transcription.id)).where(condition)
        try:
            async with self._session_factory() as session:
                items = list((await session.execute(query)).scalars().all())
                total = (await session.execute(count_query)).scalar() or 0
                return items, total
        except SQLAlchemyError as exc:
            logger.error("Failed to list workflows: %s", exc)
            raise StoreError("Failed to list workflows") from exc

    async def count_by_status(self) -> Dict[str, int]:
        """Number of records per workflow status, zero-filled."""
        query = (
            select(Transcription.workflow_status, func.count(Transcription.id))
            .where(Transcription.workflow_status.is_not(None))
            .group_by(Transcription.workflow_status)
        )
        counts = {s.value: 0 for s in WorkflowStatus}
        try:
            async with self._session_factory() as session:
                for status, count in (await session.execute(query)).all():
                    counts[status] = count
        except SQLAlchemyError as exc:
            logger.error("Failed to aggregate workflow stats: %s", exc)
            raise StoreError("Failed to get workflow statistics") from exc
        return counts

    async def list_recent(
        self,
        since: datetime,
        offset: int = 0,
        limit: int = 10,
    ) -> Tuple[List[Transcription], int]:
        """Records created at or after ``since``, newest first."""
        condition = Transcription.created_at >= since
        query = (
            select(Transcription)
            .where(condition)
            .order_by(Transcription.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        count_query = select(func.count(Transcription.id)).where(condition)
        try:
            async with self._session_factory() as session:
                items = list((await session.execute(query)).scalars().all())
                total = (await session.execute(count_query)).scalar() or 0
                return items, total
        except SQLAlchemyError as exc:
            logger.error("Failed to list recent transcriptions: %s", exc)
            raise StoreError("Failed to fetch transcriptions") from exc
