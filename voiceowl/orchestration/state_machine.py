"""
State machine for the transcription review workflow.

    transcription -> review -> approval -> completed
          ^            |          |
          +-- rejected <----------+

Valid transitions are defined here. Every applied transition appends one
entry to the record's history and is written with a conditional update, so
a caller can never act on a status somebody else already replaced.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple, Union

from voiceowl.errors import (
    InvalidTransitionError,
    NotFoundError,
    ProducerError,
    StoreError,
    ValidationError,
)
from voiceowl.kernel.models.base import utcnow
from voiceowl.kernel.models.transcription import Transcription, WorkflowStatus
from voiceowl.kernel.store.transcript_store import TranscriptStore
from voiceowl.logging_config import bind_workflow, get_logger
from voiceowl.orchestration.scheduler import AutoProgressionScheduler
from voiceowl.producers.base import TranscriptionProducer
from voiceowl.schemas.validators import (
    DEFAULT_LANGUAGE,
    INVALID_AUDIO_URL,
    INVALID_LANGUAGE,
    is_valid_audio_url,
    is_valid_language,
    is_valid_status,
)
from voiceowl.schemas.workflow import (
    WorkflowHistoryEntry,
    WorkflowListResponse,
    WorkflowRecordResponse,
    WorkflowStatsResponse,
    WorkflowStatusResponse,
)

logger = get_logger(__name__)

_S = WorkflowStatus

# from_state -> allowed to_states (order is the order reported to callers)
_TRANSITIONS: Dict[str, Tuple[str, ...]] = {
    _S.TRANSCRIPTION.value: (_S.REVIEW.value, _S.REJECTED.value),
    _S.REVIEW.value: (_S.APPROVAL.value, _S.REJECTED.value, _S.TRANSCRIPTION.value),
    _S.APPROVAL.value: (_S.COMPLETED.value, _S.REJECTED.value),
    _S.COMPLETED.value: (),
    _S.REJECTED.value: (_S.TRANSCRIPTION.value,),
}

# current status at fire time -> next status
_AUTO_PROGRESSION: Dict[str, str] = {
    _S.TRANSCRIPTION.value: _S.REVIEW.value,
    _S.REVIEW.value: _S.APPROVAL.value,
    _S.APPROVAL.value: _S.COMPLETED.value,
}

# status entered automatically -> history comment
_AUTO_COMMENTS: Dict[str, str] = {
    _S.REVIEW.value: "Auto-progressed to review phase",
    _S.APPROVAL.value: "Auto-progressed to approval phase",
    _S.COMPLETED.value: "Auto-completed workflow",
}

# status just entered -> time units until the auto-progression fires
_FOLLOW_UP_DELAY_UNITS: Dict[str, float] = {
    _S.TRANSCRIPTION.value: 2,  # only on create; manual returns do not schedule
    _S.REVIEW.value: 3,
    _S.APPROVAL.value: 5,
}

SYSTEM_REVIEWER = "system"
INITIAL_COMMENT = "Workflow initiated - transcription completed"
MAX_PAGE_SIZE = 100


def valid_transitions(from_state: Optional[str]) -> List[str]:
    """Statuses reachable from ``from_state`` in one step."""
    return list(_TRANSITIONS.get(from_state or "", ()))


def can_transition(from_state: Optional[str], to_state: str) -> bool:
    """Whether ``from_state -> to_state`` is an edge of the workflow."""
    return to_state in _TRANSITIONS.get(from_state or "", ())


def next_auto_status(current: Optional[str]) -> Optional[str]:
    """Status an auto-progression would move ``current`` to, if any."""
    return _AUTO_PROGRESSION.get(current or "")


def _status_value(status: Union[str, WorkflowStatus]) -> str:
    return status.value if isinstance(status, WorkflowStatus) else str(status)


def _history_entry(
    status: str,
    timestamp: datetime,
    comment: Optional[str] = None,
    reviewed_by: Optional[str] = None,
) -> Dict[str, Any]:
    entry: Dict[str, Any] = {"status": status, "timestamp": timestamp.isoformat()}
    if comment is not None:
        entry["comment"] = comment
    if reviewed_by is not None:
        entry["reviewedBy"] = reviewed_by
    return entry


def _parse_id(record_id: Union[str, uuid.UUID]) -> uuid.UUID:
    if isinstance(record_id, uuid.UUID):
        return record_id
    try:
        return uuid.UUID(str(record_id))
    except ValueError:
        # A malformed id cannot reference a stored record
        raise NotFoundError("Transcription not found")


class WorkflowStateMachine:
    """
    Applies workflow operations against the transcript store.

    Holds no per-request state. The store, scheduler and producer are
    injected so the same instance serves HTTP handlers and timer callbacks.

    Args:
        store: Transcript store handle.
        scheduler: Runs delayed auto-progressions.
        producer: Produces the transcription text on create.
        time_unit: Seconds per delay unit (delays are 2, 3 and 5 units).
        cancel_superseded: Cancel a record's pending timers whenever it
            transitions. The live-status check before acting applies either way.
        max_write_attempts: Conditional-update attempts before giving up
            under contention.
    """

    def __init__(
        self,
        store: TranscriptStore,
        scheduler: AutoProgressionScheduler,
        producer: TranscriptionProducer,
        time_unit: float = 1.0,
        cancel_superseded: bool = True,
        max_write_attempts: int = 3,
    ):
        self.store = store
        self.scheduler = scheduler
        self.producer = producer
        self.time_unit = time_unit
        self.cancel_superseded = cancel_superseded
        self.max_write_attempts = max_write_attempts

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def create(
        self,
        audio_url: str,
        language: Optional[str] = None,
    ) -> WorkflowStatusResponse:
        """
        Transcribe ``audio_url`` and start its workflow in ``transcription``.

        Nothing is persisted unless the text was produced; the single insert
        completes the operation.

        Raises:
            ValidationError: Malformed URL or language tag.
            ProducerError: Text generation failed.
            StoreError: The insert failed.
        """
        if not audio_url or not isinstance(audio_url, str):
            raise ValidationError("audioUrl is required and must be a string")
        if not is_valid_audio_url(audio_url):
            raise ValidationError(INVALID_AUDIO_URL)
        language = language or DEFAULT_LANGUAGE
        if not is_valid_language(language):
            raise ValidationError(INVALID_LANGUAGE)

        logger.info("Starting workflow for audio %s (%s)", audio_url, language)
        try:
            text = await self.producer.produce(audio_url, language)
        except ProducerError:
            raise
        except Exception as exc:
            logger.error("Transcription producer failed for %s: %s", audio_url, exc)
            raise ProducerError("Failed to generate transcription") from exc

        now = utcnow()
        record = Transcription(
            audio_url=audio_url,
            transcription=text,
            source=self.producer.source,
            language=language,
            workflow_status=_S.TRANSCRIPTION.value,
            workflow_history=[_history_entry(_S.TRANSCRIPTION.value, now, INITIAL_COMMENT)],
            version=0,
            created_at=now,
        )
        record = await self.store.add(record)
        logger.info("Workflow created", extra={"workflow_id": str(record.id)})

        self._schedule_follow_up(record.id, _S.TRANSCRIPTION.value)
        return self.to_status_view(record)

    async def transition(
        self,
        record_id: Union[str, uuid.UUID],
        new_status: Union[str, WorkflowStatus],
        comment: Optional[str] = None,
        reviewed_by: Optional[str] = None,
    ) -> WorkflowStatusResponse:
        """
        Move a workflow to ``new_status`` and append a history entry.

        Raises:
            NotFoundError: No workflow with this id.
            ValidationError: ``new_status`` is not a workflow status.
            InvalidTransitionError: ``new_status`` is not reachable from the
                current status (this includes the current status itself).
        """
        target = _status_value(new_status)
        if not is_valid_status(target):
            raise ValidationError(
                f"Invalid status. Must be one of: {', '.join(s.value for s in WorkflowStatus)}"
            )
        with bind_workflow(record_id):
            record = await self._apply(_parse_id(record_id), target, comment, reviewed_by)
        if record is None:
            raise StoreError(f"Workflow {record_id} could not be transitioned to {target}")
        return self.to_status_view(record)

    async def get_status(self, record_id: Union[str, uuid.UUID]) -> WorkflowStatusResponse:
        """Read-only view of a workflow."""
        record = await self._load(_parse_id(record_id))
        return self.to_status_view(record)

    async def list_workflows(
        self,
        status: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> WorkflowListResponse:
        """
        Page through workflows, most recently updated first.

        ``total`` counts every match of ``status``, not just this page.
        """
        if page < 1:
            raise ValidationError("page must be a positive integer")
        if limit < 1 or limit > MAX_PAGE_SIZE:
            raise ValidationError(f"limit must be a positive integer between 1 and {MAX_PAGE_SIZE}")
        # An empty filter lists every workflow
        if status:
            status = _status_value(status)
            if not is_valid_status(status):
                raise ValidationError(
                    "Invalid status filter. Must be one of: "
                    + ", ".join(s.value for s in WorkflowStatus)
                )

        records, total = await self.store.list_workflows(
            status=status,
            offset=(page - 1) * limit,
            limit=limit,
        )
        logger.info("Found %d workflows (status: %s)", len(records), status or "all")
        return WorkflowListResponse(
            workflows=[self.to_record_view(r) for r in records],
            total=total,
            page=page,
            limit=limit,
        )

    async def stats(self) -> WorkflowStatsResponse:
        """Number of workflows in each status, plus the total."""
        counts = await self.store.count_by_status()
        return WorkflowStatsResponse(statistics=counts, total=sum(counts.values()))

    async def auto_progress(self, record_id: uuid.UUID) -> Optional[WorkflowStatusResponse]:
        """
        Advance a workflow one step on behalf of the system.

        Decides from the status stored now, not the status seen when the
        timer was set. Statuses without an automatic next step and vanished
        records are left alone.
        """
        record = await self.store.get(record_id)
        if record is None or not record.has_workflow:
            logger.info("Auto-progression skipped: workflow %s no longer exists", record_id)
            return None

        target = next_auto_status(record.workflow_status)
        if target is None:
            logger.info(
                "Auto-progression skipped: workflow %s is %s",
                record_id,
                record.workflow_status,
            )
            return None

        updated = await self._apply(
            record.id,
            target,
            _AUTO_COMMENTS[target],
            SYSTEM_REVIEWER,
            expected_status=record.workflow_status,
        )
        return self.to_status_view(updated) if updated is not None else None

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    @staticmethod
    def to_status_view(record: Transcription) -> WorkflowStatusResponse:
        current = record.workflow_status or _S.TRANSCRIPTION.value
        return WorkflowStatusResponse(
            id=record.id,
            current_status=current,
            workflow_history=[
                WorkflowHistoryEntry.model_validate(e) for e in (record.workflow_history or [])
            ],
            can_transition=valid_transitions(current),
        )

    @staticmethod
    def to_record_view(record: Transcription) -> WorkflowRecordResponse:
        return WorkflowRecordResponse(
            id=record.id,
            audio_url=record.audio_url,
            transcription=record.transcription,
            source=record.source,
            language=record.language,
            workflow_status=record.workflow_status,
            workflow_history=[
                WorkflowHistoryEntry.model_validate(e) for e in (record.workflow_history or [])
            ],
            created_at=record.created_at,
            updated_at=record.updated_at,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _load(self, record_id: uuid.UUID) -> Transcription:
        record = await self.store.get(record_id)
        if record is None:
            raise NotFoundError("Transcription not found")
        if not record.has_workflow:
            raise NotFoundError("No workflow status found for this transcription")
        return record

    async def _apply(
        self,
        record_id: uuid.UUID,
        target: str,
        comment: Optional[str],
        reviewed_by: Optional[str],
        expected_status: Optional[str] = None,
    ) -> Optional[Transcription]:
        """
        Validate and write one transition.

        With ``expected_status`` set, returns None instead of raising when
        the live status differs from it.
        """
        for attempt in range(1, self.max_write_attempts + 1):
            record = await self._load(record_id)
            current = record.workflow_status

            if expected_status is not None and current != expected_status:
                logger.info(
                    "Auto-progression for %s superseded (%s -> %s)",
                    record_id,
                    expected_status,
                    current,
                )
                return None

            if not can_transition(current, target):
                raise InvalidTransitionError(current, target, valid_transitions(current))

            now = utcnow()
            history = list(record.workflow_history or [])
            history.append(_history_entry(target, now, comment, reviewed_by))

            written = await self.store.compare_and_set(
                record.id,
                record.version,
                workflow_status=target,
                workflow_history=history,
                updated_at=now,
            )
            if written:
                record.workflow_status = target
                record.workflow_history = history
                record.updated_at = now
                record.version += 1
                break

            logger.warning(
                "Workflow %s changed concurrently (attempt %d/%d)",
                record_id,
                attempt,
                self.max_write_attempts,
            )
        else:
            raise StoreError("Workflow was modified concurrently, please retry")

        logger.info(
            "Workflow %s transitioned %s -> %s",
            record_id,
            current,
            target,
            extra={"workflow_id": str(record_id), "reviewed_by": reviewed_by},
        )

        if self.cancel_superseded:
            self.scheduler.cancel(record.id)
        if target != _S.TRANSCRIPTION.value:
            self._schedule_follow_up(record.id, target)
        return record

    def _schedule_follow_up(self, record_id: uuid.UUID, entered: str) -> None:
        units = _FOLLOW_UP_DELAY_UNITS.get(entered)
        if units is None:
            return
        self.scheduler.schedule(record_id, units * self.time_unit, self.auto_progress)
