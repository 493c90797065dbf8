"""
Auto-progression scheduler.

Fire-once delayed calls on the running event loop. Nothing here is
durable: pending timers die with the process.
"""

import asyncio
import uuid
from typing import Any, Awaitable, Callable, Dict, Optional, Set

from voiceowl.logging_config import bind_workflow, get_logger

logger = get_logger(__name__)

ProgressionCallback = Callable[[uuid.UUID], Awaitable[Any]]


class AutoProgressionScheduler:
    """
    Runs ``callback(record_id)`` once after ``delay`` seconds.

    Failures inside a firing are logged and dropped so one broken record
    cannot take down the loop or affect other timers. Timers can be
    cancelled per record; a timer that is already firing is left alone.
    """

    def __init__(self) -> None:
        self._tasks: Dict[uuid.UUID, Set[asyncio.Task]] = {}
        self._closed = False

    def schedule(
        self,
        record_id: uuid.UUID,
        delay: float,
        callback: ProgressionCallback,
    ) -> Optional[asyncio.Task]:
        """Start a timer. Returns the task, or None after shutdown."""
        if self._closed:
            logger.warning("Scheduler closed; dropping timer for %s", record_id)
            return None

        task = asyncio.create_task(
            self._run(record_id, delay, callback),
            name=f"auto-progress-{record_id}",
        )
        self._tasks.setdefault(record_id, set()).add(task)
        task.add_done_callback(lambda t: self._discard(record_id, t))
        logger.debug("Scheduled auto-progression for %s in %.2fs", record_id, delay)
        return task

    def cancel(self, record_id: uuid.UUID) -> int:
        """Cancel pending timers for a record. Returns how many were cancelled."""
        current = asyncio.current_task()
        cancelled = 0
        for task in list(self._tasks.get(record_id, ())):
            if task is current or task.done():
                continue
            task.cancel()
            cancelled += 1
        if cancelled:
            logger.info("Cancelled %d pending auto-progression(s) for %s", cancelled, record_id)
        return cancelled

    def pending(self, record_id: Optional[uuid.UUID] = None) -> int:
        """Number of timers not yet finished, for one record or overall."""
        if record_id is not None:
            return sum(1 for t in self._tasks.get(record_id, ()) if not t.done())
        return sum(1 for tasks in self._tasks.values() for t in tasks if not t.done())

    async def shutdown(self) -> None:
        """Cancel every pending timer and wait for them to unwind."""
        self._closed = True
        tasks = [t for tasks in self._tasks.values() for t in tasks if not t.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
        logger.info("Auto-progression scheduler stopped (%d timer(s) cancelled)", len(tasks))

    async def _run(
        self,
        record_id: uuid.UUID,
        delay: float,
        callback: ProgressionCallback,
    ) -> None:
        try:
            await asyncio.sleep(delay)
        except asyncio.CancelledError:
            logger.debug("Auto-progression for %s cancelled before firing", record_id)
            raise

        # Unregister before firing so cancel() issued by the callback's own
        # transition does not target this task.
        self._discard(record_id, asyncio.current_task())
        with bind_workflow(record_id):
            try:
                await callback(record_id)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Error in auto-progression for %s", record_id)

    def _discard(self, record_id: uuid.UUID, task: Optional[asyncio.Task]) -> None:
        tasks = self._tasks.get(record_id)
        if not tasks or task is None:
            return
        tasks.discard(task)
        if not tasks:
            self._tasks.pop(record_id, None)
