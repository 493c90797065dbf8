"""Unit tests for the auto-progression scheduler."""

import asyncio
import uuid

import pytest

from voiceowl.orchestration.scheduler import AutoProgressionScheduler


class TestAutoProgressionScheduler:
    @pytest.mark.asyncio
    async def test_fires_once_after_delay(self, scheduler):
        record_id = uuid.uuid4()
        fired = []

        async def callback(rid):
            fired.append(rid)

        task = scheduler.schedule(record_id, 0.01, callback)
        assert scheduler.pending(record_id) == 1
        await task
        assert fired == [record_id]
        assert scheduler.pending() == 0

    @pytest.mark.asyncio
    async def test_cancelled_timer_never_fires(self, scheduler):
        record_id = uuid.uuid4()
        fired = []

        async def callback(rid):
            fired.append(rid)

        task = scheduler.schedule(record_id, 0.05, callback)
        assert scheduler.cancel(record_id) == 1
        with pytest.raises(asyncio.CancelledError):
            await task
        await asyncio.sleep(0.1)
        assert fired == []

    @pytest.mark.asyncio
    async def test_cancel_only_touches_one_record(self, scheduler):
        a, b = uuid.uuid4(), uuid.uuid4()
        fired = []

        async def callback(rid):
            fired.append(rid)

        scheduler.schedule(a, 0.02, callback)
        task_b = scheduler.schedule(b, 0.02, callback)
        scheduler.cancel(a)
        await task_b
        assert fired == [b]

    @pytest.mark.asyncio
    async def test_callback_failure_is_swallowed(self, scheduler, caplog):
        record_id = uuid.uuid4()

        async def broken(rid):
            raise RuntimeError("store unavailable")

        task = scheduler.schedule(record_id, 0, broken)
        await task  # does not raise
        assert "Error in auto-progression" in caplog.text

    @pytest.mark.asyncio
    async def test_callback_can_cancel_its_own_record(self, scheduler):
        """A firing timer is not cancelled by the transition it performs."""
        record_id = uuid.uuid4()
        done = []

        async def callback(rid):
            scheduler.cancel(rid)
            await asyncio.sleep(0)
            done.append(rid)

        await scheduler.schedule(record_id, 0, callback)
        assert done == [record_id]

    @pytest.mark.asyncio
    async def test_shutdown_cancels_pending(self):
        scheduler = AutoProgressionScheduler()
        fired = []

        async def callback(rid):
            fired.append(rid)

        scheduler.schedule(uuid.uuid4(), 10, callback)
        scheduler.schedule(uuid.uuid4(), 10, callback)
        await scheduler.shutdown()
        assert scheduler.pending() == 0
        assert scheduler.schedule(uuid.uuid4(), 0, callback) is None
        assert fired == []
