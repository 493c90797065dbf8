"""
Pytest fixtures for VoiceOwl tests.

Environment is set before any ``voiceowl`` import so the module-level
settings and engine point at a throwaway SQLite file.
"""

import asyncio
import os
import random
import tempfile
import time
import uuid
from typing import AsyncGenerator, Callable

_tmp = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
_tmp.close()
TEST_DB_PATH = _tmp.name
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{TEST_DB_PATH}"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["ENVIRONMENT"] = "test"
os.environ["WORKFLOW_TIME_UNIT_SECONDS"] = "60"

import pytest
import pytest_asyncio

from voiceowl.config import get_settings

get_settings.cache_clear()

from voiceowl.database import build_engine, build_session_maker, init_db
from voiceowl.kernel.store import TranscriptStore
from voiceowl.orchestration import AutoProgressionScheduler, WorkflowStateMachine
from voiceowl.producers import WORKFLOW_TRANSCRIPTIONS, MockTranscriptionProducer

def pytest_sessionfinish(session, exitstatus):
    """Clean up temp DB file after test run."""
    for suffix in ("", "-wal", "-shm"):
        path = TEST_DB_PATH + suffix
        if os.path.exists(path):
            os.unlink(path)


@pytest_asyncio.fixture
async def store(tmp_path) -> AsyncGenerator[TranscriptStore, None]:
    """Store backed by a fresh SQLite file per test."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'store.db'}")
    await init_db(engine)
    yield TranscriptStore(build_session_maker(engine))
    await engine.dispose()


@pytest_asyncio.fixture
async def scheduler() -> AsyncGenerator[AutoProgressionScheduler, None]:
    sched = AutoProgressionScheduler()
    yield sched
    await sched.shutdown()


@pytest.fixture
def producer() -> MockTranscriptionProducer:
    """Deterministic producer: never fails, no simulated latency."""
    return MockTranscriptionProducer(
        failure_rate=0.0,
        download_delay=0,
        catalog=WORKFLOW_TRANSCRIPTIONS,
        rng=random.Random(7),
    )


@pytest.fixture
def make_machine(store, scheduler, producer) -> Callable[..., WorkflowStateMachine]:
    """Factory so tests can pick the time unit and cancellation behaviour."""

    def _make(time_unit: float = 60.0, **kwargs) -> WorkflowStateMachine:
        return WorkflowStateMachine(store, scheduler, producer, time_unit=time_unit, **kwargs)

    return _make


@pytest.fixture
def machine(make_machine) -> WorkflowStateMachine:
    """State machine whose timers never fire during a test."""
    return make_machine()


async def _wait_for_status(
    machine: WorkflowStateMachine,
    record_id: uuid.UUID,
    status: str,
    timeout: float = 3.0,
) -> str:
    """Poll until the workflow reaches ``status``; returns the last status seen."""
    deadline = time.monotonic() + timeout
    current = None
    while time.monotonic() < deadline:
        current = (await machine.get_status(record_id)).current_status
        if current == status:
            return current
        await asyncio.sleep(0.01)
    return current


@pytest.fixture
def wait_for_status():
    return _wait_for_status
