"""
System smoke test: the HTTP surface in-process against the temp SQLite file.

The app lifespan runs for each test; the producers are then swapped for
deterministic ones so no request fails at random.
"""

import random
import uuid
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import delete

from voiceowl.api.middleware.rate_limit import get_store
from voiceowl.config import get_settings
from voiceowl.database import async_session_maker, engine
from voiceowl.kernel.models import Transcription
from voiceowl.kernel.store import TranscriptStore
from voiceowl.main import app
from voiceowl.orchestration import WorkflowStateMachine
from voiceowl.producers import (
    WORKFLOW_TRANSCRIPTIONS,
    MockTranscriptionProducer,
    RemoteSpeechProducer,
    RetryPolicy,
)
from voiceowl.services import TranscriptionService

URL = "https://example.com/audio.mp3"


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Async client with a started app, an empty table and deterministic producers."""
    async with app.router.lifespan_context(app):
        async with engine.begin() as conn:
            await conn.execute(delete(Transcription))

        store = TranscriptStore(async_session_maker)
        app.state.state_machine = WorkflowStateMachine(
            store,
            app.state.scheduler,
            MockTranscriptionProducer(download_delay=0, catalog=WORKFLOW_TRANSCRIPTIONS),
            time_unit=60,
        )
        app.state.transcription_service = TranscriptionService(
            store,
            MockTranscriptionProducer(download_delay=0),
            RemoteSpeechProducer(
                "real-key",
                "eastus",
                policy=RetryPolicy(base_delay=0, max_delay=0),
                failure_rate=0.0,
                download_failure_rate=0.0,
                latency=0,
                download_delay=0,
                rng=random.Random(11),
            ),
        )
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as ac:
            yield ac


async def _create(client: AsyncClient, **body) -> dict:
    r = await client.post("/workflow", json={"audioUrl": URL, **body})
    assert r.status_code == 201, r.text
    return r.json()["data"]


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    r = await client.get("/health")
    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "ok"
    assert "version" in data


@pytest.mark.asyncio
async def test_root_lists_endpoints(client: AsyncClient):
    r = await client.get("/")
    assert r.status_code == 200
    assert "POST /workflow" in r.json()["endpoints"]


@pytest.mark.asyncio
async def test_create_workflow(client: AsyncClient):
    r = await client.post("/workflow", json={"audioUrl": URL, "language": "es-ES"})
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["success"] is True
    assert body["message"] == "Workflow created successfully"
    data = body["data"]
    assert data["currentStatus"] == "transcription"
    assert data["canTransition"] == ["review", "rejected"]
    history = data["workflowHistory"]
    assert len(history) == 1
    assert history[0]["status"] == "transcription"
    assert "reviewedBy" not in history[0]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload, message",
    [
        ({}, "audioUrl is required"),
        ({"audioUrl": "not-a-url"}, "Invalid audioUrl format"),
        ({"audioUrl": URL, "language": "english"}, "language must be in format xx-XX"),
        ({"audioUrl": URL, "language": "en-US\n"}, "language must be in format xx-XX"),
    ],
)
async def test_create_workflow_bad_input(client: AsyncClient, payload, message):
    r = await client.post("/workflow", json=payload)
    assert r.status_code == 400
    body = r.json()
    assert body["success"] is False
    assert body["error"] == "Bad Request"
    assert message in body["message"]
    assert body["path"] == "/workflow"
    assert "timestamp" in body


@pytest.mark.asyncio
async def test_transition_flow(client: AsyncClient):
    created = await _create(client)
    wid = created["id"]

    r = await client.put(
        f"/workflow/{wid}/transition",
        json={"newStatus": "review", "comment": "Checked", "reviewedBy": "ana"},
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["message"] == "Workflow transitioned to review"
    assert body["data"]["currentStatus"] == "review"
    last = body["data"]["workflowHistory"][-1]
    assert last["reviewedBy"] == "ana"
    assert last["comment"] == "Checked"

    r = await client.get(f"/workflow/{wid}")
    assert r.status_code == 200
    assert len(r.json()["data"]["workflowHistory"]) == 2


@pytest.mark.asyncio
async def test_invalid_transition_is_400(client: AsyncClient):
    created = await _create(client)
    r = await client.put(f"/workflow/{created['id']}/transition", json={"newStatus": "completed"})
    assert r.status_code == 400
    assert "Valid transitions: review, rejected" in r.json()["message"]

    r = await client.get(f"/workflow/{created['id']}")
    assert r.json()["data"]["currentStatus"] == "transcription"


@pytest.mark.asyncio
async def test_unknown_status_is_400(client: AsyncClient):
    created = await _create(client)
    r = await client.put(f"/workflow/{created['id']}/transition", json={"newStatus": "archived"})
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_unknown_workflow_is_404(client: AsyncClient):
    r = await client.get(f"/workflow/{uuid.uuid4()}")
    assert r.status_code == 404
    assert r.json()["message"] == "Transcription not found"

    r = await client.put(f"/workflow/{uuid.uuid4()}/transition", json={"newStatus": "review"})
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_list_and_stats(client: AsyncClient):
    a = await _create(client)
    await _create(client)
    await client.put(f"/workflow/{a['id']}/transition", json={"newStatus": "review"})

    r = await client.get("/workflows", params={"status": "review"})
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["total"] == 1
    assert data["page"] == 1
    assert data["limit"] == 10
    assert data["workflows"][0]["id"] == a["id"]
    assert data["workflows"][0]["audioUrl"] == URL

    r = await client.get("/workflow/stats")
    assert r.status_code == 200
    stats = r.json()["data"]
    assert stats["total"] == 2
    assert stats["statistics"]["review"] == 1
    assert stats["statistics"]["transcription"] == 1
    assert stats["statistics"]["completed"] == 0


@pytest.mark.asyncio
async def test_empty_optional_inputs_are_absent(client: AsyncClient):
    created = await _create(client, language="")
    r = await client.get(f"/transcription/{created['id']}")
    assert r.status_code == 200
    assert r.json()["data"]["language"] == "en-US"

    r = await client.get("/workflows", params={"status": ""})
    assert r.status_code == 200
    assert r.json()["data"]["total"] == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "params",
    [{"page": 0}, {"limit": 0}, {"limit": 101}, {"status": "archived"}, {"page": "abc"}],
)
async def test_list_bad_params(client: AsyncClient, params):
    r = await client.get("/workflows", params=params)
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_plain_transcription_endpoints(client: AsyncClient):
    r = await client.post("/transcription", json={"audioUrl": URL, "language": "de-DE"})
    assert r.status_code == 201, r.text
    created = r.json()
    assert created["message"] == "Transcription saved"

    r = await client.get(f"/transcription/{created['id']}")
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["language"] == "de-DE"
    assert "workflowStatus" not in data

    r = await client.get("/transcriptions", params={"page": 1, "limit": 5})
    assert r.status_code == 200
    body = r.json()
    assert body["pagination"] == {"page": 1, "limit": 5, "total": 1, "totalPages": 1}

    # Plain transcriptions are not workflows
    r = await client.get(f"/workflow/{created['id']}")
    assert r.status_code == 404
    r = await client.get("/workflow/stats")
    assert r.json()["data"]["total"] == 0


@pytest.mark.asyncio
async def test_transcription_lookup_errors(client: AsyncClient):
    r = await client.get("/transcription/not-an-id")
    assert r.status_code == 400
    r = await client.get(f"/transcription/{uuid.uuid4()}")
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_azure_transcription_and_health(client: AsyncClient):
    r = await client.post("/azure-transcription", json={"audioUrl": URL})
    assert r.status_code == 201, r.text
    assert r.json()["message"] == "Transcription saved"

    r = await client.get("/azure/health")
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["status"] in ("healthy", "degraded")
    assert data["region"] == "eastus"


@pytest.mark.asyncio
async def test_unknown_route(client: AsyncClient):
    r = await client.get("/nope")
    assert r.status_code == 404
    assert r.json()["message"] == "Route GET /nope not found"


@pytest.mark.asyncio
async def test_request_id_and_security_headers(client: AsyncClient):
    r = await client.get("/health", headers={"X-Request-ID": "req-123"})
    assert r.headers["X-Request-ID"] == "req-123"
    assert r.headers["X-Content-Type-Options"] == "nosniff"


@pytest.mark.asyncio
async def test_azure_rate_limit(client: AsyncClient, monkeypatch):
    settings = get_settings()
    monkeypatch.setattr(settings, "rate_limit_enabled", True)
    monkeypatch.setattr(settings, "rate_limit_azure_max_requests", 1)
    get_store().reset()
    try:
        first = await client.post("/azure-transcription", json={"audioUrl": URL})
        assert first.status_code == 201
        second = await client.post("/azure-transcription", json={"audioUrl": URL})
        assert second.status_code == 429
        body = second.json()
        assert body["error"] == "Too Many Requests"
        assert body["retryAfter"] == settings.rate_limit_azure_window_seconds
    finally:
        get_store().reset()
