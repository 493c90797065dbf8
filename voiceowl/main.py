"""
VoiceOwl Transcription API

FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from http import HTTPStatus
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from voiceowl.api.middleware import (
    RateLimitMiddleware,
    RequestIdMiddleware,
    SecurityHeadersMiddleware,
)
from voiceowl.api.v1 import router as api_v1_router
from voiceowl.config import get_settings
from voiceowl.database import async_session_maker, close_db, init_db
from voiceowl.errors import WorkflowError
from voiceowl.kernel.store import TranscriptStore
from voiceowl.logging_config import configure_logging, get_logger
from voiceowl.orchestration import AutoProgressionScheduler, WorkflowStateMachine
from voiceowl.producers import (
    WORKFLOW_TRANSCRIPTIONS,
    MockTranscriptionProducer,
    RemoteSpeechProducer,
)
from voiceowl.schemas.common import ErrorResponse, HealthResponse
from voiceowl.services import TranscriptionService

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan handler.

    Builds the store, scheduler, producers and services once and keeps them
    on ``app.state``; pending auto-progression timers are cancelled on shutdown.
    """
    configure_logging(
        log_level=settings.log_level,
        environment=settings.environment,
        debug=settings.debug,
    )

    logger.info("Starting %s v%s", settings.project_name, settings.version)
    await init_db()
    logger.info("Database initialized")

    store = TranscriptStore(async_session_maker)
    scheduler = AutoProgressionScheduler()
    app.state.scheduler = scheduler
    app.state.state_machine = WorkflowStateMachine(
        store,
        scheduler,
        MockTranscriptionProducer(
            failure_rate=settings.workflow_download_failure_rate,
            download_delay=0.5,
            catalog=WORKFLOW_TRANSCRIPTIONS,
        ),
        time_unit=settings.workflow_time_unit_seconds,
    )
    app.state.transcription_service = TranscriptionService(
        store,
        MockTranscriptionProducer(failure_rate=settings.transcription_download_failure_rate),
        RemoteSpeechProducer(settings.azure_speech_key, settings.azure_region),
    )

    yield

    logger.info("Shutting down...")
    await scheduler.shutdown()
    await close_db()
    logger.info("Database connections closed")


app = FastAPI(
    title=settings.project_name,
    description="""
    VoiceOwl Transcription API

    Mock transcription of audio URLs plus a review workflow:
    transcription -> review -> approval -> completed, with rejection
    possible from review and approval. Every status change is recorded in
    an append-only history; transcription, review and approval advance on
    their own after 2, 3 and 5 time units.
    """,
    version=settings.version,
    lifespan=lifespan,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)


# add_middleware stacks innermost-first, so the last one added is outermost.
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RateLimitMiddleware)
app.add_middleware(RequestIdMiddleware)

_cors_origins = settings.cors_origins if settings.is_production else ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With", "X-Request-ID"],
)


def _error_response(
    request: Request,
    status_code: int,
    message: str,
    headers: Optional[dict] = None,
) -> JSONResponse:
    req_id = getattr(request.state, "request_id", None)
    body = ErrorResponse(
        error=HTTPStatus(status_code).phrase,
        message=message,
        path=request.url.path,
        timestamp=datetime.now(timezone.utc),
        request_id=req_id,
    )
    headers = dict(headers or {})
    if req_id:
        headers["X-Request-ID"] = req_id
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", exclude_none=True),
        headers=headers,
    )


def _validation_message(exc: RequestValidationError) -> str:
    """First validation problem, phrased for API callers."""
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    error = errors[0]
    loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
    field = ".".join(loc)
    if error.get("type") == "missing":
        return f"{field} is required" if field else "Request body is required"
    msg = str(error.get("msg", "Invalid value"))
    if msg.startswith("Value error, "):
        return msg[len("Value error, "):]
    return f"{field}: {msg}" if field else msg


@app.exception_handler(WorkflowError)
async def workflow_error_handler(request: Request, exc: WorkflowError):
    """Map domain errors to their status; hide internal detail in production."""
    message = exc.message
    if exc.status_code >= 500:
        logger.error("%s: %s", type(exc).__name__, exc.message)
        if settings.is_production:
            message = "Internal Server Error"
    else:
        logger.info("%s: %s", type(exc).__name__, exc.message)
    return _error_response(request, exc.status_code, message)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Request validation errors are plain 400s."""
    return _error_response(request, status.HTTP_400_BAD_REQUEST, _validation_message(exc))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        message = f"Route {request.method} {request.url.path} not found"
    else:
        message = str(exc.detail)
    return _error_response(request, exc.status_code, message, headers=exc.headers)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception("Unhandled exception: %s", exc)
    message = "Internal Server Error" if settings.is_production else str(exc) or "Internal Server Error"
    return _error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, message)


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Check application health."""
    return HealthResponse(
        status="ok",
        version=settings.version,
        environment=settings.environment,
        database="connected",
        timestamp=datetime.now(timezone.utc),
    )


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return {
        "name": settings.project_name,
        "version": settings.version,
        "environment": settings.environment,
        "docs": "/docs" if not settings.is_production else "disabled",
        "endpoints": [
            "POST /transcription",
            "POST /azure-transcription",
            "GET /transcriptions",
            "GET /transcription/{id}",
            "GET /azure/health",
            "POST /workflow",
            "PUT /workflow/{id}/transition",
            "GET /workflow/{id}",
            "GET /workflows",
            "GET /workflow/stats",
        ],
    }


# Routes are mounted at the root, without a version prefix
app.include_router(api_v1_router)


# Main entry point for development
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "voiceowl.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=settings.debug,
    )
