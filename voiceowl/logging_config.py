"""
Logging for the VoiceOwl service.

Every record is stamped with two correlation ids taken from context vars:
``request_id`` (set per HTTP request) and ``workflow_id`` (bound while a
workflow is being worked on, including inside auto-progression timers).
Production writes one JSON object per line; other environments get a
short human-readable line.

    from voiceowl.logging_config import bind_workflow, get_logger

    logger = get_logger(__name__)
    with bind_workflow(record.id):
        logger.info("Workflow transitioned")
"""

import json
import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional, Union
from uuid import UUID

SERVICE_NAME = "voiceowl"
NO_ID = "-"

# Set by RequestIdMiddleware. Timers copy the context at scheduling time,
# so a timer logs under the request that created it.
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
workflow_id_var: ContextVar[Optional[str]] = ContextVar("workflow_id", default=None)

# Loggers that are chatty at INFO
_QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "aiosqlite")

_STANDARD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__.keys()
) | {"message", "asctime", "taskName", "request_id", "workflow_id"}


@contextmanager
def bind_workflow(workflow_id: Union[str, UUID, None]) -> Iterator[None]:
    """Tag log records emitted inside the block with ``workflow_id``."""
    token = workflow_id_var.set(str(workflow_id) if workflow_id is not None else None)
    try:
        yield
    finally:
        workflow_id_var.reset(token)


def current_workflow_id() -> Optional[str]:
    return workflow_id_var.get()


class CorrelationFilter(logging.Filter):
    """
    Copy the context ids onto the record.

    An explicit ``extra={"workflow_id": ...}`` wins over the bound one.
    Missing ids become ``NO_ID`` so format strings never fail.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get() or NO_ID  # type: ignore[attr-defined]
        if getattr(record, "workflow_id", None) is None:
            record.workflow_id = workflow_id_var.get() or NO_ID  # type: ignore[attr-defined]
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per record, carrying service and correlation ids."""

    def __init__(self, service: str = SERVICE_NAME, environment: str = "production"):
        super().__init__()
        self.service = service
        self.environment = environment

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "service": self.service,
            "environment": self.environment,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in ("request_id", "workflow_id"):
            value = getattr(record, key, None)
            if value and value != NO_ID:
                payload[key] = str(value)

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key in _STANDARD_ATTRS or key.startswith("_") or value is None:
                continue
            payload[key] = value if _json_safe(value) else str(value)

        return json.dumps(payload, ensure_ascii=False)


def _json_safe(value: Any) -> bool:
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return False
    return True


def text_formatter() -> logging.Formatter:
    return logging.Formatter(
        "%(asctime)s %(levelname)-5s [%(name)s] req=%(request_id)s wf=%(workflow_id)s %(message)s",
        datefmt="%H:%M:%S",
    )


def configure_logging(
    *,
    log_level: str = "INFO",
    environment: str = "development",
    debug: bool = False,
    service: str = SERVICE_NAME,
    stream=None,
) -> logging.Handler:
    """
    Install the service handler on the root logger.

    Re-running replaces the handler installed by an earlier call and leaves
    handlers owned by others (test capture, uvicorn) in place.

    Args:
        log_level: Level name; unknown names fall back to INFO.
        environment: ``production`` selects JSON output.
        debug: Force DEBUG regardless of ``log_level``.
        service: Name written into JSON records.
        stream: Output stream, stdout by default.

    Returns:
        The installed handler.
    """
    level = logging.DEBUG if debug else getattr(logging, log_level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    for existing in list(root.handlers):
        if getattr(existing, "_voiceowl", False):
            root.removeHandler(existing)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler._voiceowl = True  # type: ignore[attr-defined]
    handler.setLevel(level)
    handler.addFilter(CorrelationFilter())
    if environment == "production":
        handler.setFormatter(JsonFormatter(service=service, environment=environment))
    else:
        handler.setFormatter(text_formatter())
    root.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return handler


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
