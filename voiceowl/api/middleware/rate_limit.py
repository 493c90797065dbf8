"""
Rate limiting per client IP.

Scopes: every request counts against the general limit; POST /transcription
and POST /azure-transcription additionally count against their own, stricter
limits.
"""

import time
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Tuple

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from voiceowl.api.deps import get_client_ip
from voiceowl.config import Settings, get_settings
from voiceowl.logging_config import get_logger

logger = get_logger(__name__)

EXEMPT_PATHS = frozenset({"/health"})

# (scope, limit, window_seconds, message)
Rule = Tuple[str, int, int, str]


class InMemoryRateLimitStore:
    """Fixed-window in-memory store. Key -> (count, window_start_ts)."""

    def __init__(self):
        self._data: Dict[str, Tuple[int, float]] = {}
        self._window_sec: Dict[str, int] = {}

    def _key(self, scope: str, identifier: str) -> str:
        return f"{scope}:{identifier}"

    def check_and_incr(
        self,
        scope: str,
        identifier: str,
        limit: int,
        window_seconds: int,
    ) -> bool:
        """Returns True if under limit (and increments). False if over limit (no increment)."""
        key = self._key(scope, identifier)
        now = time.monotonic()
        if key not in self._data:
            self._data[key] = (1, now)
            self._window_sec[key] = window_seconds
            return True
        count, start = self._data[key]
        win = self._window_sec.get(key, window_seconds)
        if now - start >= win:
            self._data[key] = (1, now)
            self._window_sec[key] = window_seconds
            return True
        if count >= limit:
            return False
        self._data[key] = (count + 1, start)
        return True

    def cleanup_old(self, max_age_seconds: int = 3600):
        """Remove entries older than max_age_seconds to avoid unbounded growth."""
        now = time.monotonic()
        to_remove = [k for k, (_, start) in self._data.items() if now - start > max_age_seconds]
        for k in to_remove:
            self._data.pop(k, None)
            self._window_sec.pop(k, None)

    def reset(self) -> None:
        self._data.clear()
        self._window_sec.clear()


# Module-level store (single process).
_store: Optional[InMemoryRateLimitStore] = None


def get_store() -> InMemoryRateLimitStore:
    global _store
    if _store is None:
        _store = InMemoryRateLimitStore()
    return _store


def rules_for(request: Request, settings: Settings) -> List[Rule]:
    """Scopes a request counts against, general first."""
    rules: List[Rule] = [
        (
            "general",
            settings.rate_limit_max_requests,
            settings.rate_limit_window_seconds,
            "Too many requests from this IP, please try again later.",
        )
    ]
    if request.method == "POST":
        path = request.url.path.rstrip("/")
        if path == "/transcription":
            rules.append((
                "transcription",
                settings.rate_limit_transcription_max_requests,
                settings.rate_limit_transcription_window_seconds,
                "Too many transcription requests. Please wait before creating more transcriptions.",
            ))
        elif path == "/azure-transcription":
            rules.append((
                "azure",
                settings.rate_limit_azure_max_requests,
                settings.rate_limit_azure_window_seconds,
                "Too many Azure transcription requests. Please wait before trying again.",
            ))
    return rules


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Fixed-window limits per client IP; over-limit requests get a 429 JSON body."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        settings = get_settings()
        if not settings.rate_limit_enabled or request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        store = get_store()
        store.cleanup_old(max_age_seconds=2 * settings.rate_limit_window_seconds)

        client_ip = get_client_ip(request)
        for scope, limit, window, message in rules_for(request, settings):
            if not store.check_and_incr(scope, client_ip, limit, window):
                logger.warning("Rate limit (%s) exceeded for IP: %s", scope, client_ip)
                return JSONResponse(
                    status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                    content={
                        "success": False,
                        "error": "Too Many Requests",
                        "message": message,
                        "retryAfter": window,
                        "timestamp": datetime.now(timezone.utc).isoformat(),
                    },
                    headers={"Retry-After": str(window)},
                )
        return await call_next(request)
