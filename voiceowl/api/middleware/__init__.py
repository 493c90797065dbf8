"""HTTP middleware."""

from voiceowl.api.middleware.rate_limit import RateLimitMiddleware
from voiceowl.api.middleware.request_id import RequestIdMiddleware
from voiceowl.api.middleware.security_headers import SecurityHeadersMiddleware

__all__ = ["RateLimitMiddleware", "RequestIdMiddleware", "SecurityHeadersMiddleware"]
