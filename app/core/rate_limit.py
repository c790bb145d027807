"""Rate limiting HTTP middleware.

Installed by the app factory just inside the request-id middleware, so every
inbound request consumes a token before routing, body parsing, CORS handling
or authentication. Unknown paths, malformed bodies, preflights and the docs
routes are all counted.

Strategy:
- One token bucket per client address (100 burst, 10 tokens/s refill).
- The registry is built by the app factory and read from ``app.state``.
- The client address is taken from the socket peer; forwarded headers are
  not trusted, so clients behind a shared proxy share one bucket.

Usage:
    app.middleware("http")(rate_limit_middleware)
"""

from __future__ import annotations

import hashlib
import logging

from fastapi import Request, Response

from app.adapters.rate_limit.base import AbstractRateLimiter
from app.core.errors import RateLimitedError
from app.core.exception_handlers import app_error_handler

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "rate limit exceeded, please try again later"


def get_rate_limiter(request: Request) -> AbstractRateLimiter:
    """Return the limiter owned by the running application."""

    return request.app.state.limiter_registry


def _client_key(request: Request) -> str:
    return request.client.host if request.client and request.client.host else "unknown"


def _hash_limiter_key(key: str) -> str:
    """Hash the rate limit key for logging without exposing client addresses."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


async def rate_limit_middleware(request: Request, call_next) -> Response:
    """Consume one token from the caller's bucket or answer 429.

    Middleware sits outside the app's exception handling, so a denial is
    rendered here through the same handler that maps ``RateLimitedError``.
    """

    key = _client_key(request)
    if get_rate_limiter(request).allow(key):
        return await call_next(request)

    logger.warning(
        "rate_limit.exceeded",
        extra={
            "key_hash": _hash_limiter_key(key),
            "path": request.url.path,
            "method": request.method,
        },
    )
    return await app_error_handler(
        request, RateLimitedError(code="rate_limited", message=RATE_LIMIT_MESSAGE)
    )
