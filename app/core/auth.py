"""Bearer token authentication.

Turns an ``Authorization: Bearer <jwt>`` header into a ``Principal``:
- the header must be exactly ``Bearer`` followed by one token
- the token must verify under the configured HMAC secret (HS256/384/512)
  and pass its exp/nbf/iat checks
- the verified claims must carry a non-zero integer ``user_id``

Each failure is classified into its own error type; the exception handlers
map all of them to 401.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Annotated, Any

import jwt
from fastapi import Header, Request

from app.core.errors import (
    InvalidOrExpiredTokenError,
    MalformedHeaderError,
    MissingPrincipalError,
)

logger = logging.getLogger(__name__)

BEARER_SCHEME = "Bearer"
ALLOWED_ALGORITHMS = ["HS256", "HS384", "HS512"]
TEST_TOKEN_ALGORITHM = "HS256"
TEST_TOKEN_LIFETIME = timedelta(hours=24)
USER_ID_CLAIM = "user_id"


@dataclass(frozen=True)
class Principal:
    """Authenticated user identity. ``user_id`` is always a positive integer."""

    user_id: int

    def __post_init__(self) -> None:
        if isinstance(self.user_id, bool) or not isinstance(self.user_id, int):
            raise TypeError("user_id must be an int")
        if self.user_id <= 0:
            raise ValueError("user_id must be a positive integer")


def _token_fingerprint(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()[:16]


def parse_authorization_header(header: str | None) -> str:
    """Extract the bearer token from an Authorization header value.

    Examples:
        >>> parse_authorization_header("Bearer abc.def.ghi")
        'abc.def.ghi'

    Raises:
        MalformedHeaderError: If the header is missing or not ``Bearer <token>``.
    """
    if not header:
        raise MalformedHeaderError(
            code="missing_authorization_header",
            message="authorization header is required",
        )

    parts = header.split(" ")
    if len(parts) != 2 or parts[0] != BEARER_SCHEME or not parts[1]:
        raise MalformedHeaderError(
            code="malformed_authorization_header",
            message="invalid authorization header format",
            details={"hint": "Use 'Authorization: Bearer <token>'"},
        )
    return parts[1]


def _principal_from_claims(claims: dict[str, Any]) -> Principal:
    raw_user_id = claims.get(USER_ID_CLAIM)

    if raw_user_id is None:
        raise MissingPrincipalError(
            code="missing_principal",
            message="user_id not found in token",
        )
    # bool is an int subclass; floats and strings do not decode to an id
    if isinstance(raw_user_id, bool) or not isinstance(raw_user_id, int) or raw_user_id < 0:
        raise InvalidOrExpiredTokenError(
            code="invalid_token",
            message="invalid or expired token",
        )
    if raw_user_id == 0:
        raise MissingPrincipalError(
            code="missing_principal",
            message="user_id not found in token",
        )
    return Principal(user_id=raw_user_id)


def verify_token(token: str, secret: str) -> Principal:
    """Verify a JWT and return the principal it names.

    Raises:
        InvalidOrExpiredTokenError: On bad signature, non-HMAC algorithm,
            expiry, not-before or undecodable token.
        MissingPrincipalError: If ``user_id`` is absent or zero.
    """
    try:
        claims = jwt.decode(token, secret, algorithms=ALLOWED_ALGORITHMS)
    except jwt.InvalidTokenError as exc:
        logger.warning(
            "auth.invalid_token",
            extra={
                "reason": type(exc).__name__,
                "token_fingerprint": _token_fingerprint(token),
            },
        )
        raise InvalidOrExpiredTokenError(
            code="invalid_token",
            message="invalid or expired token",
        ) from exc

    try:
        return _principal_from_claims(claims)
    except MissingPrincipalError:
        logger.warning(
            "auth.missing_principal",
            extra={"token_fingerprint": _token_fingerprint(token)},
        )
        raise


def authenticate(header: str | None, secret: str) -> Principal:
    """Validate a raw Authorization header value.

    Pure validation logic without FastAPI dependencies for easy testing.
    """
    token = parse_authorization_header(header)
    return verify_token(token, secret)


async def require_principal(
    request: Request,
    authorization: Annotated[str | None, Header()] = None,
) -> Principal:
    """FastAPI dependency for routes that need an authenticated caller.

    On success the principal is also stored on ``request.state.principal``.

    Usage:
        @router.post("/articles")
        def create(principal: Annotated[Principal, Depends(require_principal)]):
            ...

    Raises:
        AuthenticationAppError: Any of the classified failures (mapped to 401).
    """
    secret = request.app.state.settings.jwt.secret
    principal = authenticate(authorization, secret)
    request.state.principal = principal
    logger.debug("auth.success", extra={"user_id": principal.user_id})
    return principal


def create_test_token(user_id: int, secret: str, *, now: datetime | None = None) -> str:
    """Issue an HS256 token for ``user_id`` valid for 24 hours.

    This is an administrative/testing helper, not part of the request path.

    Args:
        user_id: Principal id to embed; must be positive.
        secret: HMAC signing secret.
        now: Issue time; defaults to the current UTC time.

    Returns:
        Encoded JWT with ``user_id``, ``iat``, ``nbf`` and ``exp`` claims.
    """
    if isinstance(user_id, bool) or not isinstance(user_id, int) or user_id <= 0:
        raise ValueError("user_id must be a positive integer")
    if not secret:
        raise ValueError("secret must not be empty")

    issued_at = now or datetime.now(timezone.utc)
    payload = {
        USER_ID_CLAIM: user_id,
        "iat": issued_at,
        "nbf": issued_at,
        "exp": issued_at + TEST_TOKEN_LIFETIME,
    }
    return jwt.encode(payload, secret, algorithm=TEST_TOKEN_ALGORITHM)
