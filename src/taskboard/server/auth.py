"""Bearer-token authentication for the task API."""

from __future__ import annotations

import hashlib
import hmac
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import jwt
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from loguru import logger

from ..config import AuthSettings

_HASH_ALGORITHM = "pbkdf2_sha256"
_HASH_ITERATIONS = 120_000

bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str, *, iterations: int = _HASH_ITERATIONS) -> str:
    """Return ``pbkdf2_sha256$<iterations>$<salt>$<digest>`` for *password*."""
    salt = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("ascii"), iterations)
    return f"{_HASH_ALGORITHM}${iterations}${salt}${digest.hex()}"


def verify_password(password: str, encoded: str) -> bool:
    try:
        algorithm, iterations, salt, expected = encoded.split("$", 3)
        rounds = int(iterations)
    except ValueError:
        return False
    if algorithm != _HASH_ALGORITHM:
        return False
    digest = hashlib.pbkdf2_hmac("sha256", (password or "").encode("utf-8"), salt.encode("ascii"), rounds)
    return hmac.compare_digest(digest.hex(), expected)


def create_access_token(
    settings: AuthSettings,
    subject: str,
    *,
    claims: Optional[dict[str, Any]] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create a signed JWT access token.

    Args:
        settings: Token settings (secret, issuer, audience, lifetime).
        subject: Value for the ``sub`` claim, the user id.
        claims: Extra claims to embed.
        expires_delta: Optional lifetime overriding the configured one.

    Returns:
        Encoded JWT token.
    """
    to_encode: dict[str, Any] = dict(claims or {})
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.token_expire_minutes)
    )
    to_encode.update({
        "sub": subject,
        "exp": expire,
        "iss": settings.issuer,
        "aud": settings.audience,
    })
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(settings: AuthSettings, token: str) -> Optional[str]:
    """Decode and verify a JWT access token.

    Returns:
        The subject from the token, or None if it is invalid or expired.
    """
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.algorithm],
            audience=settings.audience,
            issuer=settings.issuer,
        )
    except jwt.ExpiredSignatureError:
        logger.warning("Rejected expired access token")
        return None
    except jwt.InvalidTokenError as exc:
        logger.warning("Rejected invalid access token: {}", exc)
        return None
    subject = payload.get("sub")
    return str(subject) if subject else None


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    """Resolve the authenticated subject id for a request.

    When auth is disabled every request runs as the configured default user.
    """
    settings: AuthSettings = request.app.state.settings.auth
    if not settings.enabled:
        return settings.default_user

    unauthorized = HTTPException(
        status_code=401,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise unauthorized
    subject = decode_access_token(settings, credentials.credentials)
    if subject is None:
        raise unauthorized
    return subject
