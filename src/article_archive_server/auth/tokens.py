"""
Access Token Utilities

Issues and verifies the bearer tokens handed to clients after a successful
sign-in. Tokens are HS256 JWTs with explicit issuer and audience claims and a
fixed lifetime (see `Settings.jwt_ttl_seconds`).
"""

from __future__ import annotations

import time
from typing import Any, Dict

import jwt

from .models import CallerContext
from ..config import settings
from ..core.errors import Unauthorized
from ..models import User


# ---------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------

class TokenConfigurationError(RuntimeError):
    """Raised when tokens cannot be issued or checked due to configuration issues."""


# ---------------------------------------------------------------------
# Internal Helpers
# ---------------------------------------------------------------------

def _get_current_timestamp() -> int:
    """Return current UNIX timestamp in UTC as integer seconds."""
    return int(time.time())


def _signing_secret() -> str:
    """
    Return the signing secret, failing with a structured error instead of
    deep inside jwt.encode()/jwt.decode().
    """
    secret = settings.jwt_secret.get_secret_value()
    if not secret:
        raise TokenConfigurationError("jwt_secret is not configured.")

    if settings.jwt_ttl_seconds <= 0:
        raise TokenConfigurationError(
            f"jwt_ttl_seconds must be a positive integer; got {settings.jwt_ttl_seconds}"
        )

    return secret


# ---------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------

def issue_access_token(user: User) -> str:
    """
    Generate an access token for `user`.

    Returns
    -------
    str
        Encoded JWT suitable for use in Authorization: Bearer <token> header.
    """
    secret = _signing_secret()
    now = _get_current_timestamp()

    payload: Dict[str, Any] = {
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        "iat": now,
        "exp": now + settings.jwt_ttl_seconds,
        "sub": user.external_id,
        "user_id": user.id,
        "email": user.email,
        "name": user.name,
    }

    return jwt.encode(payload, secret, algorithm=settings.jwt_algo)


def verify_access_token(token: str) -> CallerContext:
    """
    Decode and validate an access token.

    Raises
    ------
    Unauthorized
        For expired, tampered, malformed or foreign tokens.
    """
    secret = _signing_secret()

    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[settings.jwt_algo],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
            options={
                "require": ["iss", "aud", "iat", "exp", "sub", "user_id"],
            },
        )
    except jwt.ExpiredSignatureError:
        raise Unauthorized("Token has expired.")
    except jwt.InvalidAudienceError:
        raise Unauthorized("Invalid token audience.")
    except jwt.InvalidIssuerError:
        raise Unauthorized("Invalid token issuer.")
    except jwt.InvalidTokenError:
        raise Unauthorized("Invalid or malformed token.")

    return CallerContext(
        external_id=str(payload["sub"]),
        user_id=str(payload["user_id"]),
        email=payload.get("email") or "",
        name=payload.get("name") or "",
    )
