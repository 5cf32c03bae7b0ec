"""
Bearer Token Verification

FastAPI dependency turning an `Authorization: Bearer <token>` header into the
caller's User record.

1. The token is verified (signature, expiry, issuer, audience).
2. The external identity id it carries is resolved through the identity
   repository.
3. A missing header, a bad token or an unknown identity all yield 401.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from .tokens import verify_access_token
from ..api.dependencies import get_identity_repository
from ..core.errors import Unauthorized
from ..models import User
from ..repositories import IdentityRepository


# ---------------------------------------------------------------------
# Security Scheme
# ---------------------------------------------------------------------

security = HTTPBearer(auto_error=False)


# ---------------------------------------------------------------------
# Public Authentication Dependency
# ---------------------------------------------------------------------

async def get_current_user(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(security),
    identities: IdentityRepository = Depends(get_identity_repository),
) -> User:
    """
    Verify the bearer token and resolve the caller.

    Returns
    -------
    User

    Raises
    ------
    Unauthorized
        For a missing or invalid token, or an identity with no User record.
    """
    if creds is None or not creds.credentials:
        raise Unauthorized()

    caller = verify_access_token(creds.credentials)

    user = await identities.resolve(caller.external_id)
    if user is None:
        raise Unauthorized("User not found")

    return user
