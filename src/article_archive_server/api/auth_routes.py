"""
Auth Routes: Google Sign-In

Exchanges a Google OAuth access token for an archive access token.

Flow
----
1. Rate-limit the caller address.
2. Verify the Google token with the identity provider.
3. Require the verified email to match the profile the client sent.
4. Validate the verified identity.
5. Create the User on first sign-in, refresh it afterwards.
6. Issue an archive access token.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status

from .dependencies import enforce_rate_limit, get_identity_provider, get_identity_repository
from .models import AuthResponse, GoogleAuthRequest, UserView
from ..auth.tokens import issue_access_token
from ..core.errors import InvalidInput, Unauthorized
from ..identity.google import GoogleIdentityClient
from ..repositories import IdentityRepository
from ..validation import validate_identity

logger = logging.getLogger("archive.auth")

# ---------------------------------------------------------------------
# Router Configuration
# ---------------------------------------------------------------------

router = APIRouter(
    prefix="/auth",
    tags=["auth"],
)

# ---------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------

@router.post(
    "/google",
    response_model=AuthResponse,
    status_code=status.HTTP_200_OK,
    summary="Sign in with a Google access token",
    dependencies=[Depends(enforce_rate_limit)],
)
async def google_sign_in(
    req: GoogleAuthRequest,
    provider: Annotated[GoogleIdentityClient, Depends(get_identity_provider)],
    identities: Annotated[IdentityRepository, Depends(get_identity_repository)],
) -> AuthResponse:
    """
    Verify a Google access token and return an archive access token.

    Raises
    ------
    Unauthorized
        Google rejected the token, or it belongs to a different email than
        the one the client sent.
    InvalidInput
        The verified identity is incomplete.
    """
    identity = await provider.verify(req.access_token)

    if identity.email != req.user_info.email:
        logger.info("Token/user info mismatch during sign-in")
        raise Unauthorized("Token does not match user information")

    errors = validate_identity(identity)
    if errors:
        raise InvalidInput(errors)

    user = await identities.create_or_update(identity)
    token = issue_access_token(user)

    logger.info("Signed in user %s", user.id)
    return AuthResponse(token=token, user=UserView.from_user(user))
