"""
Google Identity Client

Verifies a Google OAuth access token by calling the userinfo endpoint and
returns the identity it belongs to.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from ..config import settings
from ..core.errors import Unauthorized, UpstreamUnavailable
from ..models import IdentityTuple

logger = logging.getLogger("archive.auth")


class GoogleIdentityClient:
    def __init__(self, userinfo_url: Optional[str] = None, timeout: float = 10):
        self.userinfo_url = userinfo_url or settings.google_userinfo_url
        self.timeout = timeout

    async def verify(self, access_token: str) -> IdentityTuple:
        """
        Resolve `access_token` to the Google identity it was issued for.

        Raises
        ------
        Unauthorized
            Google rejected the token.
        UpstreamUnavailable
            Google could not be reached or answered with garbage.
        """
        headers = {"Authorization": f"Bearer {access_token}"}

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.get(self.userinfo_url, headers=headers)
        except httpx.HTTPError as exc:
            raise UpstreamUnavailable("Identity provider unavailable") from exc

        if resp.status_code >= 500:
            raise UpstreamUnavailable("Identity provider unavailable")
        if resp.status_code != 200:
            logger.info("Google token verification failed with HTTP %d", resp.status_code)
            raise Unauthorized("Invalid Google access token")

        try:
            data = resp.json()
        except ValueError as exc:
            raise UpstreamUnavailable("Identity provider returned invalid JSON") from exc

        return IdentityTuple(
            email=data.get("email") or "",
            external_id=str(data.get("id") or ""),
            name=data.get("name") or "",
            picture=data.get("picture"),
        )
