"""
Identity Repository

Maps an external identity (as verified by the identity provider) to an
internal User record.

Stored keys
-----------
- `user:<external_id>`   full User record (primary lookup)
- `user_email:<email>`   internal user id (secondary lookup)
- `user_articles:<id>`   empty article index, seeded on first sign-in
"""

from __future__ import annotations

import logging
from typing import Optional

from ..core.ids import generate_id
from ..models import IdentityTuple, User, utcnow
from ..store import keys
from ..store.base import RecordStore

logger = logging.getLogger("archive.users")


class IdentityRepository:
    """
    Create, update and look up users by external identity id.
    """

    def __init__(
        self,
        store: RecordStore,
        user_ttl: int,
        article_ttl: int,
    ) -> None:
        self._store = store
        self._user_ttl = user_ttl
        self._article_ttl = article_ttl

    async def resolve(self, external_id: str) -> Optional[User]:
        """Return the User for `external_id`, or None if unknown."""
        data = await self._store.get(keys.user(external_id))
        if data is None:
            return None
        return User.model_validate(data)

    async def find_user_id_by_email(self, email: str) -> Optional[str]:
        """Return the internal user id last associated with `email`."""
        return await self._store.get(keys.user_email(email))

    async def create_or_update(self, identity: IdentityTuple) -> User:
        """
        Create the User for `identity` or refresh its mutable fields.

        An existing user keeps its id and creation time; name, picture and
        email are overwritten and the update time is bumped.
        """
        existing = await self.resolve(identity.external_id)
        now = utcnow()

        if existing is None:
            user = User(
                id=generate_id("user"),
                external_id=identity.external_id,
                email=identity.email,
                name=identity.name,
                picture=identity.picture,
                article_count=0,
                created_at=now,
                updated_at=now,
            )
            logger.info("Creating user %s", user.id)
        else:
            user = existing.model_copy(
                update={
                    "email": identity.email,
                    "name": identity.name,
                    "picture": identity.picture,
                    "updated_at": now,
                }
            )
            logger.info("Updating user %s", user.id)

        await self._store.set(
            keys.user(user.external_id),
            user.model_dump(mode="json"),
            ttl=self._user_ttl,
        )
        await self._store.set(
            keys.user_email(user.email),
            user.id,
            ttl=self._user_ttl,
        )

        if existing is None:
            await self._store.set(
                keys.user_articles(user.id),
                [],
                ttl=self._article_ttl,
            )

        return user
