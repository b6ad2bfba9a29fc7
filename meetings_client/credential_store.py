from __future__ import annotations

import logging
from typing import Optional

import redis.asyncio as redis

from .models import CredentialPair

logger = logging.getLogger(__name__)

ACCESS_KEY = "access_token"
REFRESH_KEY = "refresh_token"


class CredentialStore:
    """Access/refresh pair kept in redis under a site scope.

    Both entries are written in one transaction and removed with one
    ``DEL`` so they never outlive each other.  They carry no expiry:
    only SessionState removes them.
    """

    def __init__(self, r: redis.Redis, scope: str):
        self.r = r
        self.scope = scope

    @classmethod
    def from_settings(cls, host: str, port: int, db: int, scope: str) -> "CredentialStore":
        return cls(redis.Redis(host=host, port=port, db=db, decode_responses=True), scope)

    def _key(self, name: str) -> str:
        return f"{self.scope}:{name}"

    async def set(self, pair: CredentialPair) -> None:
        async with self.r.pipeline(transaction=True) as pipe:
            pipe.set(self._key(ACCESS_KEY), pair.access_token)
            pipe.set(self._key(REFRESH_KEY), pair.refresh_token)
            await pipe.execute()

    async def get(self) -> Optional[CredentialPair]:
        access, refresh = await self.r.mget(self._key(ACCESS_KEY), self._key(REFRESH_KEY))
        if not access or not refresh:
            if access or refresh:
                logger.warning("Incomplete credential pair in scope %s, ignoring it", self.scope)
            return None
        return CredentialPair(access_token=access, refresh_token=refresh)

    async def clear(self) -> None:
        await self.r.delete(self._key(ACCESS_KEY), self._key(REFRESH_KEY))

    async def close(self) -> None:
        await self.r.aclose()
