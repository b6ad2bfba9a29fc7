from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Union

from .credential_store import CredentialStore
from .models import CredentialPair

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Unauthenticated:
    pass


@dataclass(frozen=True)
class Authenticated:
    pair: CredentialPair


SessionVariant = Union[Unauthenticated, Authenticated]


class SessionState:
    """Process-wide login state, the only writer of the credential store.

    The in-memory variant is rebuilt from the store by :meth:`restore` on
    every start; until then the session is uninitialized and reads raise.
    Store writes are serialized so a refresh finishing after ``logout``
    cannot resurrect the credential.
    """

    def __init__(self, store: CredentialStore):
        self.store = store
        self._state: Optional[SessionVariant] = None
        self._lock = asyncio.Lock()

    @classmethod
    async def restored(cls, store: CredentialStore) -> "SessionState":
        session = cls(store)
        await session.restore()
        return session

    async def restore(self) -> None:
        # optimistic: the pair is checked by the server on the first protected request
        pair = await self.store.get()
        async with self._lock:
            self._state = Authenticated(pair) if pair else Unauthenticated()
        logger.info("Session restored, authenticated=%s", pair is not None)

    @property
    def state(self) -> SessionVariant:
        if self._state is None:
            raise RuntimeError("SessionState used before restore()")
        return self._state

    @property
    def initialized(self) -> bool:
        return self._state is not None

    def is_authenticated(self) -> bool:
        return isinstance(self.state, Authenticated)

    def credentials(self) -> Optional[CredentialPair]:
        st = self.state
        return st.pair if isinstance(st, Authenticated) else None

    async def login(self, pair: CredentialPair) -> None:
        async with self._lock:
            await self.store.set(pair)
            self._state = Authenticated(pair)
        logger.info("Logged in")

    async def logout(self) -> None:
        async with self._lock:
            # flag first: never authenticated without a stored token
            self._state = Unauthenticated()
            await self.store.clear()
        logger.info("Logged out")

    async def rotate(
        self,
        expected_refresh_token: str,
        access_token: str,
        refresh_token: Optional[str] = None,
    ) -> bool:
        """Apply a refresh result.

        Returns ``False`` and leaves everything untouched when the session
        no longer holds ``expected_refresh_token`` (logout or a new login
        happened while the refresh was in flight).
        """
        async with self._lock:
            st = self._state
            if not isinstance(st, Authenticated) or st.pair.refresh_token != expected_refresh_token:
                logger.info("Discarding refresh result for a session that has changed")
                return False
            pair = CredentialPair(
                access_token=access_token,
                refresh_token=refresh_token or expected_refresh_token,
            )
            await self.store.set(pair)
            self._state = Authenticated(pair)
        return True
