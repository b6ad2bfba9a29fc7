from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict

from .auth_client import AuthClient
from .authcall import Refresher, UnauthorizedHandler, authenticated_call
from .core_client import CoreClient
from .errors import AuthorizationFailure
from .session import SessionState

logger = logging.getLogger(__name__)


class MeetingsService:
    """What the views call: login flow and protected fetches."""

    def __init__(self, session: SessionState, auth_client: AuthClient, core_client: CoreClient):
        self.session = session
        self.auth = auth_client
        self.core = core_client
        self.refresher = Refresher(session, auth_client)

    async def login(self, username: str, password: str) -> None:
        pair = await self.auth.login(username, password)
        await self.session.login(pair)
        logger.info("User %s logged in", username)

    async def register(self, username: str, email: str, password: str) -> Dict[str, Any]:
        return await self.auth.register(username, email, password)

    async def logout(self) -> None:
        await self.session.logout()

    def status(self) -> Dict[str, Any]:
        return {"authenticated": self.session.initialized and self.session.is_authenticated()}

    def _access(self) -> str:
        # read on every attempt so the retry picks up the refreshed token
        pair = self.session.credentials()
        if pair is None:
            raise AuthorizationFailure("not logged in")
        return pair.access_token

    async def _call(self, request: Callable[[str], Awaitable[Any]], on_unauthorized: UnauthorizedHandler) -> Any:
        async def operation():
            return await request(self._access())

        return await authenticated_call(operation, on_unauthorized, refresher=self.refresher)

    async def events_overview(self, on_unauthorized: UnauthorizedHandler) -> Any:
        async def fetch(a: str) -> Dict[str, Any]:
            events = await self.core.events_list(a)
            subscriptions = await self.core.registrations_my(a)
            return {"events": events, "subscriptions": subscriptions}

        return await self._call(fetch, on_unauthorized)

    async def create_event(self, event: Dict[str, Any], on_unauthorized: UnauthorizedHandler) -> Any:
        return await self._call(lambda a: self.core.event_create(a, event), on_unauthorized)

    async def subscribe(self, event_id: int, on_unauthorized: UnauthorizedHandler) -> Any:
        return await self._call(lambda a: self.core.registration_create(a, event_id), on_unauthorized)
