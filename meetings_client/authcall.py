"""Authenticated calls with one transparent refresh.

:func:`authenticated_call` runs an operation under the current access
token.  When the server answers 401 it refreshes the credential once,
retries once, and hands any second rejection to ``on_unauthorized``.
Failures that are not about the credential are re-raised untouched.

Concurrent 401s share a single refresh request through
:class:`Refresher`; late callers await the refresh already in flight
instead of spending the refresh token a second time.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Optional, TypeVar, Union

from .auth_client import AuthClient
from .errors import AuthorizationFailure, RefreshFailure
from .session import SessionState

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

Operation = Callable[[], Awaitable[T]]
UnauthorizedHandler = Callable[[AuthorizationFailure], Awaitable[R]]


@dataclass
class Outcome(Generic[T]):
    value: Optional[T] = None
    error: Optional[AuthorizationFailure] = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def _attempt(operation: Operation[T]) -> Outcome[T]:
    # anything but a rejected credential propagates from here as-is
    try:
        return Outcome(value=await operation())
    except AuthorizationFailure as e:
        return Outcome(error=e)


class Refresher:
    def __init__(self, session: SessionState, auth_client: AuthClient):
        self.session = session
        self.auth = auth_client
        self._inflight: Optional[asyncio.Task] = None

    async def refresh(self) -> None:
        """Refresh the stored credential, joining a refresh already in flight."""
        if self._inflight is None:
            self._inflight = asyncio.ensure_future(self._refresh())
            self._inflight.add_done_callback(self._forget)
        # shield: a cancelled waiter must not cancel the refresh for the others
        await asyncio.shield(self._inflight)

    def _forget(self, task: asyncio.Task) -> None:
        if self._inflight is task:
            self._inflight = None
        # retrieved here so an unawaited failure is never reported as lost
        if not task.cancelled():
            task.exception()

    async def _refresh(self) -> None:
        pair = self.session.credentials()
        if pair is None:
            raise RefreshFailure("no refresh token stored")
        logger.info("Access token rejected, refreshing")
        access, refresh = await self.auth.refresh(pair.refresh_token)
        if await self.session.rotate(pair.refresh_token, access, refresh):
            logger.info("Access token refreshed%s", " (refresh token rotated)" if refresh else "")
            return
        if not self.session.is_authenticated():
            raise RefreshFailure("logged out while refreshing")
        # a newer login replaced the pair; the retry runs with it
        logger.info("Session replaced while refreshing, keeping the newer credential")


async def authenticated_call(
    operation: Operation[T],
    on_unauthorized: UnauthorizedHandler[R],
    *,
    refresher: Refresher,
) -> Union[T, R]:
    """Run ``operation`` with at most one refresh and one retry.

    Returns the operation's result, or whatever ``on_unauthorized``
    returns once the credential is found unrecoverable.
    """
    outcome = await _attempt(operation)
    if outcome.ok:
        return outcome.value

    try:
        await refresher.refresh()
    except RefreshFailure as e:
        logger.warning("Refresh rejected (%s), ending session", e)
        return await on_unauthorized(e)

    outcome = await _attempt(operation)
    if outcome.ok:
        return outcome.value

    logger.warning("Credential rejected again after refresh, ending session")
    return await on_unauthorized(outcome.error)
