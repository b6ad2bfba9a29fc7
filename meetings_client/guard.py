from __future__ import annotations

import functools
import logging
from typing import Any, Awaitable, Callable

from fastapi.responses import RedirectResponse

from .session import SessionState

logger = logging.getLogger(__name__)


class RouteGuard:
    """Lets a protected view run only while the session is authenticated.

    The check happens on every call; a view that is refused is never
    invoked, so none of its requests are sent.
    """

    def __init__(self, session: SessionState, login_path: str = "/login"):
        self.session = session
        self.login_path = login_path

    def allows(self) -> bool:
        return self.session.initialized and self.session.is_authenticated()

    def redirect(self) -> RedirectResponse:
        return RedirectResponse(self.login_path, status_code=303)

    async def render(self, view: Callable[..., Awaitable[Any]], *args: Any, **kwargs: Any) -> Any:
        if not self.allows():
            logger.info("Not authenticated, redirecting %s to %s", getattr(view, "__name__", view), self.login_path)
            return self.redirect()
        return await view(*args, **kwargs)

    def protect(self, view: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
        @functools.wraps(view)
        async def guarded(*args: Any, **kwargs: Any) -> Any:
            return await self.render(view, *args, **kwargs)

        return guarded
