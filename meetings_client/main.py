import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import Body, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .auth_client import AuthClient
from .config import Settings, settings as default_settings
from .core_client import CoreClient
from .credential_store import CredentialStore
from .errors import (
    AuthorizationFailure,
    ClientError,
    ServerFailure,
    TransportFailure,
)
from .guard import RouteGuard
from .logging_config import setup_logging
from .service import MeetingsService
from .session import SessionState

logger = logging.getLogger(__name__)


class LoginIn(BaseModel):
    username: str
    password: str


class RegisterIn(BaseModel):
    username: str
    email: str
    password: str


def _error_status(exc: ClientError) -> int:
    if isinstance(exc, (TransportFailure, ServerFailure)):
        return 502
    if isinstance(exc, AuthorizationFailure):
        return 401
    return exc.status_code or 400


def create_app(
    store: Optional[CredentialStore] = None,
    auth: Optional[AuthClient] = None,
    core: Optional[CoreClient] = None,
    settings: Settings = default_settings,
) -> FastAPI:
    setup_logging(settings.LOG_LEVEL, settings.LOG_FILE)

    store = store or CredentialStore.from_settings(
        settings.REDIS_HOST,
        settings.REDIS_PORT,
        settings.REDIS_DB,
        settings.CREDENTIAL_SCOPE,
    )
    auth = auth or AuthClient(settings.AUTH_BASE_URL, settings.HTTP_TIMEOUT_SEC, settings.REFRESH_TRANSPORT)
    core = core or CoreClient(settings.CORE_BASE_URL, settings.HTTP_TIMEOUT_SEC)

    session = SessionState(store)
    svc = MeetingsService(session, auth, core)
    guard = RouteGuard(session, settings.LOGIN_PATH)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await session.restore()
        yield
        await store.close()

    app = FastAPI(title="Meetings Client", lifespan=lifespan)
    app.state.session = session
    app.state.service = svc

    async def force_logout(error: AuthorizationFailure):
        await session.logout()
        return guard.redirect()

    @app.exception_handler(ClientError)
    async def client_error(request: Request, exc: ClientError):
        status = _error_status(exc)
        logger.warning("%s %s failed: %s (%s)", request.method, request.url.path, exc.__class__.__name__, exc.detail)
        return JSONResponse(
            status_code=status,
            content={"error": exc.__class__.__name__, "detail": exc.detail, "upstream_status": exc.status_code},
        )

    # public views

    @app.get("/login")
    async def login_view():
        return {"view": "login", **svc.status()}

    @app.post("/login")
    async def login(inp: LoginIn):
        await svc.login(inp.username, inp.password)
        return {"authenticated": True}

    @app.get("/register")
    async def register_view():
        return {"view": "register"}

    @app.post("/register")
    async def register(inp: RegisterIn):
        return await svc.register(inp.username, inp.email, inp.password)

    @app.post("/logout")
    async def logout():
        await svc.logout()
        return guard.redirect()

    @app.get("/me")
    async def me():
        return svc.status()

    # protected views

    @app.get("/events")
    @guard.protect
    async def events():
        return await svc.events_overview(force_logout)

    @app.post("/events")
    @guard.protect
    async def create_event(event: Dict[str, Any] = Body(...)):
        return await svc.create_event(event, force_logout)

    @app.post("/events/{event_id}/subscribe")
    @guard.protect
    async def subscribe(event_id: int):
        return await svc.subscribe(event_id, force_logout)

    return app


app = create_app()
