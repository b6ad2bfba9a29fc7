"""
Shared fixtures: an in-memory redis double and a scripted upstream
(auth + events + registrations) served through ``httpx.MockTransport``.
"""

import json
from http.cookies import SimpleCookie

import httpx
import pytest

from meetings_client.auth_client import AuthClient
from meetings_client.core_client import CoreClient
from meetings_client.credential_store import CredentialStore
from meetings_client.models import CredentialPair
from meetings_client.passwords import hash_password


class FakePipeline:
    def __init__(self, r: "FakeRedis"):
        self.r = r
        self.ops = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        self.ops = []

    def set(self, key, value, ex=None):
        self.ops.append((key, value, ex))
        return self

    async def execute(self):
        for key, value, ex in self.ops:
            self.r.data[key] = value
            self.r.ttl[key] = ex
        results = [True] * len(self.ops)
        self.ops = []
        return results


class FakeRedis:
    """Just the commands the credential store uses."""

    def __init__(self):
        self.data = {}
        self.ttl = {}
        self.closed = False

    def pipeline(self, transaction=True):
        return FakePipeline(self)

    async def mget(self, *keys):
        if len(keys) == 1 and isinstance(keys[0], (list, tuple)):
            keys = keys[0]
        return [self.data.get(k) for k in keys]

    async def delete(self, *keys):
        removed = 0
        for k in keys:
            if self.data.pop(k, None) is not None:
                removed += 1
            self.ttl.pop(k, None)
        return removed

    def expire_due(self):
        """Drop every key written with an expiry, as redis would once it passes."""
        for key in [k for k, ex in self.ttl.items() if ex is not None]:
            self.data.pop(key, None)
            self.ttl.pop(key, None)

    async def aclose(self):
        self.closed = True


class Upstream:
    """Scripted auth, events and registrations services.

    Access tokens are valid while they are in ``valid_access``; tests
    expire them to force the refresh path.
    """

    def __init__(self):
        self.calls = []
        self.requests = []
        self.users = {"alice": hash_password("secret")}
        self.valid_access = {"access-1"}
        self.valid_refresh = {"refresh-1"}
        self.issued = 1
        self.events = [{"id": 1, "title": "Standup"}]
        self.subscriptions = [{"event_id": 1, "status": "registered"}]
        self.core_failure = None
        self.core_down = False

    def count(self, path: str) -> int:
        return sum(1 for _, p in self.calls if p == path)

    def expire(self, access: str) -> None:
        self.valid_access.discard(access)

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.calls.append((request.method, path))
        self.requests.append(request)

        if path == "/api/v1/auth/login":
            body = json.loads(request.content)
            if self.users.get(body.get("username")) != body.get("passhash"):
                return httpx.Response(401, text="invalid credentials")
            return httpx.Response(200, json={"access_token": "access-1", "refresh_token": "refresh-1"})

        if path == "/api/v1/auth/register":
            body = json.loads(request.content)
            if body["username"] in self.users:
                return httpx.Response(409, text="user already exists")
            self.users[body["username"]] = body["passhash"]
            return httpx.Response(201, json={"username": body["username"]})

        if path == "/api/v1/auth/refresh":
            cookie = SimpleCookie(request.headers.get("cookie", ""))
            token = cookie["refresh_token"].value if "refresh_token" in cookie else None
            if token not in self.valid_refresh:
                return httpx.Response(401, text="invalid refresh token")
            self.issued += 1
            access = f"access-{self.issued}"
            self.valid_access.add(access)
            return httpx.Response(200, json={"access_token": access})

        if self.core_down:
            raise httpx.ConnectError("connection refused", request=request)
        if self.core_failure:
            status, text = self.core_failure
            return httpx.Response(status, text=text)

        auth = request.headers.get("authorization", "")
        if auth.removeprefix("Bearer ") not in self.valid_access:
            return httpx.Response(401, text="token is expired")

        if path == "/api/v1/events" and request.method == "GET":
            return httpx.Response(200, json=self.events)
        if path == "/api/v1/events" and request.method == "POST":
            event = {"id": len(self.events) + 1, **json.loads(request.content)}
            self.events.append(event)
            return httpx.Response(201, json=event)
        if path == "/api/v1/registrations/my":
            return httpx.Response(200, json=self.subscriptions)
        if path == "/api/v1/registrations":
            return httpx.Response(201, json={**json.loads(request.content), "status": "registered"})
        return httpx.Response(404, text="not found")


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def store(fake_redis):
    return CredentialStore(fake_redis, "meetings")


@pytest.fixture
def pair():
    return CredentialPair(access_token="access-1", refresh_token="refresh-1")


@pytest.fixture
def upstream():
    return Upstream()


@pytest.fixture
def transport(upstream):
    return httpx.MockTransport(upstream.handler)


@pytest.fixture
def auth_client(transport):
    return AuthClient("http://auth.test", 1.0, transport=transport)


@pytest.fixture
def core_client(transport):
    return CoreClient("http://core.test", 1.0, transport=transport)
