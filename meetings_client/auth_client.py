from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

import httpx

from .errors import RefreshFailure, TransportFailure
from .http_client import ServiceClient, check_response, read_json
from .models import CredentialPair
from .passwords import hash_password


def _field(r: httpx.Response, data: Any, name: str) -> Optional[str]:
    # the auth service may answer in the body, in a cookie, or both
    if isinstance(data, dict) and data.get(name):
        return data[name]
    return r.cookies.get(name)


class AuthClient(ServiceClient):
    def __init__(
        self,
        base_url: str,
        timeout_sec: float = 8.0,
        refresh_transport: str = "cookie",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(base_url, timeout_sec, transport)
        self.refresh_transport = refresh_transport

    async def login(self, username: str, password: str) -> CredentialPair:
        r = await self._send(
            "POST",
            "/api/v1/auth/login",
            json={"username": username, "passhash": hash_password(password)},
        )
        check_response(r)
        data = read_json(r)
        access = _field(r, data, "access_token")
        refresh = _field(r, data, "refresh_token")
        if not access or not refresh:
            raise TransportFailure("login response carries no credential pair", r.status_code)
        return CredentialPair(access_token=access, refresh_token=refresh)

    async def register(self, username: str, email: str, password: str) -> Dict[str, Any]:
        r = await self._send(
            "POST",
            "/api/v1/auth/register",
            json={"username": username, "email": email, "passhash": hash_password(password)},
        )
        check_response(r)
        data = read_json(r)
        return data if isinstance(data, dict) else {"result": data}

    def _refresh_headers(self, refresh_token: str) -> dict[str, str]:
        if self.refresh_transport == "header":
            return {"Authorization": f"Bearer {refresh_token}"}
        return {"Cookie": f"refresh_token={refresh_token}"}

    async def refresh(self, refresh_token: str) -> Tuple[str, Optional[str]]:
        """Exchange the refresh token; returns the new access token and, if rotated, refresh token."""
        r = await self._send("GET", "/api/v1/auth/refresh", headers=self._refresh_headers(refresh_token))
        if r.status_code == 401:
            raise RefreshFailure(r.text.strip(), r.status_code)
        check_response(r)
        data = read_json(r)
        access = _field(r, data, "access_token")
        if not access:
            raise TransportFailure("refresh response carries no access token", r.status_code)
        return access, _field(r, data, "refresh_token")
