from __future__ import annotations

from typing import Any, Optional

from .http_client import ServiceClient, check_response, read_json


class CoreClient(ServiceClient):
    """Protected event/registration endpoints; payloads are passed through as-is."""

    def _headers(self, access: str) -> dict[str, str]:
        # events service reads the header, the gateway forwards the cookie
        return {"Authorization": f"Bearer {access}", "Cookie": f"access_token={access}"}

    async def _request(self, method: str, path: str, access: str, params: Optional[dict] = None, json: Optional[Any] = None):
        r = await self._send(method, path, headers=self._headers(access), params=params, json=json)
        check_response(r)
        return read_json(r)

    # EVENTS
    async def events_list(self, a): return await self._request("GET", "/api/v1/events", a)
    async def event_create(self, a, event: dict): return await self._request("POST", "/api/v1/events", a, json=event)

    # REGISTRATIONS
    async def registrations_my(self, a): return await self._request("GET", "/api/v1/registrations/my", a)
    async def registration_create(self, a, event_id): return await self._request("POST", "/api/v1/registrations", a, json={"event_id": event_id})
