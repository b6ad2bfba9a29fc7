from __future__ import annotations

from typing import Any, Optional

import httpx

from .errors import (
    AuthorizationFailure,
    ServerFailure,
    TransportFailure,
    ValidationFailure,
)


def check_response(r: httpx.Response) -> None:
    """Raise the failure matching an error status; upstream errors are plain text."""
    if r.status_code < 400:
        return
    detail = r.text.strip()
    if r.status_code == 401:
        raise AuthorizationFailure(detail, r.status_code)
    if r.status_code >= 500:
        raise ServerFailure(detail, r.status_code)
    raise ValidationFailure(detail, r.status_code)


def read_json(r: httpx.Response) -> Any:
    if not r.content:
        return {}
    try:
        return r.json()
    except ValueError as e:
        raise TransportFailure("malformed response body", r.status_code) from e


class ServiceClient:
    def __init__(
        self,
        base_url: str,
        timeout_sec: float = 8.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or "").rstrip("/")
        self.timeout = timeout_sec
        self.transport = transport

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                return await client.request(method, url, **kwargs)
        except httpx.TransportError as e:
            raise TransportFailure(str(e) or e.__class__.__name__) from e
