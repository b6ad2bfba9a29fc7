"""Failures raised by the upstream clients.

Only :class:`AuthorizationFailure` (and its :class:`RefreshFailure`
subclass) is handled inside the client core; everything else is
surfaced to the caller unchanged.
"""
from __future__ import annotations

from typing import Optional


class ClientError(Exception):
    def __init__(self, detail: str = "", status_code: Optional[int] = None):
        super().__init__(detail or self.__class__.__name__)
        self.detail = detail
        self.status_code = status_code


class AuthorizationFailure(ClientError):
    """Credential rejected by the server (HTTP 401)."""


class RefreshFailure(AuthorizationFailure):
    """The refresh token itself is missing, rejected or stale."""


class TransportFailure(ClientError):
    """Network error, timeout or a response body that could not be parsed."""


class ValidationFailure(ClientError):
    """Well-formed 4xx answer, e.g. a registration conflict."""


class ServerFailure(ClientError):
    """5xx answer from an upstream service."""
