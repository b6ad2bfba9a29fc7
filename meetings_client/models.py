from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class CredentialPair(BaseModel):
    model_config = ConfigDict(frozen=True)

    access_token: str
    refresh_token: str

    def __repr__(self) -> str:
        # tokens are bearer secrets
        return "CredentialPair(access_token='***', refresh_token='***')"

    __str__ = __repr__
