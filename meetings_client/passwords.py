from __future__ import annotations

import hashlib


def hash_password(password: str) -> str:
    """Return the ``passhash`` sent to the auth service instead of the password."""
    return hashlib.sha256(password.encode("utf-8")).hexdigest()
