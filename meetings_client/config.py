from pathlib import Path
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


def _find_env_file() -> str | None:
    cur = Path(__file__).resolve()
    for parent in [cur.parent, *cur.parents]:
        candidate = parent / ".env"
        if candidate.exists():
            return str(candidate)
    return None


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=_find_env_file() or ".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # storage
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    CREDENTIAL_SCOPE: str = "meetings"

    # upstream services
    AUTH_BASE_URL: str = "http://localhost:5000"
    CORE_BASE_URL: str = "http://localhost"
    HTTP_TIMEOUT_SEC: float = 8.0
    REFRESH_TRANSPORT: Literal["cookie", "header"] = "cookie"

    # views
    LOGIN_PATH: str = "/login"
    HOST: str = "127.0.0.1"
    PORT: int = 8000

    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None


settings = Settings()
