from __future__ import annotations

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    RACETIME_CLIENT_ID: str = ""
    RACETIME_CLIENT_SECRET: str = ""
    RACETIME_CATEGORY: str = ""

    RACETIME_BASE_URL: str = "https://racetime.gg"
    RACETIME_WS_URL: str = "wss://racetime.gg"

    RACE_CACHE_SECONDS: float = 30.0

    # None means no deadline.
    HTTP_TIMEOUT_SECONDS: float | None = None
    JOIN_TIMEOUT_SECONDS: float | None = None

    # None means unbounded.
    OUTBOUND_QUEUE_LIMIT: int | None = None

    LOG_LEVEL: str = "INFO"

    @property
    def token_path(self) -> str:
        return "/o/token"

    def start_race_path(self, category: str) -> str:
        return f"/o/{category}/startrace"

    def category_data_path(self, category: str) -> str:
        return f"/{category}/data"

    model_config = ConfigDict(
        env_file=".env",
        extra="ignore",
    )


settings = Settings()
