"""
Runtime configuration helpers for the presence server.

Loads listen address, websocket path and delivery tuning from the environment,
falling back to the .env file located in the project root.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve the project root
BASE_DIR = Path(__file__).resolve().parents[1]

# Absolute path to .env
ENV_PATH = BASE_DIR / ".env"

# Load .env defaults without overriding environment variables provided by the platform
load_dotenv(dotenv_path=ENV_PATH, override=False)


class Settings(BaseSettings):
    app_name: str = Field(default="Live Map Presence", alias="APP_NAME")
    api_version: str = Field(default="0.1.0", alias="API_VERSION")

    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=3001, ge=1, le=65535, alias="PORT")
    uvicorn_reload: bool = Field(default=False, alias="UVICORN_RELOAD")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Browsers connect to the host root, so the socket shares "/" with nothing else.
    websocket_path: str = Field(default="/", alias="WS_PATH")
    send_timeout_seconds: float = Field(default=5.0, gt=0, alias="SEND_TIMEOUT_SECONDS")
    cors_origins: str | None = Field(default=None, alias="CORS_ORIGINS")

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def allowed_origins(self) -> list[str]:
        if not self.cors_origins:
            return ["*"]
        origins = [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]
        return origins or ["*"]


@lru_cache()
def get_settings() -> Settings:
    return Settings()


__all__ = ["Settings", "get_settings"]
