"""Application configuration for the room gateway."""
from __future__ import annotations

import json
from functools import lru_cache
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    app_env: str = Field(default="development")
    log_level: str = Field(default="INFO")
    cors_allow_origins: Annotated[list[str], NoDecode] = Field(default_factory=lambda: ["*"])

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000)

    livekit_api_key: str
    livekit_api_secret: str
    livekit_host: str

    room_empty_timeout: int = Field(default=10 * 60, ge=0)
    room_max_participants: int = Field(default=10, ge=0)
    token_ttl_seconds: int = Field(default=3600, ge=1)
    human_identity: str = Field(default="human")

    worker_enabled: bool = Field(default=True)
    worker_identity: str = Field(default="nox")
    worker_queue_size: int = Field(default=100, ge=1)
    worker_concurrency: int = Field(default=2, ge=1)
    worker_max_attempts: int = Field(default=3, ge=1)
    worker_retry_base_delay: float = Field(default=1.0, ge=0)
    worker_retry_max_delay: float = Field(default=10.0, ge=0)

    @field_validator("cors_allow_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: object) -> object:
        """Allow comma-separated env values for CORS origins."""

        if isinstance(value, str):
            if value.lstrip().startswith("["):
                return json.loads(value)
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @property
    def http_url(self) -> str:
        """Room service URL for the HTTP (Twirp) API."""

        url = self.livekit_host.rstrip("/")
        if url.startswith("wss://"):
            return "https://" + url[len("wss://"):]
        if url.startswith("ws://"):
            return "http://" + url[len("ws://"):]
        if not url.startswith(("http://", "https://")):
            return f"https://{url}"
        return url

    @property
    def ws_url(self) -> str:
        """Room service URL for realtime session connections."""

        url = self.http_url
        if url.startswith("https://"):
            return "wss://" + url[len("https://"):]
        return "ws://" + url[len("http://"):]


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()
