"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - get_settings() is cached (lru_cache) — single instance per process
    - rpc_timeout_seconds bounds every remote call a request makes

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults target a cluster peer on localhost (RPC 9094, adder 9095)
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Remote call transport
    rpc_url: str = "http://127.0.0.1:9094/rpc"
    rpc_timeout_seconds: float = 120.0

    # Upload collaborator (streaming multipart → pins)
    uploader_url: str = "http://127.0.0.1:9095/add"
    uploader_timeout_seconds: float | None = None

    @field_validator("rpc_url", "uploader_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        if isinstance(v, str):
            return v.rstrip("/")
        return v

    # API
    cors_origins: list[str] = ["*"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
