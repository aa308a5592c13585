from enum import Enum
from functools import lru_cache

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PORT = 6060


class AuthMode(str, Enum):
    credentials = "credentials"
    bearer_token = "bearer_token"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = "Timeline RSS"
    env: str = "dev"
    log_level: str = "INFO"

    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT

    bluesky_auth_mode: AuthMode = AuthMode.bearer_token
    bluesky_identifier: str | None = None
    bluesky_password: str | None = None
    bluesky_service_url: str = "https://bsky.social"

    timeline_limit: int = Field(default=40, ge=1, le=100)
    upstream_timeout_seconds: int = 20
    upstream_max_retries: int = Field(default=3, ge=1)
    observability_enabled: bool = True

    @field_validator("port", mode="before")
    @classmethod
    def fallback_port(cls, value):
        try:
            port = int(value)
        except (TypeError, ValueError):
            return DEFAULT_PORT
        if not 0 < port < 65536:
            return DEFAULT_PORT
        return port

    @model_validator(mode="after")
    def validate_bluesky_credentials(self) -> "Settings":
        if self.bluesky_auth_mode == AuthMode.credentials and (
            not (self.bluesky_identifier or "").strip() or not (self.bluesky_password or "").strip()
        ):
            raise ValueError(
                "bluesky_identifier and bluesky_password are required when bluesky_auth_mode=credentials"
            )
        return self


@lru_cache
def get_settings() -> Settings:
    return Settings()
