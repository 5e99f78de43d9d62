from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

# Environments that refuse an SQLite database_url
_PRODUCTION_ENVIRONMENTS = {"production", "staging"}


class Settings(BaseSettings):
    app_name: str = Field(default="crudroute")
    app_version: str = Field(default="0.1.0")
    environment: str = Field(default="development")
    debug: bool = Field(default=False)

    http_host: str = Field(default="0.0.0.0")
    http_port: int = Field(default=8080, ge=0, le=65535)
    # Build applications without binding a listening socket (tests, embedding)
    no_server: bool = Field(default=False)

    # Optional - only needed when SQL-backed models are bound to the app
    database_url: str | None = Field(default=None)

    @model_validator(mode="after")
    def validate_database_url_for_environment(self) -> "Settings":
        """Reject SQLite outside development-like environments."""
        if self.environment in _PRODUCTION_ENVIRONMENTS and self.database_url:
            if self.database_url.startswith("sqlite"):
                raise ValueError(
                    "SQLite is not recommended for production. "
                    "Use PostgreSQL or another production database."
                )
        return self

    docs_enabled: bool = Field(default=True)
    openapi_url: str = Field(default="/openapi.json")
    docs_url: str = Field(default="/docs")
    redoc_url: str = Field(default="/redoc")

    request_id_header: str = Field(default="X-Request-ID")

    # Comma-separated in the environment, see split_csv
    allow_origins: Annotated[list[str], NoDecode] = Field(default_factory=list)
    cors_allow_credentials: bool = Field(default=True)
    cors_allow_methods: list[str] = Field(default_factory=lambda: ["*"])
    cors_allow_headers: list[str] = Field(default_factory=lambda: ["*"])

    allowed_hosts: Annotated[list[str], NoDecode] = Field(default_factory=list)

    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(
        env_prefix="CRUDROUTE_",
        env_file=".env",
        case_sensitive=False,
    )

    @field_validator("allow_origins", "allowed_hosts", mode="before")
    @classmethod
    def split_csv(cls, value: object) -> list[str] | object:
        if isinstance(value, str):
            if not value.strip():
                return []
            return [item.strip() for item in value.split(",") if item.strip()]
        return value


@lru_cache
def get_settings() -> Settings:
    return Settings()
