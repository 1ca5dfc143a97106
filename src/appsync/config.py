"""Application configuration using pydantic-settings."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PAGE_LIMIT = 200
DEFAULT_PARALLELISM = 1


class Settings(BaseSettings):
    """Okta connection and reconciliation settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="OKTA_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Connection
    org_url: str = Field(
        default="https://example.okta.com",
        description="Okta organization URL",
    )
    api_token: str | None = Field(
        default=None,
        description="Okta API token (SSWS)",
    )
    timeout: float = Field(
        default=30.0,
        description="HTTP request timeout in seconds",
    )
    page_limit: int = Field(
        default=DEFAULT_PAGE_LIMIT,
        description="Page size used when listing assignments",
    )

    # Reconciliation
    parallelism: int = Field(
        default=DEFAULT_PARALLELISM,
        description="Maximum number of assignment calls in flight at once",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_json: bool = False
    audit_enabled: bool = True

    @field_validator("parallelism", "page_limit")
    @classmethod
    def must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be a positive integer")
        return v

    @property
    def api_url(self) -> str:
        """Get the base URL of the management API."""
        return f"{self.org_url.rstrip('/')}/api/v1"

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_token)

    def with_overrides(
        self,
        *,
        org_url: str | None = None,
        api_token: str | None = None,
        parallelism: int | None = None,
    ) -> "Settings":
        """Create a new settings instance with CLI overrides applied."""
        return self.model_copy(
            update={
                "org_url": org_url or self.org_url,
                "api_token": api_token or self.api_token,
                "parallelism": parallelism or self.parallelism,
            }
        )


settings = Settings()


@lru_cache
def get_settings() -> Settings:
    """Alias for the module-level settings singleton."""
    return settings
