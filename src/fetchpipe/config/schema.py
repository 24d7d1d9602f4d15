"""Settings schema and validation using Pydantic.

This module defines the settings schema that validates and coerces
configuration values from the environment and programmatic overrides into
the correct types with proper defaults.
"""

from typing import Any

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class FetchSettings(BaseSettings):
    """Pydantic settings schema for the fetch pipeline.

    Integrates with environment variables using the FETCHPIPE_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="FETCHPIPE_",
        env_file=None,  # Only used when explicitly requested
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # --- Transport ---

    timeout_seconds: float = Field(
        default=30.0,
        description="Default request timeout in seconds",
        gt=0,
    )

    follow_redirects: bool = Field(
        default=True,
        description="Follow HTTP redirects",
    )

    max_redirects: int = Field(
        default=5,
        description="Maximum redirects followed per request",
        ge=0,
    )

    max_connections: int = Field(
        default=20,
        description="Connection pool size",
        ge=1,
    )

    user_agent: str = Field(
        default="fetchpipe/0.1",
        description="User-Agent header sent with every request",
        min_length=1,
    )

    # --- Classification ---

    accepted_status_min: int = Field(
        default=200,
        description="Lowest accepted HTTP status (inclusive)",
        ge=0,
    )

    accepted_status_max: int = Field(
        default=299,
        description="Highest accepted HTTP status (inclusive)",
        ge=0,
    )

    # --- Pipeline ---

    retain_config: bool = Field(
        default=False,
        description="Keep per-call configuration alive until the callback fires",
    )

    telemetry_enabled: bool = Field(
        default=False,
        description="Record stage timings with the configured reporters",
    )

    @model_validator(mode="after")
    def validate_status_range(self) -> "FetchSettings":
        """Ensure the accepted status range is ascending."""
        if self.accepted_status_min > self.accepted_status_max:
            raise ValueError(
                "accepted_status_min must be <= accepted_status_max "
                f"(got {self.accepted_status_min} > {self.accepted_status_max})"
            )
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary."""
        return self.model_dump()
