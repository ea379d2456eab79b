"""Configuration and environment for the sampler."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Upper bound on concurrent workers per aggregation pass
MAX_WORKERS = 1000


class Settings(BaseSettings):
    """Sampler settings loaded from environment and .env."""

    model_config = SettingsConfigDict(
        env_prefix="NODECLAIM_SAMPLER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Kubernetes
    kubeconfig: Path | None = Field(
        default=None,
        description="Path to kubeconfig; uses KUBECONFIG env or default location if unset",
    )
    context: str | None = Field(default=None, description="Kubernetes context to use")
    page_size: int = Field(default=500, ge=1, description="Items requested per list page")
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0.0,
        description="Timeout applied to each list request",
    )

    # Output
    output: Path | None = Field(default=None, description="CSV file to write in addition to stdout")
    force: bool = Field(default=False, description="Overwrite the output file if it exists")

    # Sampling behavior
    interval_seconds: float = Field(default=5.0, ge=0.0, description="Sleep between emitted rows")
    workers: int = Field(
        default=16,
        ge=1,
        le=MAX_WORKERS,
        description="Concurrent workers per collection when classifying items",
    )
    max_retries_per_second: int = Field(
        default=10,
        ge=1,
        description="Immediate retries allowed per second while the cluster cannot be listed",
    )


def get_settings() -> Settings:
    """Return validated settings instance."""
    return Settings()
