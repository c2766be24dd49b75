"""Configuration and environment for podsniff."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Capture settings loaded from environment and .env."""

    model_config = SettingsConfigDict(
        env_prefix="PODSNIFF_",
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
    namespace: str = Field(default="default", description="Namespace of the target pod")

    # Capture
    interface: str = Field(default="any", description="Interface tcpdump listens on")
    capture_filter: str = Field(default="", description="tcpdump filter expression")
    image: str | None = Field(
        default=None,
        description="Image for the debug container; must ship tcpdump",
    )

    # Debug container lifecycle
    container_timeout: float = Field(
        default=60.0,
        gt=0,
        description="Seconds to wait for the debug container to start running",
    )
    poll_interval: float = Field(
        default=1.0,
        gt=0,
        description="Seconds between debug container status checks",
    )


def get_settings() -> Settings:
    """Return validated settings instance."""
    return Settings()
