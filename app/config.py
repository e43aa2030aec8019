"""Application configuration settings."""

from __future__ import annotations

from typing import Literal

from pydantic import AnyHttpUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Configuration sourced from environment variables or `.env` files."""

    app_env: str = Field(default="development", description="Deployment environment name.")
    log_level: str = Field(default="INFO", description="Minimum logging level for the app.")
    database_url: str = Field(
        default="sqlite:///forgeledger.db",
        description="SQLAlchemy connection string for purses, reagents and the item catalog.",
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0", description="Redis URL for project flags and announcements."
    )

    # Project flag bag
    flag_namespace: str = Field(default="forgeledger", description="Namespace of the per-owner flag hash.")
    default_pay_method: str = Field(default="currency-only", description="Pay method used before an owner picks one.")
    store_max_retries: int = Field(default=16, description="Optimistic transaction retries per mutation.")

    # Announcements
    announcement_log_size: int = Field(default=500, description="Entries kept in the shared announcement log.")

    # Item catalog
    item_catalog: Literal["sql", "compendium"] = Field(default="sql", description="Item lookup backend.")
    compendium_base_url: AnyHttpUrl = Field(
        default="http://localhost:8080",
        description="Root URL of the remote item compendium.",
    )
    compendium_timeout: float = Field(default=10.0, description="Compendium request timeout (seconds)")
    compendium_max_attempts: int = Field(default=3, description="Compendium retry attempts per lookup")
    item_cache_ttl: int = Field(default=900, description="Seconds a fetched item stays fresh")
    item_last_good_ttl: int = Field(default=86_400, description="Seconds a last-good item copy is kept")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


__all__ = ["Settings"]
