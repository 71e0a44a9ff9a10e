"""Lightweight configuration for the presidency simulator."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings read from the environment and ``.env``."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    database_url: str = Field(
        default="sqlite:///president_sim.db", description="SQLAlchemy database URL"
    )
    database_echo: bool = Field(default=False, description="Log every SQL statement")
    rules_version: str = Field(default="1.0", description="Ruleset version used by the domain")
    default_chaos_threshold: int = Field(
        default=100,
        description="Chaos level that ends a session when none is requested",
        gt=0,
    )
    archive_sample_length: int = Field(
        default=256,
        description="Number of glyphs returned as a preview by manual exports",
        gt=0,
    )
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"],
        description="Origins allowed to call the HTTP API",
    )


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    return Settings()
