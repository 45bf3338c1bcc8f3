"""Configuration management for VodHub."""

from functools import lru_cache
from typing import Literal
from urllib.parse import urlparse

from pydantic import PositiveFloat, PositiveInt, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Generative endpoint
    gemini_api_key: SecretStr | None = None
    gemini_model: str = "gemini-3-flash-preview"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    gemini_timeout: PositiveInt = 20  # seconds
    picks_timeout: PositiveFloat = 2.0  # seconds discover waits for picks

    # VOD sources
    fetch_timeout: PositiveInt = 8  # seconds, applied to every listing request
    cache_ttl: PositiveInt = 300  # seconds a fetched page stays fresh
    aggregate_sources: PositiveInt = 3  # first N sources used by aggregated search

    # Persisted state
    database_url: str = "sqlite:///./vodhub.db"
    watch_history_limit: PositiveInt = 50
    search_history_limit: PositiveInt = 10

    # Network settings
    # Proxy configuration in the format http://host:port or socks5://host:port
    proxy: str | None = None

    @field_validator("proxy")
    @classmethod
    def validate_proxy(cls, v: str | None) -> str | None:
        if v is None:
            return v

        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https", "socks4", "socks5", "socks5h"):
            raise ValueError(
                "Proxy must be a valid URL with scheme http/https/socks4/socks5/socks5h"
            )
        if not parsed.netloc:
            raise ValueError("Proxy must have a host and port")
        return v

    # App settings
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
