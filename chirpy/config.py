"""
Application configuration using pydantic-settings.
Loads from environment variables with .env file support.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Identity settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Access tokens
    jwt_secret: str = ""
    jwt_issuer: str = "chirpy"
    jwt_algorithm: Literal["HS256", "HS384", "HS512"] = "HS256"
    access_token_ttl_seconds: int = Field(default=3600, gt=0)  # 1 hour

    # Renewal tokens
    refresh_token_ttl_days: int = Field(default=60, gt=0)

    # Webhook API key (Polka)
    polka_key: str = ""

    # Password hashing (argon2id)
    argon2_time_cost: int = Field(default=3, ge=1)
    argon2_memory_cost: int = Field(default=65536, ge=8)  # KiB, 64 MB
    argon2_parallelism: int = Field(default=4, ge=1)

    # Application
    platform: str = "dev"
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
