"""
Application configuration using Pydantic Settings.
"""

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

from services.errors import ConfigError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./video_semiotics.db"

    # Redis
    REDIS_URL: str = "redis://localhost:6379"

    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = Field(default=10000, validation_alias=AliasChoices("API_PORT", "PORT"))

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # YouTube Data API (captions)
    YOUTUBE_API_KEY: str = ""
    CAPTION_PRIMARY_LANGUAGE: str = "pt"
    CAPTION_FALLBACK_LANGUAGE: str = "en"
    CAPTION_TIMEOUT_SECONDS: float = 30.0

    # OpenAI
    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-4o-mini"
    GENERATION_TIMEOUT_SECONDS: float = 90.0

    # Analysis
    ANALYSIS_CONCURRENT: bool = True
    ANALYZE_RATE_LIMIT_PER_MINUTE: int = 10
    HISTORY_PAGE_SIZE: int = 50

    # Security
    JWT_SECRET: str = "change_me_in_production"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRATION_HOURS: int = 24 * 30
    AUTO_CREATE_DB_SCHEMA: bool = True

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, populate_by_name=True)


settings = Settings()


def require_youtube_api_key() -> str:
    """Return configured YouTube API key or raise a configuration error."""
    api_key = (settings.YOUTUBE_API_KEY or "").strip()
    if not api_key:
        raise ConfigError("YOUTUBE_API_KEY is not configured")
    return api_key


def require_openai_api_key() -> str:
    """Return configured OpenAI API key or raise a configuration error."""
    api_key = (settings.OPENAI_API_KEY or "").strip()
    if not api_key or "your_" in api_key:
        raise ConfigError("OPENAI_API_KEY is not configured")
    return api_key


def configuration_warnings() -> List[str]:
    """List insecure or missing settings so startup can report them without crashing."""
    insecure_values = {
        "",
        "change_me_in_production",
        "your_jwt_secret_change_in_production",
    }
    warnings: List[str] = []
    jwt_secret = (settings.JWT_SECRET or "").strip()
    if jwt_secret in insecure_values or len(jwt_secret) < 24:
        warnings.append("JWT_SECRET is insecure. Configure a strong non-default secret (>=24 chars).")
    if not (settings.YOUTUBE_API_KEY or "").strip():
        warnings.append("YOUTUBE_API_KEY is not configured; /transcript will fail with 500.")
    if not (settings.OPENAI_API_KEY or "").strip():
        warnings.append("OPENAI_API_KEY is not configured; /analyze will fail with 500.")
    return warnings
