"""
Application configuration management.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Forge API endpoints
    gitlab_api_url: str = "https://gitlab.com/api/v4"
    github_api_url: str = "https://api.github.com"

    # HTTP
    http_timeout_seconds: float = 30.0

    # Side channel
    prepare_env_file: str = "prepare.env"

    # Application
    log_level: str = "INFO"


def get_settings() -> Settings:
    """Load settings from the current environment."""
    return Settings()
