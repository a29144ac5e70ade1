"""Pydantic Settings model for application configuration."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment variable settings for the application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Generic application-wide settings
    DEBUG: bool = False

    # GitLab API settings
    GITLAB_API_URL: str = "https://gitlab.com"
    GITLAB_PRIVATE_TOKEN: str | None = None
    GITLAB_SUDO: str | None = None
    GITLAB_REQUEST_TIMEOUT: float = 30.0
    GITLAB_PER_PAGE: int = 100

    # Fork import polling
    FORK_POLL_MAX_ATTEMPTS: int = 60
    FORK_POLL_INITIAL_DELAY: float = 1.0
    FORK_POLL_MAX_DELAY: float = 30.0


settings = Settings()
