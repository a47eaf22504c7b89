import logging
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application-wide settings managed by Pydantic.
    Reads configuration from environment variables and .env files.
    """
    # General project metadata
    PROJECT_NAME: str = "hapi docsite"
    API_PREFIX: str = "/api"

    # GitHub Configuration
    # Personal access token sent as "authorization: token <GITHUB_TOKEN>".
    # Unauthenticated requests work but are heavily rate limited.
    GITHUB_TOKEN: Optional[str] = None
    GITHUB_API_BASE: str = "https://api.github.com"
    # Organization whose repositories are listed and scanned for API docs
    GITHUB_ORG: str = "hapijs"
    # Core framework repository: source of tags and reference docs,
    # never listed as an API module of its own
    CORE_REPO: str = "hapi"
    USER_AGENT: str = "hapijs.com"

    # Transport timeout for a single upstream request
    HTTP_TIMEOUT_SECONDS: float = 10.0
    # Maximum simultaneous API.md fetches when aggregating modules
    API_DOCS_CONCURRENCY: int = 16

    # Redis Configuration
    # Holds the commit/issue/pull request snapshots written by the ingestion job
    REDIS_URL: str = "redis://localhost:6379/0"

    LOG_LEVEL: str = "INFO"

    @field_validator("GITHUB_API_BASE")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("API_DOCS_CONCURRENCY")
    @classmethod
    def check_concurrency(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"API_DOCS_CONCURRENCY must be at least 1, got: {v}")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"LOG_LEVEL must be a logging level name, got: {v}")
        return level

    # Pydantic Configuration
    model_config = SettingsConfigDict(
        env_file=".env",              # Load variables from .env file
        env_file_encoding="utf-8",    # Ensure correct encoding
        case_sensitive=True,          # Environment variables are case-sensitive
        extra="ignore"                # Ignore extra fields in .env not defined here
    )

# Instantiate the settings object to be imported elsewhere
settings = Settings()
