"""
Application configuration with environment-specific overrides.

Supported environment files (loaded in order of precedence):
1. .env.{ENVIRONMENT} (e.g., .env.production, .env.development)
2. .env (fallback)

Complex values such as SPORTS are given as JSON in the environment:
    SPORTS='{"NBA": 37, "FOOTBALL": 39}'
"""
import os
import re
import logging
from pathlib import Path
from typing import Dict, Literal, Union

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator

# Get the project root directory (2 levels up from this file)
PROJECT_ROOT = Path(__file__).parent.parent.parent

# Sport names and document ids become URL and filesystem path segments
SAFE_SEGMENT = re.compile(r"^[A-Za-z0-9_\-]+$")

# Synthetic ids split on the first underscore, so the prefix cannot contain one
ID_PREFIX_PATTERN = re.compile(r"^[A-Za-z0-9\-]+$")

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings with environment-specific configuration."""

    # Environment
    ENVIRONMENT: Literal["development", "production", "test"] = "development"

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"  # Allow extra fields from .env
    )

    # Application
    APP_NAME: str = "PPV Sports Catalog"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # Upstream PPV API
    UPSTREAM_BASE_URL: str = "https://ppv.land"
    UPSTREAM_TIMEOUT: float = 15.0  # seconds per request
    USER_AGENT: str = "ppv-catalog/1.0"

    # Sport name -> upstream category id
    SPORTS: Dict[str, Union[int, str]] = Field(default_factory=lambda: {"NBA": 37})

    # Catalog documents
    ID_PREFIX: str = "vgstream"
    STREAM_TITLE: str = "Source 1 (PPV)"
    MANIFEST_ID: str = "org.ppvland.sports"

    # Publishing: "memory" keeps the table in-process, "file" writes static JSON
    PUBLISH_MODE: Literal["memory", "file"] = "memory"
    PUBLISH_DIR: str = str(PROJECT_ROOT / "published")

    # Scheduler
    SCHEDULER_ENABLED: bool = True
    SYNC_INTERVAL_MINUTES: int = 6

    # CORS - comma-separated string for env var parsing
    CORS_ORIGINS_STR: str = "*"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    @field_validator("SPORTS")
    @classmethod
    def _validate_sports(cls, value: Dict[str, Union[int, str]]) -> Dict[str, Union[int, str]]:
        if not value:
            raise ValueError("SPORTS must configure at least one sport")
        for name in value:
            if not SAFE_SEGMENT.match(name):
                raise ValueError(f"Sport name {name!r} must match {SAFE_SEGMENT.pattern}")
        return value

    @field_validator("ID_PREFIX")
    @classmethod
    def _validate_prefix(cls, value: str) -> str:
        if not ID_PREFIX_PATTERN.match(value):
            raise ValueError(f"ID_PREFIX must match {ID_PREFIX_PATTERN.pattern}")
        return value

    @field_validator("SYNC_INTERVAL_MINUTES")
    @classmethod
    def _validate_interval(cls, value: int) -> int:
        if value < 1:
            raise ValueError("SYNC_INTERVAL_MINUTES must be at least 1")
        return value

    @property
    def CORS_ORIGINS(self) -> list[str]:
        """Parsed CORS origins. Addon clients run in browsers, so '*' is the default."""
        origins = [o.strip() for o in self.CORS_ORIGINS_STR.split(",") if o.strip()]
        return origins or ["*"]

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENVIRONMENT == "production"

    def sport_id(self, sport: str) -> Union[int, str]:
        """Upstream category id for a configured sport name (case-insensitive)."""
        for name, upstream_id in self.SPORTS.items():
            if name.lower() == sport.lower():
                return upstream_id
        raise KeyError(sport)

    def canonical_sport(self, sport: str) -> str:
        """Configured spelling of a sport name, matched case-insensitively."""
        for name in self.SPORTS:
            if name.lower() == sport.lower():
                return name
        raise KeyError(sport)


def _load_env_file() -> Path:
    """
    Pick the environment file based on the ENVIRONMENT variable.

    Loads in order of precedence:
    1. .env.{ENVIRONMENT}
    2. .env (fallback)
    """
    environment = os.getenv("ENVIRONMENT", "development")

    env_file = PROJECT_ROOT / f".env.{environment}"
    if env_file.exists():
        logger.info(f"Loading environment from {env_file.name}")
        return env_file

    default_env = PROJECT_ROOT / ".env"
    if default_env.exists():
        logger.info(f"Loading environment from .env (environment: {environment})")
    return default_env


# Auto-detect and load environment file
_env_file = _load_env_file()


class _SettingsWithEnvFile(Settings):
    model_config = SettingsConfigDict(
        env_file=str(_env_file),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )


settings = _SettingsWithEnvFile()
