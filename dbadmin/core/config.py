"""
Configuration management via environment variables.

Values are loaded from a .env file in the project root using python-dotenv
and exposed through the immutable Settings dataclass. Connection credentials
are never read from configuration: they are supplied per session by the user.
"""
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


# Load .env file from project root before os.environ is read
env_path = Path(__file__).parent.parent.parent / ".env"
load_dotenv(env_path)


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Attributes:
        app_name: Application identifier for logging
        app_env: Environment name (development, staging, production)
        log_level: Logging verbosity (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        default_port: MySQL port used when the user leaves it blank
        connect_timeout_seconds: Bound on the connect step, passed to the driver
        session_timeout_minutes: Idle time after which a session token expires
        pool_recycle_seconds: Age at which pooled connections are recycled
        use_ssl: Request TLS for new connections
    """
    app_name: str
    app_env: str
    log_level: str

    default_port: int
    connect_timeout_seconds: int
    session_timeout_minutes: int
    pool_recycle_seconds: int
    use_ssl: bool

    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.app_env.lower() == "development"

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env.lower() == "production"


def _get_env(key: str, default: Optional[str] = None) -> str:
    """
    Get environment variable with optional default.

    Raises:
        ValueError: If required variable is not set and no default provided
    """
    value = os.environ.get(key, default)
    if value is None:
        raise ValueError(
            f"Required environment variable '{key}' is not set. "
            f"Please check your .env file."
        )
    return value


def _get_int(key: str, default: str) -> int:
    raw = _get_env(key, default)
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"Environment variable '{key}' must be an integer, got '{raw}'")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Settings are read once; call get_settings.cache_clear() after changing
    the environment (tests do this through a fixture).

    Returns:
        Settings instance with all configuration values
    """
    return Settings(
        app_name=_get_env("APP_NAME", "dbadmin"),
        app_env=_get_env("APP_ENV", "development"),
        log_level=_get_env("LOG_LEVEL", "INFO"),

        default_port=_get_int("DB_DEFAULT_PORT", "3306"),
        connect_timeout_seconds=_get_int("DB_CONNECT_TIMEOUT_SECONDS", "10"),
        session_timeout_minutes=_get_int("SESSION_TIMEOUT_MINUTES", "60"),
        pool_recycle_seconds=_get_int("DB_POOL_RECYCLE_SECONDS", "3600"),
        use_ssl=_get_env("DB_USE_SSL", "false").lower() == "true",
    )
