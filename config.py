"""Application settings loaded from the environment (.env supported)."""
from dataclasses import dataclass, field
from typing import List, Mapping, Optional
import logging
import math
import os

from dotenv import load_dotenv


DEFAULT_DATABASE_URL = "sqlite:///./subscriptions.db"
DEFAULT_CORS_ORIGINS = "http://localhost:8080,http://127.0.0.1:8080"


class ConfigError(RuntimeError):
    """Raised when an environment setting is present but invalid."""


@dataclass
class NotificationConfig:
    url: str = ""
    email: str = ""
    timeout: float = 10.0
    deduplicate: bool = False


@dataclass
class Settings:
    """Top level application settings."""

    database_url: str = DEFAULT_DATABASE_URL
    notification: NotificationConfig = field(default_factory=NotificationConfig)
    renewal_window_hours: float = 24.0
    cors_origins: List[str] = field(default_factory=list)
    log_level: str = "INFO"


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off", ""):
        return False
    raise ConfigError(f"{name} must be a boolean, got {value!r}")


def _parse_float(name: str, value: str) -> float:
    try:
        parsed = float(value)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got {value!r}") from exc
    if not math.isfinite(parsed) or parsed <= 0:
        raise ConfigError(f"{name} must be positive, got {value!r}")
    return parsed


def _parse_log_level(value: str) -> str:
    level = value.strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigError(f"LOG_LEVEL must be a logging level name, got {value!r}")
    return level


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Build :class:`Settings` from ``env`` (defaults to ``os.environ``).

    A ``.env`` file in the working directory is loaded first when reading
    from the process environment.
    """
    if env is None:
        load_dotenv()
        env = os.environ

    origins_raw = env.get("CORS_ORIGINS", DEFAULT_CORS_ORIGINS)
    origins = [o.strip() for o in origins_raw.split(",") if o.strip()]

    notification = NotificationConfig(
        url=env.get("NOTIFICATION_URL", "").strip(),
        email=env.get("NOTIFICATION_EMAIL", "").strip(),
        timeout=_parse_float("NOTIFICATION_TIMEOUT", env.get("NOTIFICATION_TIMEOUT", "10")),
        deduplicate=_parse_bool("NOTIFY_DEDUPLICATE", env.get("NOTIFY_DEDUPLICATE", "false")),
    )

    return Settings(
        database_url=env.get("DATABASE_URL") or DEFAULT_DATABASE_URL,
        notification=notification,
        renewal_window_hours=_parse_float("RENEWAL_WINDOW_HOURS", env.get("RENEWAL_WINDOW_HOURS", "24")),
        cors_origins=origins,
        log_level=_parse_log_level(env.get("LOG_LEVEL", "INFO")),
    )
