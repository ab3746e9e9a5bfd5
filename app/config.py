"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_optional_str_env(name: str) -> str | None:
    """
    Read an optional string value from environment variables.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


@dataclass(frozen=True)
class ScraperSettings:
    """
    Runtime settings for the web-intelligence scraping pipeline.

    `skip_unchanged_records` selects the change-detection policy: when false every
    successful execution stores a record and the content hash is only a fingerprint;
    when true an execution whose hash matches the job's latest record stores nothing.

    `trigger_token` gates the on-demand sweep endpoint; while unset the endpoint
    refuses every call.
    """

    user_agent: str | None = None
    timeout_seconds: float = 30.0
    skip_unchanged_records: bool = False
    default_records_limit: int = 50
    max_records_limit: int = 200
    scheduler_enabled: bool = True
    schedule_hour: int = 0
    schedule_minute: int = 0
    trigger_token: str | None = None


@lru_cache(maxsize=1)
def get_scraper_settings() -> ScraperSettings:
    """
    Return cached scraper settings from environment variables.
    """

    max_limit = max(1, _get_int_env("SCRAPER_MAX_RECORDS_LIMIT", 200))
    return ScraperSettings(
        user_agent=_get_optional_str_env("SCRAPER_USER_AGENT"),
        timeout_seconds=max(1.0, _get_float_env("SCRAPER_TIMEOUT_SECONDS", 30.0)),
        skip_unchanged_records=_get_bool_env("SCRAPER_SKIP_UNCHANGED", False),
        default_records_limit=min(
            max_limit,
            max(1, _get_int_env("SCRAPER_DEFAULT_RECORDS_LIMIT", 50)),
        ),
        max_records_limit=max_limit,
        scheduler_enabled=_get_bool_env("SCRAPER_SCHEDULER_ENABLED", True),
        schedule_hour=min(23, max(0, _get_int_env("SCRAPER_SCHEDULE_HOUR", 0))),
        schedule_minute=min(59, max(0, _get_int_env("SCRAPER_SCHEDULE_MINUTE", 0))),
        trigger_token=_get_optional_str_env("SCRAPER_TRIGGER_TOKEN"),
    )
