"""
Cadence normalization, next-run arithmetic and URL validation for scraper jobs.

Only four cadences exist because the external trigger fires at most once a day.
Next-run times use plain calendar arithmetic, not cron evaluation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from urllib.parse import urlparse

from app.scraping.errors import InvalidJobConfiguration
from app.scraping.logging_utils import log_event

logger = logging.getLogger(__name__)

DAILY = "0 0 * * *"
WEEKLY = "0 0 * * 0"
MONTHLY = "0 0 1 * *"
YEARLY = "0 0 1 1 *"

ALLOWED_CADENCES: tuple[str, ...] = (DAILY, WEEKLY, MONTHLY, YEARLY)
CADENCE_ALIASES: dict[str, str] = {
    "daily": DAILY,
    "weekly": WEEKLY,
    "monthly": MONTHLY,
    "yearly": YEARLY,
}


@dataclass(frozen=True)
class CadenceNormalization:
    cadence: str
    warning: str | None = None


def normalize_frequency(frequency: str | None) -> CadenceNormalization:
    """
    Map `frequency` onto one of the allowed cadences, defaulting to daily.

    A non-None `warning` means the requested value was replaced.
    """

    raw = (frequency or "").strip()
    collapsed = " ".join(raw.split())
    if collapsed in ALLOWED_CADENCES:
        return CadenceNormalization(cadence=collapsed)

    alias = CADENCE_ALIASES.get(collapsed.lower())
    if alias is not None:
        return CadenceNormalization(cadence=alias)

    warning = (
        f"Frequency {raw!r} is not supported; using daily ({DAILY}). "
        f"Allowed: {', '.join(ALLOWED_CADENCES)}."
    )
    log_event(
        logger,
        logging.WARNING,
        "frequency_normalized",
        requested=raw,
        applied=DAILY,
    )
    return CadenceNormalization(cadence=DAILY, warning=warning)


def calculate_next_run(cadence: str, now: datetime | None = None) -> datetime:
    """
    Next due time for `cadence` relative to `now` (UTC).

    daily/weekly add 1/7 days; monthly and yearly jump to midnight of the first
    day of the next month / year.
    """

    current = now or datetime.now(timezone.utc)
    if current.tzinfo is None:
        current = current.replace(tzinfo=timezone.utc)

    if cadence == WEEKLY:
        return current + timedelta(days=7)
    if cadence == MONTHLY:
        year, month = (current.year + 1, 1) if current.month == 12 else (current.year, current.month + 1)
        return datetime(year, month, 1, tzinfo=timezone.utc)
    if cadence == YEARLY:
        return datetime(current.year + 1, 1, 1, tzinfo=timezone.utc)
    return current + timedelta(days=1)


def validate_url(url: str) -> str:
    """
    Return `url` stripped if it is an absolute http(s) URL, else raise.
    """

    candidate = (url or "").strip()
    try:
        parsed = urlparse(candidate)
    except ValueError as exc:
        raise InvalidJobConfiguration(f"Invalid URL {url!r}: {exc}") from exc
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise InvalidJobConfiguration(f"Invalid URL {url!r}: an absolute http(s) URL is required.")
    return candidate
