"""
Shared scraping runtime data models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


class ScraperType:
    COMPETITOR_PRICING = "COMPETITOR_PRICING"
    COMPETITOR_PRODUCTS = "COMPETITOR_PRODUCTS"
    SOCIAL_MEDIA_METRICS = "SOCIAL_MEDIA_METRICS"
    MARKET_TRENDS = "MARKET_TRENDS"
    NEWS_SENTIMENT = "NEWS_SENTIMENT"
    INDUSTRY_REPORTS = "INDUSTRY_REPORTS"

    ALL = (
        COMPETITOR_PRICING,
        COMPETITOR_PRODUCTS,
        SOCIAL_MEDIA_METRICS,
        MARKET_TRENDS,
        NEWS_SENTIMENT,
        INDUSTRY_REPORTS,
    )


class ScraperJobStatus:
    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"
    DISABLED = "DISABLED"
    ERROR = "ERROR"

    ALL = (ACTIVE, PAUSED, DISABLED, ERROR)


@dataclass(frozen=True)
class Extraction:
    """
    Structured payload produced by one scraper variant for one page.

    `fingerprint`, when set, is hashed in place of `content` so values that change
    on every run (fallback timestamps) do not defeat change detection.
    """

    content: dict[str, Any]
    metadata: dict[str, Any]
    coverage: float = 1.0
    missing_fields: list[str] = field(default_factory=list)
    fingerprint: dict[str, Any] | None = None


@dataclass(frozen=True)
class ScrapeResult:
    """
    Outcome of one successful scrape, ready for persistence.
    """

    url: str
    title: str
    content: dict[str, Any]
    metadata: dict[str, Any]
    content_hash: str
    scraped_at: datetime
