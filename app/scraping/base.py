"""
Base scraper abstraction for web-intelligence sources.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import ClassVar, Protocol

from bs4 import BeautifulSoup

from app.scraping import extraction
from app.scraping.hashing import content_hash
from app.scraping.logging_utils import log_event
from app.scraping.types import Extraction, ScrapeResult

logger = logging.getLogger(__name__)

LOW_COVERAGE_THRESHOLD = 0.5


class PageFetcher(Protocol):
    def fetch_page(self, url: str) -> BeautifulSoup: ...


class ScraperBase(ABC):
    """
    Fetch one page, extract a structured payload and fingerprint it.

    Subclasses declare their fetch defaults and a default selector map; job
    configuration may override individual selectors.
    """

    scrape_type: ClassVar[str] = "generic"
    DEFAULT_DELAY_SECONDS: ClassVar[float] = 1.0
    DEFAULT_RETRIES: ClassVar[int] = 3
    DEFAULT_SELECTORS: ClassVar[dict[str, str]] = {}

    def __init__(
        self,
        *,
        fetch_client: PageFetcher,
        selectors: Mapping[str, str] | None = None,
    ) -> None:
        self.fetch_client = fetch_client
        self.selector_overrides = dict(selectors or {})

    def selectors_for(self, defaults: Mapping[str, str]) -> dict[str, str]:
        return {**defaults, **self.selector_overrides}

    @property
    def selectors(self) -> dict[str, str]:
        return self.selectors_for(self.DEFAULT_SELECTORS)

    def scrape(self, url: str) -> ScrapeResult:
        """
        Scrape `url` and return the structured, hashed result.
        """

        soup = self.fetch_client.fetch_page(url)
        extracted = self.extract(soup=soup, url=url)

        log_event(
            logger,
            logging.WARNING if extracted.coverage < LOW_COVERAGE_THRESHOLD else logging.INFO,
            "scrape_extracted",
            scraper=type(self).__name__,
            url=url,
            coverage=extracted.coverage,
            missing_fields=extracted.missing_fields,
        )

        metadata = {
            "scrape_type": self.scrape_type,
            **extracted.metadata,
            "extraction_coverage": extracted.coverage,
        }
        return ScrapeResult(
            url=url,
            title=extraction.text(soup, "title"),
            content=extracted.content,
            metadata=metadata,
            content_hash=content_hash(
                extracted.content if extracted.fingerprint is None else extracted.fingerprint
            ),
            scraped_at=datetime.now(timezone.utc),
        )

    @abstractmethod
    def extract(self, *, soup: BeautifulSoup, url: str) -> Extraction:
        """
        Build the type-specific content and metadata for one parsed page.
        """
