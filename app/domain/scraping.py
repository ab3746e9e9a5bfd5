"""
app/domain/scraping.py

Domain models returned by the scraping executor and service.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from app.scraping.types import ScrapeResult
from db.models.scraped_record import ScrapedRecord
from db.models.scraper_job import ScraperJob


@dataclass(frozen=True)
class JobWriteResult:
    """
    A created or updated job plus any normalization warnings.
    """

    job: ScraperJob
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class JobListing:
    job: ScraperJob
    record_count: int


@dataclass(frozen=True)
class ExecutionOutcome:
    """
    Result of one job execution or manual scrape.

    `record` is None when the content was unchanged and persistence was skipped.
    """

    job_id: uuid.UUID
    result: ScrapeResult
    record: ScrapedRecord | None
    unchanged: bool = False

    @property
    def persisted(self) -> bool:
        return self.record is not None


@dataclass(frozen=True)
class DueRunSummary:
    total: int
    completed: int
    failed: int
    unchanged: int
    errors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ScrapingAnalytics:
    total_data_points: int
    type_distribution: dict[str, int]
    status_distribution: dict[str, int]
    recent_activity: list[dict[str, Any]]
    generated_at: datetime | None = None
