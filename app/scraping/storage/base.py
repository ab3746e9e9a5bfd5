"""
Storage layer interfaces for scraper jobs and scraped records.
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from app.scraping.types import ScrapeResult
from db.models.scraped_record import ScrapedRecord
from db.models.scraper_job import ScraperJob


class ScrapeStore(ABC):
    """
    Persistence operations the scraping core depends on.
    """

    # --- jobs -------------------------------------------------------------

    @abstractmethod
    def create_job(
        self,
        *,
        tenant_id: str,
        name: str,
        scraper_type: str,
        url: str,
        frequency: str,
        config: Mapping[str, Any],
        status: str,
        next_run: datetime | None,
    ) -> ScraperJob:
        """Insert and return a new job."""

    @abstractmethod
    def get_job(self, job_id: uuid.UUID) -> ScraperJob | None:
        """Return the job or None."""

    @abstractmethod
    def get_tenant_job(self, *, tenant_id: str, job_id: uuid.UUID) -> ScraperJob | None:
        """Return the job only when it belongs to `tenant_id`."""

    @abstractmethod
    def list_jobs_with_record_counts(self, tenant_id: str) -> list[tuple[ScraperJob, int]]:
        """Tenant jobs, newest first, each with its stored record count."""

    @abstractmethod
    def list_due_jobs(self, *, now: datetime) -> list[ScraperJob]:
        """ACTIVE jobs whose next_run is at or before `now`."""

    @abstractmethod
    def update_job(self, job: ScraperJob, changes: Mapping[str, Any]) -> ScraperJob:
        """Apply `changes` to the job and commit."""

    @abstractmethod
    def delete_job(self, job: ScraperJob) -> int:
        """Delete the job's records, then the job; return deleted record count."""

    # --- executions -------------------------------------------------------

    @abstractmethod
    def latest_content_hash(self, job_id: uuid.UUID) -> str | None:
        """content_hash of the job's most recent record."""

    @abstractmethod
    def record_success(
        self,
        job: ScraperJob,
        *,
        result: ScrapeResult | None,
        ran_at: datetime,
        next_run: datetime,
        status: str,
    ) -> ScrapedRecord | None:
        """Store `result` (when given) and update run state in one commit."""

    @abstractmethod
    def record_failure(self, job: ScraperJob, *, ran_at: datetime, status: str) -> None:
        """Mark a failed execution; next_run is left untouched."""

    @abstractmethod
    def save_manual_scrape(
        self,
        *,
        job_fields: Mapping[str, Any],
        result: ScrapeResult,
    ) -> tuple[ScraperJob, ScrapedRecord]:
        """Create the anchoring job and its record in one commit."""

    # --- reads ------------------------------------------------------------

    @abstractmethod
    def list_records(
        self,
        *,
        tenant_id: str,
        scraper_type: str | None,
        limit: int,
    ) -> list[ScrapedRecord]:
        """Tenant records, newest first."""

    @abstractmethod
    def count_records(self, tenant_id: str) -> int:
        """Number of stored records for the tenant."""

    @abstractmethod
    def count_jobs_by_type_and_status(self, tenant_id: str) -> list[tuple[str, str, int]]:
        """(type, status, count) groups over the tenant's jobs."""
