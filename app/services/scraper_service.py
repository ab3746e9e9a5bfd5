"""
app/services/scraper_service.py

Tenant-scoped facade over scraper jobs, manual scrapes and scrape analytics.
"""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any

from sqlalchemy.orm import Session

from app.config import ScraperSettings, get_scraper_settings
from app.domain.scraping import (
    DueRunSummary,
    ExecutionOutcome,
    JobListing,
    JobWriteResult,
    ScrapingAnalytics,
)
from app.scraping.errors import InvalidJobConfiguration, JobNotFound, ScraperTypeUnregistered
from app.scraping.executor import JobLockRegistry, ScrapeJobExecutor
from app.scraping.registry import ScraperRegistry
from app.scraping.scheduling import calculate_next_run, normalize_frequency, validate_url
from app.scraping.storage import SQLAlchemyScrapeStore
from app.scraping.types import ScraperJobStatus
from db.models.scraped_record import ScrapedRecord

RECENT_ACTIVITY_LIMIT = 10


class ScraperService:
    """
    Creates, updates and runs scraper jobs and reads their results for one tenant.
    """

    def __init__(
        self,
        *,
        settings: ScraperSettings | None = None,
        registry: ScraperRegistry | None = None,
        locks: JobLockRegistry | None = None,
    ) -> None:
        self._settings = settings or get_scraper_settings()
        self._registry = registry or ScraperRegistry(settings=self._settings)
        self._locks = locks or JobLockRegistry()

    def _executor(self, db: Session) -> ScrapeJobExecutor:
        return ScrapeJobExecutor(
            store=SQLAlchemyScrapeStore(session=db),
            registry=self._registry,
            settings=self._settings,
            locks=self._locks,
        )

    def close(self) -> None:
        self._registry.close()

    # ------------------------------------------------------------------
    # Job configuration
    # ------------------------------------------------------------------

    def create_scraper_job(
        self,
        db: Session,
        *,
        tenant_id: str,
        name: str,
        scraper_type: str,
        url: str,
        frequency: str,
        config: Mapping[str, Any] | None = None,
    ) -> JobWriteResult:
        if not self._registry.is_registered(scraper_type):
            raise ScraperTypeUnregistered(scraper_type)
        if not name or not name.strip():
            raise InvalidJobConfiguration("Job name must not be empty.")

        url = validate_url(url)
        cadence = normalize_frequency(frequency)
        config = dict(config or {})
        # Surface bad fetch options now rather than at the first scheduled run.
        self._registry.validate_options(scraper_type, config)

        job = SQLAlchemyScrapeStore(session=db).create_job(
            tenant_id=tenant_id,
            name=name.strip(),
            scraper_type=scraper_type,
            url=url,
            frequency=cadence.cadence,
            config=config,
            status=ScraperJobStatus.ACTIVE,
            next_run=calculate_next_run(cadence.cadence),
        )
        return JobWriteResult(job=job, warnings=[cadence.warning] if cadence.warning else [])

    def update_scraper_job(
        self,
        db: Session,
        *,
        tenant_id: str,
        job_id: uuid.UUID,
        name: str | None = None,
        url: str | None = None,
        frequency: str | None = None,
        config: Mapping[str, Any] | None = None,
        status: str | None = None,
    ) -> JobWriteResult:
        store = SQLAlchemyScrapeStore(session=db)
        job = store.get_tenant_job(tenant_id=tenant_id, job_id=job_id)
        if job is None:
            raise JobNotFound(job_id)

        changes: dict[str, Any] = {}
        warnings: list[str] = []
        if name is not None:
            if not name.strip():
                raise InvalidJobConfiguration("Job name must not be empty.")
            changes["name"] = name.strip()
        if url is not None:
            changes["url"] = validate_url(url)
        if frequency is not None:
            cadence = normalize_frequency(frequency)
            changes["frequency"] = cadence.cadence
            changes["next_run"] = calculate_next_run(cadence.cadence)
            if cadence.warning:
                warnings.append(cadence.warning)
        if config is not None:
            self._registry.validate_options(job.type, config)
            changes["config"] = dict(config)
        if status is not None:
            if status not in ScraperJobStatus.ALL:
                raise InvalidJobConfiguration(
                    f"Invalid status {status!r}. Allowed: {', '.join(ScraperJobStatus.ALL)}."
                )
            changes["status"] = status

        if changes:
            store.update_job(job, changes)
        return JobWriteResult(job=job, warnings=warnings)

    def delete_scraper_job(self, db: Session, *, tenant_id: str, job_id: uuid.UUID) -> int:
        store = SQLAlchemyScrapeStore(session=db)
        job = store.get_tenant_job(tenant_id=tenant_id, job_id=job_id)
        if job is None:
            raise JobNotFound(job_id)
        return store.delete_job(job)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def execute_scraper_job(
        self,
        db: Session,
        *,
        tenant_id: str,
        job_id: uuid.UUID,
    ) -> ExecutionOutcome:
        store = SQLAlchemyScrapeStore(session=db)
        if store.get_tenant_job(tenant_id=tenant_id, job_id=job_id) is None:
            raise JobNotFound(job_id)
        return self._executor(db).execute_job(job_id)

    def perform_manual_scrape(
        self,
        db: Session,
        *,
        tenant_id: str,
        url: str,
        scraper_type: str,
    ) -> ExecutionOutcome:
        return self._executor(db).run_manual_scrape(
            url=url,
            scraper_type=scraper_type,
            tenant_id=tenant_id,
        )

    def run_due_jobs(self, db: Session, *, now: datetime | None = None) -> DueRunSummary:
        return self._executor(db).run_due_jobs(now)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_scraper_jobs(self, db: Session, *, tenant_id: str) -> list[JobListing]:
        rows = SQLAlchemyScrapeStore(session=db).list_jobs_with_record_counts(tenant_id)
        return [JobListing(job=job, record_count=count) for job, count in rows]

    def get_scraped_data(
        self,
        db: Session,
        *,
        tenant_id: str,
        scraper_type: str | None = None,
        limit: int | None = None,
    ) -> list[ScrapedRecord]:
        requested = self._settings.default_records_limit if limit is None else limit
        capped = min(max(1, requested), self._settings.max_records_limit)
        return SQLAlchemyScrapeStore(session=db).list_records(
            tenant_id=tenant_id,
            scraper_type=scraper_type,
            limit=capped,
        )

    def get_scraping_analytics(self, db: Session, *, tenant_id: str) -> ScrapingAnalytics:
        store = SQLAlchemyScrapeStore(session=db)

        type_distribution: dict[str, int] = {}
        status_distribution: dict[str, int] = {}
        for scraper_type, status, count in store.count_jobs_by_type_and_status(tenant_id):
            type_distribution[scraper_type] = type_distribution.get(scraper_type, 0) + count
            status_distribution[status] = status_distribution.get(status, 0) + count

        recent = store.list_records(
            tenant_id=tenant_id,
            scraper_type=None,
            limit=RECENT_ACTIVITY_LIMIT,
        )
        return ScrapingAnalytics(
            total_data_points=store.count_records(tenant_id),
            type_distribution=type_distribution,
            status_distribution=status_distribution,
            recent_activity=[
                {
                    "type": record.type,
                    "scraped_at": record.scraped_at,
                    "metadata": record.metadata_json or {},
                }
                for record in recent
            ],
            generated_at=datetime.now(timezone.utc),
        )


@lru_cache(maxsize=1)
def get_scraper_service() -> ScraperService:
    """
    Build and cache the scraper service.
    """

    return ScraperService()
