"""
Scraper job executor: owns job run-state transitions and dispatch to scrapers.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone

from app.config import ScraperSettings
from app.domain.scraping import DueRunSummary, ExecutionOutcome
from app.scraping.errors import JobAlreadyRunning, JobNotActive, JobNotFound
from app.scraping.logging_utils import log_event
from app.scraping.registry import ScraperRegistry
from app.scraping.scheduling import YEARLY, calculate_next_run, validate_url
from app.scraping.storage import ScrapeStore
from app.scraping.types import ScraperJobStatus

logger = logging.getLogger(__name__)


class JobLockRegistry:
    """
    Process-wide single-flight guard keyed by job id.

    A second execution of a job that is already running fails fast instead of
    racing on last_run/next_run and storing a duplicate record.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._running: set[uuid.UUID] = set()

    @contextmanager
    def hold(self, job_id: uuid.UUID) -> Iterator[None]:
        with self._guard:
            if job_id in self._running:
                raise JobAlreadyRunning(job_id)
            self._running.add(job_id)
        try:
            yield
        finally:
            with self._guard:
                self._running.discard(job_id)

    def is_running(self, job_id: uuid.UUID) -> bool:
        with self._guard:
            return job_id in self._running


class ScrapeJobExecutor:
    """
    Runs scraper jobs sequentially: fetch, extract, persist.

    Failures mark the job ERROR and propagate; there is no automatic retry of a
    failed job. An ERROR job stays out of every sweep until an operator sets it ACTIVE again.
    """

    def __init__(
        self,
        *,
        store: ScrapeStore,
        registry: ScraperRegistry,
        settings: ScraperSettings,
        locks: JobLockRegistry | None = None,
    ) -> None:
        self._store = store
        self._registry = registry
        self._settings = settings
        self._locks = locks or JobLockRegistry()

    def execute_job(self, job_id: uuid.UUID) -> ExecutionOutcome:
        job = self._store.get_job(job_id)
        if job is None:
            raise JobNotFound(job_id)
        if job.status != ScraperJobStatus.ACTIVE:
            raise JobNotActive(job_id, job.status)

        with self._locks.hold(job.id):
            log_event(
                logger,
                logging.INFO,
                "job_execution_started",
                job_id=job.id,
                tenant_id=job.tenant_id,
                scraper_type=job.type,
                url=job.url,
            )
            try:
                scraper = self._registry.create_scraper(job.type, job.config)
                result = scraper.scrape(job.url)
            except Exception as exc:
                self._store.record_failure(
                    job,
                    ran_at=datetime.now(timezone.utc),
                    status=ScraperJobStatus.ERROR,
                )
                log_event(
                    logger,
                    logging.ERROR,
                    "job_execution_failed",
                    job_id=job.id,
                    tenant_id=job.tenant_id,
                    error_type=type(exc).__name__,
                    error=str(exc),
                )
                raise

            unchanged = (
                self._settings.skip_unchanged_records
                and self._store.latest_content_hash(job.id) == result.content_hash
            )
            ran_at = datetime.now(timezone.utc)
            record = self._store.record_success(
                job,
                result=None if unchanged else result,
                ran_at=ran_at,
                next_run=calculate_next_run(job.frequency, ran_at),
                status=ScraperJobStatus.ACTIVE,
            )

        log_event(
            logger,
            logging.INFO,
            "job_record_unchanged" if unchanged else "job_execution_succeeded",
            job_id=job.id,
            tenant_id=job.tenant_id,
            content_hash=result.content_hash,
            record_id=record.id if record is not None else None,
            next_run=job.next_run,
        )
        return ExecutionOutcome(job_id=job.id, result=result, record=record, unchanged=unchanged)

    def run_manual_scrape(self, *, url: str, scraper_type: str, tenant_id: str) -> ExecutionOutcome:
        """
        Scrape once outside the schedule and anchor the record to a DISABLED job.
        """

        url = validate_url(url)
        scraper = self._registry.create_scraper(scraper_type)
        result = scraper.scrape(url)

        now = datetime.now(timezone.utc)
        job, record = self._store.save_manual_scrape(
            job_fields={
                "tenant_id": tenant_id,
                "name": f"Manual Scrape - {now.isoformat()}",
                "type": scraper_type,
                "url": url,
                "frequency": YEARLY,
                "config": {},
                "status": ScraperJobStatus.DISABLED,
                "last_run": now,
                "next_run": None,
            },
            result=result,
        )
        log_event(
            logger,
            logging.INFO,
            "manual_scrape_completed",
            job_id=job.id,
            tenant_id=tenant_id,
            scraper_type=scraper_type,
            url=url,
            content_hash=result.content_hash,
        )
        return ExecutionOutcome(job_id=job.id, result=result, record=record)

    def run_due_jobs(self, now: datetime | None = None) -> DueRunSummary:
        """
        Execute every ACTIVE job whose next_run has passed, one at a time.
        """

        current = now or datetime.now(timezone.utc)
        jobs = self._store.list_due_jobs(now=current)

        completed = failed = unchanged = 0
        errors: list[str] = []
        for job in jobs:
            job_id, job_name = job.id, job.name
            try:
                outcome = self.execute_job(job_id)
            except Exception as exc:  # noqa: BLE001
                failed += 1
                errors.append(f"job={job_id} name={job_name!r} error={exc}")
                logger.warning("Scraper sweep: job %s (%r) failed: %s", job_id, job_name, exc)
                continue
            completed += 1
            if outcome.unchanged:
                unchanged += 1

        summary = DueRunSummary(
            total=len(jobs),
            completed=completed,
            failed=failed,
            unchanged=unchanged,
            errors=errors,
        )
        log_event(
            logger,
            logging.INFO,
            "due_jobs_completed",
            total=summary.total,
            completed=summary.completed,
            failed=summary.failed,
            unchanged=summary.unchanged,
        )
        return summary
