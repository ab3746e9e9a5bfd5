"""
SQLAlchemy-backed storage implementation for scraper jobs and records.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from datetime import datetime
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.scraping.storage.base import ScrapeStore
from app.scraping.types import ScrapeResult, ScraperJobStatus
from db.models.scraped_record import ScrapedRecord
from db.models.scraper_job import ScraperJob

_UPDATABLE_JOB_FIELDS = frozenset(
    {"name", "url", "frequency", "config", "status", "last_run", "next_run"}
)


class SQLAlchemyScrapeStore(ScrapeStore):
    """
    Persist jobs and records through one DB session.

    Every write commits on success and rolls back on SQLAlchemyError before
    re-raising.
    """

    def __init__(self, *, session: Session) -> None:
        self._session = session

    @contextmanager
    def _transaction(self) -> Iterator[None]:
        try:
            yield
            self._session.commit()
        except SQLAlchemyError:
            self._session.rollback()
            raise

    # --- jobs -------------------------------------------------------------

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
        job = ScraperJob(
            tenant_id=tenant_id,
            name=name,
            type=scraper_type,
            url=url,
            frequency=frequency,
            config=dict(config),
            status=status,
            next_run=next_run,
        )
        with self._transaction():
            self._session.add(job)
            self._session.flush()
        return job

    def get_job(self, job_id: uuid.UUID) -> ScraperJob | None:
        return self._session.get(ScraperJob, job_id)

    def get_tenant_job(self, *, tenant_id: str, job_id: uuid.UUID) -> ScraperJob | None:
        stmt = select(ScraperJob).where(
            ScraperJob.id == job_id,
            ScraperJob.tenant_id == tenant_id,
        )
        return self._session.scalars(stmt).first()

    def list_jobs_with_record_counts(self, tenant_id: str) -> list[tuple[ScraperJob, int]]:
        record_counts = (
            select(ScrapedRecord.job_id, func.count(ScrapedRecord.id).label("record_count"))
            .where(ScrapedRecord.tenant_id == tenant_id)
            .group_by(ScrapedRecord.job_id)
            .subquery()
        )
        stmt = (
            select(ScraperJob, func.coalesce(record_counts.c.record_count, 0))
            .outerjoin(record_counts, record_counts.c.job_id == ScraperJob.id)
            .where(ScraperJob.tenant_id == tenant_id)
            .order_by(ScraperJob.created_at.desc())
        )
        return [(job, int(count)) for job, count in self._session.execute(stmt).all()]

    def list_due_jobs(self, *, now: datetime) -> list[ScraperJob]:
        stmt = (
            select(ScraperJob)
            .where(
                ScraperJob.status == ScraperJobStatus.ACTIVE,
                ScraperJob.next_run.is_not(None),
                ScraperJob.next_run <= now,
            )
            .order_by(ScraperJob.next_run.asc())
        )
        return list(self._session.scalars(stmt).all())

    def update_job(self, job: ScraperJob, changes: Mapping[str, Any]) -> ScraperJob:
        unknown = set(changes) - _UPDATABLE_JOB_FIELDS
        if unknown:
            raise ValueError(f"Unsupported job fields: {', '.join(sorted(unknown))}")
        with self._transaction():
            for field_name, value in changes.items():
                setattr(job, field_name, value)
        return job

    def delete_job(self, job: ScraperJob) -> int:
        with self._transaction():
            result = self._session.execute(
                delete(ScrapedRecord).where(ScrapedRecord.job_id == job.id)
            )
            self._session.delete(job)
        return int(result.rowcount or 0)

    # --- executions -------------------------------------------------------

    def latest_content_hash(self, job_id: uuid.UUID) -> str | None:
        stmt = (
            select(ScrapedRecord.content_hash)
            .where(ScrapedRecord.job_id == job_id)
            .order_by(ScrapedRecord.scraped_at.desc())
            .limit(1)
        )
        return self._session.scalars(stmt).first()

    def record_success(
        self,
        job: ScraperJob,
        *,
        result: ScrapeResult | None,
        ran_at: datetime,
        next_run: datetime,
        status: str,
    ) -> ScrapedRecord | None:
        record = None
        with self._transaction():
            if result is not None:
                record = self._build_record(job, result)
                self._session.add(record)
            job.last_run = ran_at
            job.next_run = next_run
            job.status = status
            self._session.flush()
        return record

    def record_failure(self, job: ScraperJob, *, ran_at: datetime, status: str) -> None:
        with self._transaction():
            job.last_run = ran_at
            job.status = status

    def save_manual_scrape(
        self,
        *,
        job_fields: Mapping[str, Any],
        result: ScrapeResult,
    ) -> tuple[ScraperJob, ScrapedRecord]:
        job = ScraperJob(**job_fields)
        with self._transaction():
            self._session.add(job)
            self._session.flush()
            record = self._build_record(job, result)
            self._session.add(record)
            self._session.flush()
        return job, record

    @staticmethod
    def _build_record(job: ScraperJob, result: ScrapeResult) -> ScrapedRecord:
        return ScrapedRecord(
            job_id=job.id,
            tenant_id=job.tenant_id,
            type=job.type,
            url=result.url,
            title=result.title or None,
            content=result.content,
            metadata_json=result.metadata,
            content_hash=result.content_hash,
            scraped_at=result.scraped_at,
        )

    # --- reads ------------------------------------------------------------

    def list_records(
        self,
        *,
        tenant_id: str,
        scraper_type: str | None,
        limit: int,
    ) -> list[ScrapedRecord]:
        stmt = select(ScrapedRecord).where(ScrapedRecord.tenant_id == tenant_id)
        if scraper_type:
            stmt = stmt.where(ScrapedRecord.type == scraper_type)
        stmt = stmt.order_by(ScrapedRecord.scraped_at.desc()).limit(max(1, limit))
        return list(self._session.scalars(stmt).all())

    def count_records(self, tenant_id: str) -> int:
        stmt = select(func.count(ScrapedRecord.id)).where(ScrapedRecord.tenant_id == tenant_id)
        return int(self._session.scalar(stmt) or 0)

    def count_jobs_by_type_and_status(self, tenant_id: str) -> list[tuple[str, str, int]]:
        stmt = (
            select(ScraperJob.type, ScraperJob.status, func.count(ScraperJob.id))
            .where(ScraperJob.tenant_id == tenant_id)
            .group_by(ScraperJob.type, ScraperJob.status)
        )
        return [(row[0], row[1], int(row[2])) for row in self._session.execute(stmt).all()]
