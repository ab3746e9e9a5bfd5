from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.config import ScraperSettings
from app.scraping.errors import (
    FetchFailure,
    InvalidJobConfiguration,
    JobAlreadyRunning,
    JobNotActive,
    JobNotFound,
    ScraperTypeUnregistered,
)
from app.scraping.executor import JobLockRegistry, ScrapeJobExecutor
from app.scraping.registry import ScraperRegistry
from app.scraping.scheduling import DAILY, WEEKLY, YEARLY
from app.scraping.storage import SQLAlchemyScrapeStore
from app.scraping.types import ScraperJobStatus, ScraperType
from db.models import ScrapedRecord, ScraperJob

TENANT = "tenant-a"
SHOP_URL = "https://shop.example.com/catalog"
BROKEN_URL = "https://broken.example.com/catalog"
PAST = datetime(2026, 10, 1, tzinfo=timezone.utc)


@pytest.fixture()
def store(db_session: Session) -> SQLAlchemyScrapeStore:
    return SQLAlchemyScrapeStore(session=db_session)


@pytest.fixture()
def build_executor(store: SQLAlchemyScrapeStore):
    def _build(session, *, settings: ScraperSettings | None = None, locks: JobLockRegistry | None = None):
        resolved = settings or ScraperSettings()
        return ScrapeJobExecutor(
            store=store,
            registry=ScraperRegistry(settings=resolved, session=session, sleep=lambda _: None),
            settings=resolved,
            locks=locks,
        )

    return _build


@pytest.fixture()
def create_job(store: SQLAlchemyScrapeStore):
    def _create(
        *,
        url: str = SHOP_URL,
        scraper_type: str = ScraperType.COMPETITOR_PRICING,
        status: str = ScraperJobStatus.ACTIVE,
        frequency: str = DAILY,
        next_run: datetime | None = PAST,
        tenant_id: str = TENANT,
        config: dict | None = None,
    ) -> ScraperJob:
        return store.create_job(
            tenant_id=tenant_id,
            name=f"job {url}",
            scraper_type=scraper_type,
            url=url,
            frequency=frequency,
            config=config if config is not None else {"retries": 1},
            status=status,
            next_run=next_run,
        )

    return _create


def _record_count(db_session: Session) -> int:
    return db_session.scalar(select(func.count(ScrapedRecord.id)))


# ---------------------------------------------------------------------------
# execute_job
# ---------------------------------------------------------------------------


class TestExecuteJob:
    def test_success_stores_record_and_advances_schedule(
        self, db_session, make_session, competitor_html, build_executor, create_job
    ) -> None:
        job = create_job()
        executor = build_executor(make_session([competitor_html]))

        outcome = executor.execute_job(job.id)

        assert outcome.job_id == job.id
        assert outcome.persisted
        assert not outcome.unchanged
        assert outcome.record.content_hash == outcome.result.content_hash
        assert outcome.record.content["total_products"] == 3
        assert outcome.record.tenant_id == TENANT
        assert outcome.record.type == ScraperType.COMPETITOR_PRICING
        assert job.status == ScraperJobStatus.ACTIVE
        assert job.last_run is not None
        assert job.next_run - job.last_run == timedelta(days=1)
        assert _record_count(db_session) == 1

    def test_weekly_job_advances_seven_days(self, make_session, competitor_html, build_executor, create_job) -> None:
        job = create_job(frequency=WEEKLY)

        build_executor(make_session([competitor_html])).execute_job(job.id)

        assert job.next_run - job.last_run == timedelta(days=7)

    def test_failure_marks_error_and_keeps_next_run(
        self, db_session, make_session, build_executor, create_job
    ) -> None:
        job = create_job()
        executor = build_executor(make_session([500]))

        with pytest.raises(FetchFailure):
            executor.execute_job(job.id)

        assert job.status == ScraperJobStatus.ERROR
        assert job.last_run is not None
        assert job.next_run == PAST
        assert _record_count(db_session) == 0

    def test_error_job_is_rejected_without_fetching(
        self, make_session, competitor_html, build_executor, create_job
    ) -> None:
        job = create_job(status=ScraperJobStatus.ERROR)
        session = make_session([competitor_html])

        with pytest.raises(JobNotActive):
            build_executor(session).execute_job(job.id)

        assert session.calls == []
        assert job.status == ScraperJobStatus.ERROR
        assert job.last_run is None

    def test_error_job_recovers_once_reactivated(
        self, store, make_session, competitor_html, build_executor, create_job
    ) -> None:
        job = create_job()
        session = make_session([500, competitor_html])
        executor = build_executor(session)

        with pytest.raises(FetchFailure):
            executor.execute_job(job.id)
        with pytest.raises(JobNotActive):
            executor.execute_job(job.id)
        assert len(session.calls) == 1

        store.update_job(job, {"status": ScraperJobStatus.ACTIVE})
        outcome = executor.execute_job(job.id)

        assert outcome.persisted
        assert job.status == ScraperJobStatus.ACTIVE

    def test_missing_job(self, make_session, build_executor) -> None:
        with pytest.raises(JobNotFound):
            build_executor(make_session([])).execute_job(uuid.uuid4())

    @pytest.mark.parametrize("status", [ScraperJobStatus.PAUSED, ScraperJobStatus.DISABLED])
    def test_inactive_job_is_rejected_without_fetching(
        self, status, make_session, competitor_html, build_executor, create_job
    ) -> None:
        job = create_job(status=status)
        session = make_session([competitor_html])

        with pytest.raises(JobNotActive):
            build_executor(session).execute_job(job.id)

        assert session.calls == []
        assert job.status == status

    def test_unregistered_type_marks_error(self, make_session, build_executor, create_job) -> None:
        job = create_job(scraper_type="PODCAST_RANKINGS")

        with pytest.raises(ScraperTypeUnregistered):
            build_executor(make_session([])).execute_job(job.id)

        assert job.status == ScraperJobStatus.ERROR

    def test_job_config_is_applied(self, make_session, build_executor, create_job) -> None:
        job = create_job(config={"retries": 3, "delay": 0})
        session = make_session([503])

        with pytest.raises(FetchFailure):
            build_executor(session).execute_job(job.id)

        assert len(session.calls) == 3


# ---------------------------------------------------------------------------
# Change detection and single-flight
# ---------------------------------------------------------------------------


class TestChangeDetection:
    def test_identical_content_is_stored_by_default(
        self, db_session, make_session, competitor_html, build_executor, create_job
    ) -> None:
        job = create_job()
        executor = build_executor(make_session([competitor_html]))

        first = executor.execute_job(job.id)
        second = executor.execute_job(job.id)

        assert first.result.content_hash == second.result.content_hash
        assert second.persisted
        assert _record_count(db_session) == 2

    def test_skip_unchanged_records(self, db_session, make_session, competitor_html, build_executor, create_job) -> None:
        job = create_job()
        executor = build_executor(
            make_session([competitor_html]),
            settings=ScraperSettings(skip_unchanged_records=True),
        )

        executor.execute_job(job.id)
        first_run = job.last_run
        second = executor.execute_job(job.id)

        assert second.unchanged
        assert second.record is None
        assert _record_count(db_session) == 1
        assert job.last_run >= first_run
        assert job.status == ScraperJobStatus.ACTIVE

    def test_changed_content_is_stored_when_skipping(
        self, db_session, make_session, competitor_html, build_executor, create_job
    ) -> None:
        job = create_job()
        changed = competitor_html.replace("$30.00", "$35.00")
        executor = build_executor(
            make_session([competitor_html, changed]),
            settings=ScraperSettings(skip_unchanged_records=True),
        )

        executor.execute_job(job.id)
        second = executor.execute_job(job.id)

        assert not second.unchanged
        assert _record_count(db_session) == 2


class TestJobLocks:
    def test_concurrent_execution_is_rejected(self, make_session, competitor_html, build_executor, create_job) -> None:
        job = create_job()
        locks = JobLockRegistry()
        executor = build_executor(make_session([competitor_html]), locks=locks)

        with locks.hold(job.id):
            assert locks.is_running(job.id)
            with pytest.raises(JobAlreadyRunning):
                executor.execute_job(job.id)

        assert not locks.is_running(job.id)
        assert executor.execute_job(job.id).persisted

    def test_lock_released_after_failure(self, make_session, build_executor, create_job) -> None:
        job = create_job()
        locks = JobLockRegistry()
        executor = build_executor(make_session([500]), locks=locks)

        with pytest.raises(FetchFailure):
            executor.execute_job(job.id)

        assert not locks.is_running(job.id)


# ---------------------------------------------------------------------------
# Manual scrapes and due sweeps
# ---------------------------------------------------------------------------


class TestManualScrape:
    def test_record_anchored_to_disabled_job(self, db_session, make_session, competitor_html, build_executor) -> None:
        outcome = build_executor(make_session([competitor_html])).run_manual_scrape(
            url=SHOP_URL,
            scraper_type=ScraperType.COMPETITOR_PRODUCTS,
            tenant_id=TENANT,
        )

        job = db_session.get(ScraperJob, outcome.job_id)
        assert job.status == ScraperJobStatus.DISABLED
        assert job.name.startswith("Manual Scrape - ")
        assert job.frequency == YEARLY
        assert job.config == {}
        assert job.next_run is None
        assert job.last_run is not None
        assert outcome.record.job_id == job.id
        assert outcome.record.type == ScraperType.COMPETITOR_PRODUCTS

    def test_fetch_failure_stores_nothing(self, db_session, make_session, build_executor) -> None:
        with pytest.raises(FetchFailure):
            build_executor(make_session([500])).run_manual_scrape(
                url=SHOP_URL,
                scraper_type=ScraperType.COMPETITOR_PRICING,
                tenant_id=TENANT,
            )

        assert db_session.scalar(select(func.count(ScraperJob.id))) == 0

    def test_invalid_url(self, make_session, build_executor) -> None:
        session = make_session([])
        with pytest.raises(InvalidJobConfiguration):
            build_executor(session).run_manual_scrape(
                url="not a url",
                scraper_type=ScraperType.COMPETITOR_PRICING,
                tenant_id=TENANT,
            )
        assert session.calls == []


class TestRunDueJobs:
    def test_sweep_runs_due_active_jobs_and_isolates_failures(
        self, make_session, competitor_html, build_executor, create_job
    ) -> None:
        healthy = create_job()
        broken = create_job(url=BROKEN_URL)
        errored = create_job(status=ScraperJobStatus.ERROR)
        paused = create_job(status=ScraperJobStatus.PAUSED)
        future = create_job(next_run=datetime(2030, 1, 1, tzinfo=timezone.utc))
        unscheduled = create_job(next_run=None)
        session = make_session(routes={SHOP_URL: [competitor_html], BROKEN_URL: [500]})

        summary = build_executor(session).run_due_jobs(datetime(2026, 10, 19, tzinfo=timezone.utc))

        assert summary.total == 2
        assert summary.completed == 1
        assert summary.failed == 1
        assert len(summary.errors) == 1
        assert str(broken.id) in summary.errors[0]
        assert healthy.status == ScraperJobStatus.ACTIVE
        assert healthy.last_run is not None
        assert broken.status == ScraperJobStatus.ERROR
        assert errored.last_run is None
        assert errored.status == ScraperJobStatus.ERROR
        assert paused.last_run is None
        assert future.last_run is None
        assert unscheduled.last_run is None

    def test_empty_sweep(self, make_session, build_executor) -> None:
        summary = build_executor(make_session([])).run_due_jobs()

        assert (summary.total, summary.completed, summary.failed, summary.unchanged) == (0, 0, 0, 0)
