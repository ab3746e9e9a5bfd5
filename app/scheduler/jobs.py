"""
app/scheduler/jobs.py

APScheduler-based scheduler for the periodic scraper sweep.

Schedule (all times UTC)
--------------------------
  daily_scraper_sweep: SCRAPER_SCHEDULE_HOUR:SCRAPER_SCHEDULE_MINUTE every day
                        (default 00:00)

The sweep executes every ACTIVE job whose ``next_run`` has passed,
sequentially, one job at a time. A failing job is logged and counted; it
never stops the sweep. Jobs on weekly, monthly or yearly cadences are simply
not due on most days. ERROR jobs are skipped until an operator sets them
ACTIVE again.

Lifecycle
----------
Call ``build_scheduler()`` once to get a configured ``BackgroundScheduler``.
Start it on app boot; shut it down gracefully on app shutdown.
The scheduler is wired into FastAPI via the ``lifespan`` context in main.py.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from apscheduler.schedulers.background import BackgroundScheduler
from sqlalchemy.orm import Session

from app.config import ScraperSettings, get_scraper_settings
from app.domain.scraping import DueRunSummary
from app.services.scraper_service import get_scraper_service
from db.session import SessionLocal

logger = logging.getLogger(__name__)

SWEEP_JOB_ID = "daily_scraper_sweep"


# ---------------------------------------------------------------------------
# Session helper
# ---------------------------------------------------------------------------


@contextmanager
def _session_scope() -> Iterator[Session]:
    """Yield a fresh session and ensure it is closed on exit."""
    session: Session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


# ---------------------------------------------------------------------------
# Job: Daily scraper sweep
# ---------------------------------------------------------------------------


def run_scraper_sweep() -> DueRunSummary | None:
    """
    Execute all due scraper jobs. The executor commits per job.
    """
    logger.info("Scheduler: %s starting", SWEEP_JOB_ID)

    with _session_scope() as db:
        try:
            summary = get_scraper_service().run_due_jobs(db)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Scheduler: %s failed: %s", SWEEP_JOB_ID, exc)
            return None

    logger.info(
        "Scheduler: %s complete total=%s completed=%s failed=%s unchanged=%s",
        SWEEP_JOB_ID,
        summary.total,
        summary.completed,
        summary.failed,
        summary.unchanged,
    )
    return summary


# ---------------------------------------------------------------------------
# Scheduler factory
# ---------------------------------------------------------------------------


def build_scheduler(settings: ScraperSettings | None = None) -> BackgroundScheduler:
    """
    Build and register the scraper sweep.

    Returns a configured but *not yet started* ``BackgroundScheduler``.
    The caller must call ``.start()`` and ``.shutdown(wait=True)`` at the
    appropriate lifecycle points.
    """
    resolved = settings or get_scraper_settings()
    scheduler = BackgroundScheduler(timezone="UTC")

    scheduler.add_job(
        run_scraper_sweep,
        trigger="cron",
        hour=resolved.schedule_hour,
        minute=resolved.schedule_minute,
        id=SWEEP_JOB_ID,
        name="Daily scraper sweep",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=3600,
    )

    return scheduler
