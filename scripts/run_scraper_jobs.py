"""
Run scraper jobs from the CLI: the due-job sweep, or one job by id.
"""

from __future__ import annotations

import argparse
import json
import logging
import uuid
from contextlib import closing

from app.config import get_scraper_settings
from app.scraping.errors import ScrapingError
from app.scraping.executor import ScrapeJobExecutor
from app.scraping.registry import ScraperRegistry
from app.scraping.storage import SQLAlchemyScrapeStore
from db.session import SessionLocal


def main() -> int:
    parser = argparse.ArgumentParser(description="Execute due scraper jobs.")
    parser.add_argument(
        "--job-id",
        dest="job_id",
        type=uuid.UUID,
        default=None,
        help="Run only this job, regardless of next_run.",
    )
    parser.add_argument("--log-level", default="INFO", help="Root log level.")
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    settings = get_scraper_settings()
    with SessionLocal() as db, closing(ScraperRegistry(settings=settings)) as registry:
        executor = ScrapeJobExecutor(
            store=SQLAlchemyScrapeStore(session=db),
            registry=registry,
            settings=settings,
        )
        if args.job_id is None:
            summary = executor.run_due_jobs()
            payload = {
                "total": summary.total,
                "completed": summary.completed,
                "failed": summary.failed,
                "unchanged": summary.unchanged,
                "errors": summary.errors,
            }
            exit_code = 0 if summary.failed == 0 else 1
        else:
            try:
                outcome = executor.execute_job(args.job_id)
            except ScrapingError as exc:
                print(json.dumps({"job_id": str(args.job_id), "error": str(exc)}, indent=2))
                return 1
            payload = {
                "job_id": str(outcome.job_id),
                "record_id": str(outcome.record.id) if outcome.record is not None else None,
                "unchanged": outcome.unchanged,
                "content_hash": outcome.result.content_hash,
                "metadata": outcome.result.metadata,
            }
            exit_code = 0

    print(json.dumps(payload, indent=2, default=str))
    return exit_code


if __name__ == "__main__":
    raise SystemExit(main())
