"""
app/api/routers/scraper.py

Scraper job management, manual scrape and scraped data endpoints.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.api.dependencies import get_tenant_id, require_trigger_token
from app.domain.scraping import ExecutionOutcome, JobWriteResult
from app.schemas.scraping import (
    DueRunSummaryResponse,
    JobDeleteResponse,
    ManualScrapeRequest,
    RecentActivityItem,
    ScrapedRecordResponse,
    ScrapeExecutionResponse,
    ScraperJobCreateRequest,
    ScraperJobResponse,
    ScraperJobUpdateRequest,
    ScraperJobWriteResponse,
    ScrapingAnalyticsResponse,
)
from app.scraping.errors import (
    FetchFailure,
    InvalidJobConfiguration,
    JobAlreadyRunning,
    JobNotActive,
    JobNotFound,
    ScraperTypeUnregistered,
    ScrapingError,
)
from app.services.scraper_service import ScraperService, get_scraper_service
from db.session import get_db

router = APIRouter(prefix="/scraper", tags=["scraper"])

_ERROR_STATUS: tuple[tuple[type[ScrapingError], int], ...] = (
    (JobNotFound, status.HTTP_404_NOT_FOUND),
    (JobNotActive, status.HTTP_409_CONFLICT),
    (JobAlreadyRunning, status.HTTP_409_CONFLICT),
    (InvalidJobConfiguration, status.HTTP_400_BAD_REQUEST),
    (ScraperTypeUnregistered, status.HTTP_400_BAD_REQUEST),
    (FetchFailure, status.HTTP_502_BAD_GATEWAY),
)


def _http_error(exc: ScrapingError) -> HTTPException:
    for error_type, status_code in _ERROR_STATUS:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def _write_response(written: JobWriteResult) -> ScraperJobWriteResponse:
    return ScraperJobWriteResponse(
        job=ScraperJobResponse.model_validate(written.job),
        warnings=written.warnings,
    )


def _execution_response(outcome: ExecutionOutcome) -> ScrapeExecutionResponse:
    result = outcome.result
    return ScrapeExecutionResponse(
        job_id=outcome.job_id,
        record_id=outcome.record.id if outcome.record is not None else None,
        unchanged=outcome.unchanged,
        url=result.url,
        title=result.title,
        content=result.content,
        metadata=result.metadata,
        content_hash=result.content_hash,
        scraped_at=result.scraped_at,
    )


# ---------------------------------------------------------------------------
# Scraped data and manual scrapes
# ---------------------------------------------------------------------------


@router.get("", response_model=list[ScrapedRecordResponse])
def list_scraped_data(
    scraper_type: str | None = Query(default=None, alias="type", description="Scraper type filter"),
    limit: int | None = Query(default=None, ge=1, description="Maximum records to return"),
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
    scraper_service: ScraperService = Depends(get_scraper_service),
) -> list[ScrapedRecordResponse]:
    records = scraper_service.get_scraped_data(
        db,
        tenant_id=tenant_id,
        scraper_type=scraper_type.strip().upper() if scraper_type else None,
        limit=limit,
    )
    return [
        ScrapedRecordResponse(
            id=record.id,
            job_id=record.job_id,
            type=record.type,
            url=record.url,
            title=record.title,
            content=record.content,
            metadata=record.metadata_json,
            content_hash=record.content_hash,
            scraped_at=record.scraped_at,
        )
        for record in records
    ]


@router.post("", response_model=ScrapeExecutionResponse, status_code=status.HTTP_201_CREATED)
def manual_scrape(
    payload: ManualScrapeRequest,
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
    scraper_service: ScraperService = Depends(get_scraper_service),
) -> ScrapeExecutionResponse:
    """
    Scrape one URL immediately and store the record under a disabled job.
    """

    try:
        outcome = scraper_service.perform_manual_scrape(
            db,
            tenant_id=tenant_id,
            url=payload.url,
            scraper_type=payload.type,
        )
    except ScrapingError as exc:
        raise _http_error(exc) from exc
    return _execution_response(outcome)


# ---------------------------------------------------------------------------
# Jobs
# ---------------------------------------------------------------------------


@router.get("/jobs", response_model=list[ScraperJobResponse])
def list_jobs(
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
    scraper_service: ScraperService = Depends(get_scraper_service),
) -> list[ScraperJobResponse]:
    listings = scraper_service.get_scraper_jobs(db, tenant_id=tenant_id)
    return [
        ScraperJobResponse.model_validate(listing.job).model_copy(
            update={"record_count": listing.record_count}
        )
        for listing in listings
    ]


@router.post("/jobs", response_model=ScraperJobWriteResponse, status_code=status.HTTP_201_CREATED)
def create_job(
    payload: ScraperJobCreateRequest,
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
    scraper_service: ScraperService = Depends(get_scraper_service),
) -> ScraperJobWriteResponse:
    try:
        written = scraper_service.create_scraper_job(
            db,
            tenant_id=tenant_id,
            name=payload.name,
            scraper_type=payload.type,
            url=payload.url,
            frequency=payload.frequency,
            config=payload.config,
        )
    except ScrapingError as exc:
        raise _http_error(exc) from exc
    return _write_response(written)


@router.post("/jobs/{job_id}/run", response_model=ScrapeExecutionResponse)
def run_job(
    job_id: uuid.UUID,
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
    scraper_service: ScraperService = Depends(get_scraper_service),
) -> ScrapeExecutionResponse:
    """
    Execute one job now. A failed run leaves the job in ERROR and returns 502.
    """

    try:
        outcome = scraper_service.execute_scraper_job(db, tenant_id=tenant_id, job_id=job_id)
    except ScrapingError as exc:
        raise _http_error(exc) from exc
    return _execution_response(outcome)


@router.put("/jobs/{job_id}", response_model=ScraperJobWriteResponse)
def update_job(
    job_id: uuid.UUID,
    payload: ScraperJobUpdateRequest,
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
    scraper_service: ScraperService = Depends(get_scraper_service),
) -> ScraperJobWriteResponse:
    try:
        written = scraper_service.update_scraper_job(
            db,
            tenant_id=tenant_id,
            job_id=job_id,
            name=payload.name,
            url=payload.url,
            frequency=payload.frequency,
            config=payload.config,
            status=payload.status,
        )
    except ScrapingError as exc:
        raise _http_error(exc) from exc
    return _write_response(written)


@router.delete("/jobs/{job_id}", response_model=JobDeleteResponse)
def delete_job(
    job_id: uuid.UUID,
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
    scraper_service: ScraperService = Depends(get_scraper_service),
) -> JobDeleteResponse:
    try:
        deleted = scraper_service.delete_scraper_job(db, tenant_id=tenant_id, job_id=job_id)
    except ScrapingError as exc:
        raise _http_error(exc) from exc
    return JobDeleteResponse(job_id=job_id, records_deleted=deleted)


# ---------------------------------------------------------------------------
# Analytics and sweeps
# ---------------------------------------------------------------------------


@router.get("/analytics", response_model=ScrapingAnalyticsResponse)
def scraping_analytics(
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
    scraper_service: ScraperService = Depends(get_scraper_service),
) -> ScrapingAnalyticsResponse:
    analytics = scraper_service.get_scraping_analytics(db, tenant_id=tenant_id)
    return ScrapingAnalyticsResponse(
        total_data_points=analytics.total_data_points,
        type_distribution=analytics.type_distribution,
        status_distribution=analytics.status_distribution,
        recent_activity=[RecentActivityItem(**item) for item in analytics.recent_activity],
        generated_at=analytics.generated_at,
    )


@router.post(
    "/run-due",
    response_model=DueRunSummaryResponse,
    dependencies=[Depends(require_trigger_token)],
)
def run_due_jobs(
    db: Session = Depends(get_db),
    scraper_service: ScraperService = Depends(get_scraper_service),
) -> DueRunSummaryResponse:
    """
    Trigger the due-job sweep across all tenants, outside the daily schedule.

    Callers must send the X-Scraper-Trigger header matching SCRAPER_TRIGGER_TOKEN.
    """

    summary = scraper_service.run_due_jobs(db)
    return DueRunSummaryResponse(
        total=summary.total,
        completed=summary.completed,
        failed=summary.failed,
        unchanged=summary.unchanged,
        errors=summary.errors,
    )
