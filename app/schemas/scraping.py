"""
app/schemas/scraping.py

Request and response schemas for scraper job and scraped data endpoints.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.scraping.types import ScraperJobStatus, ScraperType


def _check_scraper_type(value: str) -> str:
    normalized = value.strip().upper()
    if normalized not in ScraperType.ALL:
        raise ValueError(f"type must be one of: {', '.join(ScraperType.ALL)}")
    return normalized


class ScraperJobCreateRequest(BaseModel):
    """
    Payload for creating a scheduled scraper job.
    """

    name: str = Field(..., min_length=1, max_length=255)
    type: str
    url: str = Field(..., min_length=1)
    frequency: str = Field(default="0 0 * * *")
    config: dict[str, Any] = Field(default_factory=dict)

    @field_validator("type")
    @classmethod
    def validate_type(cls, value: str) -> str:
        return _check_scraper_type(value)


class ScraperJobUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    url: str | None = None
    frequency: str | None = None
    config: dict[str, Any] | None = None
    status: str | None = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip().upper()
        if normalized not in ScraperJobStatus.ALL:
            raise ValueError(f"status must be one of: {', '.join(ScraperJobStatus.ALL)}")
        return normalized


class ManualScrapeRequest(BaseModel):
    url: str = Field(..., min_length=1)
    type: str

    @field_validator("type")
    @classmethod
    def validate_type(cls, value: str) -> str:
        return _check_scraper_type(value)


class ScraperJobResponse(BaseModel):
    """
    API response model for one scraper job.
    """

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    tenant_id: str
    name: str
    type: str
    url: str
    frequency: str
    config: dict[str, Any] = Field(default_factory=dict)
    status: str
    last_run: datetime | None = None
    next_run: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    record_count: int | None = Field(default=None, ge=0)


class ScraperJobWriteResponse(BaseModel):
    job: ScraperJobResponse
    warnings: list[str] = Field(default_factory=list)


class ScrapedRecordResponse(BaseModel):
    id: uuid.UUID
    job_id: uuid.UUID
    type: str
    url: str
    title: str | None = None
    content: dict[str, Any]
    metadata: dict[str, Any] | None = None
    content_hash: str
    scraped_at: datetime


class ScrapeExecutionResponse(BaseModel):
    """
    Outcome of a job run or manual scrape.

    `record_id` is None when unchanged content was not stored again.
    """

    job_id: uuid.UUID
    record_id: uuid.UUID | None = None
    unchanged: bool = False
    url: str
    title: str
    content: dict[str, Any]
    metadata: dict[str, Any]
    content_hash: str
    scraped_at: datetime


class JobDeleteResponse(BaseModel):
    job_id: uuid.UUID
    records_deleted: int = Field(..., ge=0)


class RecentActivityItem(BaseModel):
    type: str
    scraped_at: datetime
    metadata: dict[str, Any] = Field(default_factory=dict)


class ScrapingAnalyticsResponse(BaseModel):
    total_data_points: int = Field(..., ge=0)
    type_distribution: dict[str, int]
    status_distribution: dict[str, int]
    recent_activity: list[RecentActivityItem]
    generated_at: datetime | None = None


class DueRunSummaryResponse(BaseModel):
    total: int = Field(..., ge=0)
    completed: int = Field(..., ge=0)
    failed: int = Field(..., ge=0)
    unchanged: int = Field(..., ge=0)
    errors: list[str] = Field(default_factory=list)
