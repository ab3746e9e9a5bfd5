"""
app/schemas package marker.
"""

from app.schemas.scraping import (
    DueRunSummaryResponse,
    JobDeleteResponse,
    ManualScrapeRequest,
    ScrapedRecordResponse,
    ScrapeExecutionResponse,
    ScraperJobCreateRequest,
    ScraperJobResponse,
    ScraperJobUpdateRequest,
    ScraperJobWriteResponse,
    ScrapingAnalyticsResponse,
)

__all__ = [
    "DueRunSummaryResponse",
    "JobDeleteResponse",
    "ManualScrapeRequest",
    "ScrapedRecordResponse",
    "ScrapeExecutionResponse",
    "ScraperJobCreateRequest",
    "ScraperJobResponse",
    "ScraperJobUpdateRequest",
    "ScraperJobWriteResponse",
    "ScrapingAnalyticsResponse",
]
