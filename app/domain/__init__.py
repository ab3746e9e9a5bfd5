"""
app/domain package marker.
"""

from app.domain.scraping import (
    DueRunSummary,
    ExecutionOutcome,
    JobListing,
    JobWriteResult,
    ScrapingAnalytics,
)

__all__ = [
    "DueRunSummary",
    "ExecutionOutcome",
    "JobListing",
    "JobWriteResult",
    "ScrapingAnalytics",
]
