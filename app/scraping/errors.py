"""
Exceptions raised by the scraping pipeline and job executor.
"""

from __future__ import annotations


class ScrapingError(Exception):
    """Base exception for scraping pipeline failures."""


class FetchFailure(ScrapingError):
    """Raised when a page could not be fetched after all retry attempts."""

    def __init__(self, *, url: str, message: str, attempts: int) -> None:
        self.url = url
        self.message = message
        self.attempts = attempts
        super().__init__(f"Failed to fetch {url} after {attempts} attempts: {message}")


class ScraperTypeUnregistered(ScrapingError):
    """Raised when no scraper is registered for a job type."""

    def __init__(self, scraper_type: str) -> None:
        self.scraper_type = scraper_type
        super().__init__(f"No scraper available for type: {scraper_type}")


class JobNotFound(ScrapingError):
    """Raised when a referenced scraper job does not exist."""

    def __init__(self, job_id: object) -> None:
        self.job_id = job_id
        super().__init__(f"Scraper job not found: {job_id}")


class JobNotActive(ScrapingError):
    """Raised when a scraper job is paused or disabled."""

    def __init__(self, job_id: object, status: str) -> None:
        self.job_id = job_id
        self.status = status
        super().__init__(f"Scraper job {job_id} is not active (status={status})")


class JobAlreadyRunning(ScrapingError):
    """Raised when a second execution of the same job is attempted concurrently."""

    def __init__(self, job_id: object) -> None:
        self.job_id = job_id
        super().__init__(f"Scraper job {job_id} is already running")


class InvalidJobConfiguration(ScrapingError):
    """Raised when job parameters fail validation."""
