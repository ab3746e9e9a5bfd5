"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.scraped_record import ScrapedRecord
from db.models.scraper_job import ScraperJob

__all__ = [
    "ScrapedRecord",
    "ScraperJob",
]
