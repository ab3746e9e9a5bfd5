"""
app/services package marker.
"""

from app.services.scraper_service import ScraperService, get_scraper_service

__all__ = [
    "ScraperService",
    "get_scraper_service",
]
