"""
app/api/routers package marker.
"""

from app.api.routers.scraper import router as scraper_router

__all__ = [
    "scraper_router",
]
