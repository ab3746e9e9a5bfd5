"""
Scraper subclass exports.
"""

from app.scraping.scrapers.competitor import CompetitorScraper
from app.scraping.scrapers.market_intelligence import MarketIntelligenceScraper
from app.scraping.scrapers.social_media import SocialMediaScraper

__all__ = ["CompetitorScraper", "MarketIntelligenceScraper", "SocialMediaScraper"]
