"""
Market intelligence scraper: search trends, news sentiment and report insights.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from app.scraping import extraction
from app.scraping.base import ScraperBase
from app.scraping.types import Extraction

MAX_NEWS_ITEMS = 20
MAX_SUMMARY_LENGTH = 300
MAX_INSIGHTS = 5
TREND_THRESHOLD = 5.0
OPPORTUNITY_RELEVANCE = 50.0

DEFAULT_INDUSTRY = "General"

INSIGHT_KEYS = (
    "growing_topics",
    "declining_topics",
    "emerging_opportunities",
    "threats",
)


def detect_source_type(url: str) -> str:
    lowered = url.lower()
    if "trends.google.com" in lowered:
        return "google_trends"
    if any(marker in lowered for marker in ("news.", "reuters.", "bloomberg.")):
        return "news_site"
    if any(marker in lowered for marker in ("report", "research", "market")):
        return "industry_report"
    return "generic"


def classify_trend(change: float) -> str:
    if change > TREND_THRESHOLD:
        return "up"
    if change < -TREND_THRESHOLD:
        return "down"
    return "stable"


def aggregate_sentiment(news: list[dict[str, Any]]) -> dict[str, float]:
    """
    overall = (positive - negative) / total, plus percentage breakdowns.
    """

    total = len(news)
    if total == 0:
        return {"overall": 0.0, "positive": 0.0, "negative": 0.0, "neutral": 0.0}

    positive = sum(1 for item in news if item["sentiment"] == "positive")
    negative = sum(1 for item in news if item["sentiment"] == "negative")
    neutral = sum(1 for item in news if item["sentiment"] == "neutral")
    return {
        "overall": (positive - negative) / total,
        "positive": positive / total * 100,
        "negative": negative / total * 100,
        "neutral": neutral / total * 100,
    }


def synthesize_insights(
    trends: list[dict[str, Any]],
    news: list[dict[str, Any]],
) -> dict[str, list[str]]:
    def headline(item: dict[str, Any]) -> str:
        return " ".join(item["title"].split()[:3])

    return {
        "growing_topics": [t["keyword"] for t in trends if t["trend"] == "up"][:MAX_INSIGHTS],
        "declining_topics": [t["keyword"] for t in trends if t["trend"] == "down"][:MAX_INSIGHTS],
        "emerging_opportunities": [
            headline(item)
            for item in news
            if item["sentiment"] == "positive" and item["relevance_score"] > OPPORTUNITY_RELEVANCE
        ][:MAX_INSIGHTS],
        "threats": [
            headline(item)
            for item in news
            if item["sentiment"] == "negative" and item["relevance_score"] > OPPORTUNITY_RELEVANCE
        ][:MAX_INSIGHTS],
    }


class MarketIntelligenceScraper(ScraperBase):
    """
    Dispatches on the kind of source page and synthesizes market insights.
    """

    scrape_type = "market_intelligence"
    DEFAULT_DELAY_SECONDS = 2.0
    DEFAULT_RETRIES = 3
    DEFAULT_SELECTORS = {
        "trend": ".trends-table-row, .trend-item",
        "trend_keyword": ".trend-term, .keyword",
        "trend_volume": ".search-volume, .volume",
        "trend_change": ".change, .trend-change",
        "article": "article, .news-item, .story, .post",
        "article_title": "h1, h2, h3, .title, .headline",
        "article_summary": ".summary, .excerpt, .description, p",
        "article_source": ".source, .author, .byline",
        "article_link": "a",
        "article_date": ".date, .published, time",
        "report_industry": "h1, .industry, .market-name",
        "report_growing": ".growth, .opportunity, .trend-up",
        "report_declining": ".decline, .threat, .trend-down",
        "report_emerging": ".emerging, .opportunity, .new-trend",
        "report_threats": ".risk, .threat, .challenge",
        "generic_industry": "h1, title",
        "generic_topics": "h2, h3",
    }

    def extract(self, *, soup: BeautifulSoup, url: str) -> Extraction:
        selectors = self.selectors
        source_type = detect_source_type(url)
        coverage = extraction.CoverageTracker()

        industry = DEFAULT_INDUSTRY
        trends: list[dict[str, Any]] = []
        news: list[dict[str, Any]] = []
        undated: set[int] = set()
        page_insights: dict[str, list[str]] = {key: [] for key in INSIGHT_KEYS}

        if source_type == "google_trends":
            trends = self._extract_trends(soup, selectors)
            coverage.observe("trends", trends)
        elif source_type == "news_site":
            news, undated = self._extract_news(soup, selectors, url)
            coverage.observe("news", news)
        elif source_type == "industry_report":
            industry = extraction.text(soup, selectors["report_industry"]) or DEFAULT_INDUSTRY
            news, undated = self._extract_news(soup, selectors, url)
            page_insights = {
                "growing_topics": extraction.multiple_text(soup, selectors["report_growing"]),
                "declining_topics": extraction.multiple_text(soup, selectors["report_declining"]),
                "emerging_opportunities": extraction.multiple_text(soup, selectors["report_emerging"]),
                "threats": extraction.multiple_text(soup, selectors["report_threats"]),
            }
            coverage.observe("industry", industry if industry != DEFAULT_INDUSTRY else "")
            coverage.observe("news", news)
            coverage.observe("insights", [item for items in page_insights.values() for item in items])
        else:
            heading = extraction.text(soup, selectors["generic_industry"])
            industry = heading.split(" ")[0] if heading else DEFAULT_INDUSTRY
            news, undated = self._extract_news(soup, selectors, url)
            page_insights["growing_topics"] = extraction.multiple_text(
                soup, selectors["generic_topics"]
            )[:MAX_INSIGHTS]
            coverage.observe("industry", heading)
            coverage.observe("news", news)

        insights = synthesize_insights(trends, news)
        for key in INSIGHT_KEYS:
            if not insights[key]:
                insights[key] = page_insights[key]

        sentiment = aggregate_sentiment(news)
        content = {
            "industry": industry,
            "source_type": source_type,
            "trends": trends,
            "news": news,
            "insights": insights,
            "sentiment": sentiment,
        }
        fingerprint = None
        if undated:
            # fallback dates change on every run
            fingerprint = {
                **content,
                "news": [
                    {key: value for key, value in item.items() if key != "published_at"}
                    if index in undated
                    else item
                    for index, item in enumerate(news)
                ],
            }
        return Extraction(
            content=content,
            metadata={
                "industry": industry,
                "trends_count": len(trends),
                "news_count": len(news),
                "overall_sentiment": sentiment["overall"],
            },
            coverage=coverage.ratio,
            missing_fields=coverage.missing,
            fingerprint=fingerprint,
        )

    @staticmethod
    def _extract_trends(soup: BeautifulSoup, selectors: dict[str, str]) -> list[dict[str, Any]]:
        trends: list[dict[str, Any]] = []
        for node in soup.select(selectors["trend"]):
            keyword = extraction.text(node, selectors["trend_keyword"])
            if not keyword:
                continue
            change = extraction.percentage(extraction.text(node, selectors["trend_change"]))
            trends.append(
                {
                    "keyword": keyword,
                    "search_volume": extraction.count(extraction.text(node, selectors["trend_volume"])),
                    "trend": classify_trend(change),
                    "change": change,
                    "related_keywords": [],
                }
            )
        return trends

    @staticmethod
    def _extract_news(
        soup: BeautifulSoup,
        selectors: dict[str, str],
        base_url: str,
    ) -> tuple[list[dict[str, Any]], set[int]]:
        """
        Articles on the page, plus the positions of those without a parseable date.
        """

        fallback_source = urlparse(base_url).hostname or ""
        fallback_date = datetime.now(timezone.utc).isoformat()
        news: list[dict[str, Any]] = []
        undated: set[int] = set()
        for node in soup.select(selectors["article"]):
            title = extraction.text(node, selectors["article_title"])
            summary = extraction.text(node, selectors["article_summary"])[:MAX_SUMMARY_LENGTH]
            if not title or not summary:
                continue

            link = extraction.attribute(node, selectors["article_link"], "href")
            published_at = extraction.parse_date_or_none(extraction.text(node, selectors["article_date"]))
            if published_at is None:
                undated.add(len(news))
            news.append(
                {
                    "title": title,
                    "summary": summary,
                    "sentiment": extraction.sentiment(f"{title} {summary}"),
                    "source": extraction.text(node, selectors["article_source"]) or fallback_source,
                    "url": extraction.absolute_url(link, base_url) or base_url,
                    "published_at": published_at or fallback_date,
                    "relevance_score": extraction.relevance(title, summary),
                }
            )
            if len(news) >= MAX_NEWS_ITEMS:
                break
        return news, undated
