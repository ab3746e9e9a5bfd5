"""
Social media profile scraper: audience size, recent posts and engagement.
"""

from __future__ import annotations

from collections import Counter
from typing import Any
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from app.scraping import extraction
from app.scraping.base import ScraperBase
from app.scraping.types import Extraction

MAX_POSTS = 10
MAX_POST_CONTENT_LENGTH = 200
MAX_TOP_HASHTAGS = 10

PLATFORM_DOMAINS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("instagram", ("instagram.com",)),
    ("facebook", ("facebook.com",)),
    ("twitter", ("twitter.com", "x.com")),
    ("linkedin", ("linkedin.com",)),
    ("tiktok", ("tiktok.com",)),
    ("youtube", ("youtube.com",)),
)

GENERIC_SELECTORS: dict[str, str] = {
    "followers": "[data-followers], .followers, .follower-count",
    "following": "[data-following], .following, .following-count",
    "posts": ".post, .update, .tweet, article",
    "post_content": ".content, .text, .caption",
    "post_likes": ".likes, .like-count, [data-likes]",
    "post_comments": ".comments, .comment-count, [data-comments]",
    "post_time": "time",
}

PLATFORM_SELECTORS: dict[str, dict[str, str]] = {
    "instagram": {
        "followers": 'a[href*="/followers/"] span, meta[property="og:description"]',
        "following": 'a[href*="/following/"] span',
        "posts": "article",
        "post_content": "article div div div div span",
        "post_likes": "section button span",
        "post_comments": "section a span",
        "post_time": "time",
    },
    "twitter": {
        "followers": 'a[href*="/followers"] span span',
        "following": 'a[href*="/following"] span span',
        "posts": 'div[data-testid="tweet"]',
        "post_content": 'div[data-testid="tweetText"]',
        "post_likes": 'div[data-testid="like"] span',
        "post_comments": 'div[data-testid="reply"] span',
        "post_time": "time",
    },
    "linkedin": {
        "followers": ".pv-recent-activity-top-card__follower-count",
        "following": ".pv-recent-activity-top-card__following-count",
        "posts": ".feed-shared-update-v2",
        "post_content": ".feed-shared-text span span",
        "post_likes": ".social-counts-reactions__count",
        "post_comments": ".social-counts-comments__count",
        "post_time": "time",
    },
}


def detect_platform(url: str) -> str:
    host = (urlparse(url).hostname or "").lower()
    for platform, domains in PLATFORM_DOMAINS:
        for domain in domains:
            if host == domain or host.endswith(f".{domain}"):
                return platform
    return "unknown"


def top_hashtags(tags: list[str], limit: int = MAX_TOP_HASHTAGS) -> list[str]:
    """
    Most frequent hashtags first; ties keep first-seen order.
    """

    return [tag for tag, _ in Counter(tags).most_common(limit)]


class SocialMediaScraper(ScraperBase):
    """
    Extracts follower counts and engagement from a public profile page.
    """

    scrape_type = "social_media_metrics"
    DEFAULT_DELAY_SECONDS = 3.0
    DEFAULT_RETRIES = 2
    DEFAULT_SELECTORS = GENERIC_SELECTORS

    def extract(self, *, soup: BeautifulSoup, url: str) -> Extraction:
        platform = detect_platform(url)
        selectors = self.selectors_for(PLATFORM_SELECTORS.get(platform, GENERIC_SELECTORS))
        coverage = extraction.CoverageTracker(("followers", "following", "posts"))

        followers_text = self._count_text(soup, selectors["followers"])
        following_text = self._count_text(soup, selectors["following"])
        coverage.observe("followers", followers_text)
        coverage.observe("following", following_text)

        followers = extraction.count(followers_text)
        following = extraction.count(following_text)

        recent_posts = self._extract_posts(soup, selectors=selectors, coverage=coverage)
        coverage.observe("posts", recent_posts)

        total_likes = sum(post["likes"] for post in recent_posts)
        total_comments = sum(post["comments"] for post in recent_posts)
        total_shares = sum(post["shares"] for post in recent_posts)
        total_engagement = total_likes + total_comments + total_shares
        average_engagement = total_engagement / len(recent_posts) if recent_posts else 0.0
        engagement_rate = (average_engagement / followers) * 100 if followers > 0 else 0.0

        content = {
            "platform": platform,
            "followers": followers,
            "following": following,
            "posts": len(recent_posts),
            "engagement": {
                "likes": total_likes,
                "comments": total_comments,
                "shares": total_shares,
                "views": 0,
            },
            "recent_posts": recent_posts,
            "top_hashtags": top_hashtags(
                [tag for post in recent_posts for tag in post["hashtags"]]
            ),
            "average_engagement": average_engagement,
            "engagement_rate": engagement_rate,
        }
        return Extraction(
            content=content,
            metadata={
                "platform": platform,
                "followers": followers,
                "engagement_rate": engagement_rate,
            },
            coverage=coverage.ratio,
            missing_fields=coverage.missing,
        )

    @staticmethod
    def _count_text(soup: BeautifulSoup, selector: str) -> str:
        # og:description carries "12K Followers, ..." on some profile pages.
        value = extraction.text(soup, selector)
        if value:
            return value
        return extraction.attribute(soup, selector, "content")

    @staticmethod
    def _extract_posts(
        soup: BeautifulSoup,
        *,
        selectors: dict[str, str],
        coverage: extraction.CoverageTracker,
    ) -> list[dict[str, Any]]:
        posts: list[dict[str, Any]] = []
        for index, node in enumerate(soup.select(selectors["posts"])[:MAX_POSTS]):
            content = extraction.text(node, selectors["post_content"])
            likes_text = extraction.text(node, selectors["post_likes"])
            comments_text = extraction.text(node, selectors["post_comments"])
            coverage.observe("post_content", content)
            coverage.observe("post_likes", likes_text)
            coverage.observe("post_comments", comments_text)

            timestamp = extraction.attribute(node, selectors.get("post_time", ""), "datetime")
            posts.append(
                {
                    "id": f"post_{index}",
                    "content": content[:MAX_POST_CONTENT_LENGTH],
                    "likes": extraction.count(likes_text),
                    "comments": extraction.count(comments_text),
                    "shares": 0,
                    "hashtags": extraction.hashtags(content),
                    "mentions": extraction.mentions(content),
                    "timestamp": timestamp or None,
                }
            )
        return posts
