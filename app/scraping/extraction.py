"""
BeautifulSoup-based extraction primitives shared by all scrapers.

Every helper degrades to an empty value ("", 0, None, []) when a selector matches
nothing; callers record what was found with `CoverageTracker`.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

Scope = BeautifulSoup | Tag

CURRENCY_SYMBOLS = "$€£¥₹₨"
PRICE_REGEX = re.compile(
    rf"[{CURRENCY_SYMBOLS}]\s*(\d+(?:,\d{{3}})*(?:\.\d{{2}})?)"
    rf"|(\d+(?:,\d{{3}})*(?:\.\d{{2}})?)\s*[{CURRENCY_SYMBOLS}]"
)
COUNT_REGEX = re.compile(r"(\d+(?:\.\d+)?|\.\d+)\s*([kmb])?(?![a-z])", flags=re.IGNORECASE)
COUNT_MULTIPLIERS = {
    "k": Decimal(1_000),
    "m": Decimal(1_000_000),
    "b": Decimal(1_000_000_000),
}
PERCENT_REGEX = re.compile(r"([+-]?\d+(?:\.\d+)?)%")
HASHTAG_REGEX = re.compile(r"#([a-zA-Z0-9_]+)")
MENTION_REGEX = re.compile(r"@([a-zA-Z0-9_]+)")

POSITIVE_WORDS = (
    "growth",
    "increase",
    "opportunity",
    "success",
    "improve",
    "rising",
    "gain",
    "profit",
    "boost",
)
NEGATIVE_WORDS = (
    "decline",
    "decrease",
    "threat",
    "loss",
    "fall",
    "drop",
    "crisis",
    "risk",
    "concern",
)
MARKETING_KEYWORDS = (
    "marketing",
    "advertising",
    "campaign",
    "brand",
    "customer",
    "digital",
    "social media",
)

DATE_PATTERNS = [
    "%Y-%m-%d",
    "%B %d, %Y",
    "%b %d, %Y",
    "%d %B %Y",
    "%m/%d/%Y",
    "%d/%m/%Y",
]
DATE_TOKEN_REGEX = re.compile(
    r"\b(?:\d{4}-\d{2}-\d{2}|\d{1,2}/\d{1,2}/\d{4}|"
    r"(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*\s+\d{1,2},\s+\d{4})\b",
    flags=re.IGNORECASE,
)


def clean_text(value: str) -> str:
    return re.sub(r"\s+", " ", value).strip()


# ---------------------------------------------------------------------------
# Document queries
# ---------------------------------------------------------------------------


def text(scope: Scope, selector: str) -> str:
    """
    Text of the first element matching `selector` that has any text.
    """

    if not selector:
        return ""
    for node in scope.select(selector):
        value = clean_text(node.get_text(" ", strip=True))
        if value:
            return value
    return ""


def attribute(scope: Scope, selector: str, name: str) -> str:
    """
    Value of attribute `name` on the first matching element carrying it.
    """

    if not selector:
        return ""
    for node in scope.select(selector):
        value = node.get(name)
        if isinstance(value, list):
            value = " ".join(value)
        if value:
            return str(value).strip()
    return ""


def multiple_text(scope: Scope, selector: str) -> list[str]:
    if not selector:
        return []
    results: list[str] = []
    for node in scope.select(selector):
        value = clean_text(node.get_text(" ", strip=True))
        if value:
            results.append(value)
    return results


def absolute_url(value: str, base_url: str) -> str:
    if not value:
        return ""
    return urljoin(base_url, value)


# ---------------------------------------------------------------------------
# Value parsers
# ---------------------------------------------------------------------------


def price(value: str | None) -> float | None:
    """
    Parse the first currency-adjacent number, e.g. "$1,299.99" or "45 €".
    """

    if not value:
        return None
    match = PRICE_REGEX.search(value)
    if match is None:
        return None
    number = (match.group(1) or match.group(2)).replace(",", "")
    return float(number)


def count(value: str | None) -> int:
    """
    Parse abbreviated magnitudes: "1.2K" -> 1200, "3M" -> 3000000, "" -> 0.

    The K/M/B suffix only applies when it directly follows the number, so words
    such as "comments" do not inflate the value.
    """

    if not value:
        return 0
    match = COUNT_REGEX.search(value.replace(",", ""))
    if match is None:
        return 0
    try:
        number = Decimal(match.group(1))
    except InvalidOperation:
        return 0
    suffix = (match.group(2) or "").lower()
    if suffix:
        number *= COUNT_MULTIPLIERS[suffix]
    return int(number)


def percentage(value: str | None) -> float:
    if not value:
        return 0.0
    match = PERCENT_REGEX.search(value)
    return float(match.group(1)) if match else 0.0


def hashtags(value: str) -> list[str]:
    return HASHTAG_REGEX.findall(value or "")


def mentions(value: str) -> list[str]:
    return MENTION_REGEX.findall(value or "")


def sentiment(value: str) -> str:
    """
    Keyword-vote sentiment: "positive", "negative" or "neutral" on a tie.

    Counts how many distinct words of each fixed list appear in the text. This is
    a coarse heuristic, not a classifier.
    """

    lowered = (value or "").lower()
    positive = sum(1 for word in POSITIVE_WORDS if word in lowered)
    negative = sum(1 for word in NEGATIVE_WORDS if word in lowered)
    if positive > negative:
        return "positive"
    if negative > positive:
        return "negative"
    return "neutral"


def relevance(title: str, summary: str) -> float:
    """
    Share of marketing keywords present in title + summary, scaled to 0-100.
    """

    lowered = f"{title} {summary}".lower()
    hits = sum(1 for keyword in MARKETING_KEYWORDS if keyword in lowered)
    return min(hits / len(MARKETING_KEYWORDS), 1.0) * 100


def parse_date(value: str | None, default: datetime | None = None) -> str:
    """
    Best-effort date parse to an ISO-8601 UTC string; `default` (or now) on failure.
    """

    parsed = parse_date_or_none(value)
    if parsed is not None:
        return parsed
    fallback = default or datetime.now(timezone.utc)
    if fallback.tzinfo is None:
        fallback = fallback.replace(tzinfo=timezone.utc)
    return fallback.isoformat()


def parse_date_or_none(value: str | None) -> str | None:
    compact = clean_text(value or "")
    parsed = _parse_date_value(compact) if compact else None
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.isoformat()


def _parse_date_value(compact: str) -> datetime | None:
    try:
        return datetime.fromisoformat(compact.replace("Z", "+00:00"))
    except ValueError:
        pass

    for pattern in DATE_PATTERNS:
        try:
            return datetime.strptime(compact, pattern)
        except ValueError:
            continue

    for token in DATE_TOKEN_REGEX.findall(compact):
        for pattern in DATE_PATTERNS:
            try:
                return datetime.strptime(token, pattern)
            except ValueError:
                continue
    return None


# ---------------------------------------------------------------------------
# Coverage
# ---------------------------------------------------------------------------


class CoverageTracker:
    """
    Counts how many expected fields produced a value during one extraction.
    """

    def __init__(self, expected_fields: Iterable[str] = ()) -> None:
        self._populated: dict[str, int] = {name: 0 for name in expected_fields}
        self._observed: dict[str, int] = {name: 0 for name in self._populated}

    def observe(self, field_name: str, value: Any) -> None:
        self._observed[field_name] = self._observed.get(field_name, 0) + 1
        self._populated.setdefault(field_name, 0)
        if value not in ("", None) and value != [] and value != {}:
            self._populated[field_name] += 1

    @property
    def ratio(self) -> float:
        total = sum(self._observed.values())
        if total == 0:
            return 0.0
        return round(sum(self._populated.values()) / total, 4)

    @property
    def missing(self) -> list[str]:
        return sorted(name for name, hits in self._populated.items() if hits == 0)
