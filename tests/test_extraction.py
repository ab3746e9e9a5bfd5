from __future__ import annotations

from datetime import datetime, timezone

import pytest
from bs4 import BeautifulSoup

from app.scraping import extraction

PAGE = """
<html>
  <body>
    <h2 class="headline"></h2>
    <h2 class="headline">  Quarterly
       results   </h2>
    <ul>
      <li class="tag">alpha</li>
      <li class="tag"> </li>
      <li class="tag">beta</li>
    </ul>
    <img class="logo">
    <img class="logo" src="/static/logo.png">
  </body>
</html>
"""


@pytest.fixture()
def soup() -> BeautifulSoup:
    return BeautifulSoup(PAGE, "html.parser")


# ---------------------------------------------------------------------------
# Document queries
# ---------------------------------------------------------------------------


class TestDocumentQueries:
    def test_text_returns_first_non_empty_match_collapsed(self, soup: BeautifulSoup) -> None:
        assert extraction.text(soup, ".headline") == "Quarterly results"

    def test_text_without_match_is_empty(self, soup: BeautifulSoup) -> None:
        assert extraction.text(soup, ".missing") == ""
        assert extraction.text(soup, "") == ""

    def test_attribute_skips_elements_without_it(self, soup: BeautifulSoup) -> None:
        assert extraction.attribute(soup, "img.logo", "src") == "/static/logo.png"
        assert extraction.attribute(soup, "img.logo", "alt") == ""

    def test_multiple_text_drops_blank_entries(self, soup: BeautifulSoup) -> None:
        assert extraction.multiple_text(soup, ".tag") == ["alpha", "beta"]

    def test_absolute_url_resolves_relative_links(self) -> None:
        assert extraction.absolute_url("/a/b", "https://shop.example.com/list") == "https://shop.example.com/a/b"
        assert extraction.absolute_url("", "https://shop.example.com/") == ""


# ---------------------------------------------------------------------------
# Value parsers
# ---------------------------------------------------------------------------


class TestPrice:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("$1,299.99", 1299.99),
            ("Now only $45", 45.0),
            ("45 €", 45.0),
            ("£9.50 incl. VAT", 9.5),
            ("₹ 2,500", 2500.0),
        ],
    )
    def test_currency_adjacent_numbers(self, raw: str, expected: float) -> None:
        assert extraction.price(raw) == expected

    @pytest.mark.parametrize("raw", ["", None, "free", "call for pricing 555"])
    def test_no_price(self, raw: str | None) -> None:
        assert extraction.price(raw) is None


class TestCount:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("1.2K", 1200),
            ("12.5K followers", 12500),
            ("3M", 3_000_000),
            ("2.5b", 2_500_000_000),
            ("1,234", 1234),
            ("45 comments", 45),
            ("987", 987),
        ],
    )
    def test_abbreviated_magnitudes(self, raw: str, expected: int) -> None:
        assert extraction.count(raw) == expected

    @pytest.mark.parametrize("raw", ["", None, "n/a", "likes"])
    def test_unparseable_is_zero(self, raw: str | None) -> None:
        assert extraction.count(raw) == 0


class TestTextSignals:
    def test_percentage_is_signed(self) -> None:
        assert extraction.percentage("+12%") == 12.0
        assert extraction.percentage("down -8.5% this week") == -8.5
        assert extraction.percentage("flat") == 0.0

    def test_hashtags_and_mentions_drop_sigils(self) -> None:
        post = "Launch day #launch #SaaS_2026 thanks @partner and @team_x"
        assert extraction.hashtags(post) == ["launch", "SaaS_2026"]
        assert extraction.mentions(post) == ["partner", "team_x"]

    def test_sentiment_votes_by_keyword_presence(self) -> None:
        assert extraction.sentiment("Strong growth and profit gain") == "positive"
        assert extraction.sentiment("Market decline deepens the crisis") == "negative"
        assert extraction.sentiment("growth amid decline") == "neutral"
        assert extraction.sentiment("") == "neutral"

    def test_relevance_scales_keyword_share(self) -> None:
        assert extraction.relevance("", "") == 0.0
        full = extraction.relevance(
            "Marketing and advertising campaign",
            "brand, customer, digital and social media",
        )
        assert full == 100.0
        assert extraction.relevance("Brand news", "") == pytest.approx(100 / 7)


class TestParseDate:
    @pytest.mark.parametrize(
        "raw",
        ["2026-10-01", "October 1, 2026", "Published Oct 1, 2026 by staff", "2026-10-01T00:00:00Z"],
    )
    def test_known_formats(self, raw: str) -> None:
        assert extraction.parse_date(raw) == "2026-10-01T00:00:00+00:00"

    def test_unparseable_uses_default(self) -> None:
        default = datetime(2020, 1, 1, tzinfo=timezone.utc)
        assert extraction.parse_date("yesterday-ish", default) == "2020-01-01T00:00:00+00:00"
        assert extraction.parse_date(None, default) == "2020-01-01T00:00:00+00:00"

    def test_or_none_has_no_fallback(self) -> None:
        assert extraction.parse_date_or_none("October 1, 2026") == "2026-10-01T00:00:00+00:00"
        assert extraction.parse_date_or_none("yesterday-ish") is None
        assert extraction.parse_date_or_none(None) is None


# ---------------------------------------------------------------------------
# Coverage
# ---------------------------------------------------------------------------


class TestCoverageTracker:
    def test_ratio_and_missing(self) -> None:
        tracker = extraction.CoverageTracker(("name", "price"))
        tracker.observe("name", "Widget")
        tracker.observe("price", None)

        assert tracker.ratio == 0.5
        assert tracker.missing == ["price"]

    def test_nothing_observed(self) -> None:
        tracker = extraction.CoverageTracker(("name",))

        assert tracker.ratio == 0.0
        assert tracker.missing == ["name"]

    def test_empty_collections_count_as_missing(self) -> None:
        tracker = extraction.CoverageTracker()
        tracker.observe("posts", [])
        tracker.observe("news", [{"title": "x"}])

        assert tracker.ratio == 0.5
        assert tracker.missing == ["posts"]
