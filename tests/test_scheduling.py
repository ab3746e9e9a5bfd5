from __future__ import annotations

from datetime import datetime, timezone

import pytest

from app.scraping.errors import InvalidJobConfiguration
from app.scraping.scheduling import (
    DAILY,
    MONTHLY,
    WEEKLY,
    YEARLY,
    calculate_next_run,
    normalize_frequency,
    validate_url,
)

NOW = datetime(2026, 10, 19, 15, 30, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Frequency normalization
# ---------------------------------------------------------------------------


class TestNormalizeFrequency:
    @pytest.mark.parametrize("cadence", [DAILY, WEEKLY, MONTHLY, YEARLY])
    def test_allowed_cadences_pass_through(self, cadence: str) -> None:
        normalized = normalize_frequency(cadence)

        assert normalized.cadence == cadence
        assert normalized.warning is None

    @pytest.mark.parametrize(("alias", "cadence"), [("daily", DAILY), ("Weekly", WEEKLY), ("MONTHLY", MONTHLY)])
    def test_named_aliases(self, alias: str, cadence: str) -> None:
        assert normalize_frequency(alias) == normalize_frequency(cadence)

    def test_whitespace_is_collapsed(self) -> None:
        assert normalize_frequency("  0  0 * *   0 ").cadence == WEEKLY

    @pytest.mark.parametrize("frequency", ["*/5 * * * *", "0 12 * * *", "", None, "hourly"])
    def test_unsupported_becomes_daily_with_warning(self, frequency: str | None) -> None:
        normalized = normalize_frequency(frequency)

        assert normalized.cadence == DAILY
        assert normalized.warning is not None
        assert "not supported" in normalized.warning

    def test_normalization_is_logged(self, caplog) -> None:
        with caplog.at_level("WARNING", logger="app.scraping.scheduling"):
            normalize_frequency("*/5 * * * *")

        assert any("frequency_normalized" in record.getMessage() for record in caplog.records)


# ---------------------------------------------------------------------------
# Next run
# ---------------------------------------------------------------------------


class TestCalculateNextRun:
    def test_daily(self) -> None:
        assert calculate_next_run(DAILY, NOW) == datetime(2026, 10, 20, 15, 30, tzinfo=timezone.utc)

    def test_weekly(self) -> None:
        assert calculate_next_run(WEEKLY, NOW) == datetime(2026, 10, 26, 15, 30, tzinfo=timezone.utc)

    def test_monthly_is_first_of_next_month(self) -> None:
        assert calculate_next_run(MONTHLY, NOW) == datetime(2026, 11, 1, tzinfo=timezone.utc)

    def test_monthly_rolls_over_december(self) -> None:
        december = datetime(2026, 12, 31, 23, 0, tzinfo=timezone.utc)
        assert calculate_next_run(MONTHLY, december) == datetime(2027, 1, 1, tzinfo=timezone.utc)

    def test_yearly_is_first_of_next_year(self) -> None:
        assert calculate_next_run(YEARLY, NOW) == datetime(2027, 1, 1, tzinfo=timezone.utc)

    def test_naive_now_is_treated_as_utc(self) -> None:
        naive = datetime(2026, 10, 19, 15, 30)
        assert calculate_next_run(DAILY, naive) == datetime(2026, 10, 20, 15, 30, tzinfo=timezone.utc)

    def test_defaults_to_current_time(self) -> None:
        before = datetime.now(timezone.utc)
        next_run = calculate_next_run(DAILY)

        assert next_run > before


# ---------------------------------------------------------------------------
# URL validation
# ---------------------------------------------------------------------------


class TestValidateUrl:
    def test_valid_urls_are_stripped(self) -> None:
        assert validate_url("  https://shop.example.com/list ") == "https://shop.example.com/list"
        assert validate_url("http://example.com") == "http://example.com"

    @pytest.mark.parametrize("url", ["", "example.com/page", "ftp://example.com/file", "https://", "javascript:alert(1)"])
    def test_invalid_urls(self, url: str) -> None:
        with pytest.raises(InvalidJobConfiguration):
            validate_url(url)
