"""
Scraper class registry and factory keyed by job type.
"""

from __future__ import annotations

import importlib
from collections.abc import Callable, Mapping
from typing import Any

import requests

from app.config import ScraperSettings
from app.scraping.base import ScraperBase
from app.scraping.errors import InvalidJobConfiguration, ScraperTypeUnregistered
from app.scraping.fetch import FetchClient, FetchSettings
from app.scraping.scrapers import CompetitorScraper, MarketIntelligenceScraper, SocialMediaScraper
from app.scraping.types import ScraperType


class ScraperRegistry:
    """
    Maps each ScraperType to the scraper class that handles it.

    Adding a source means adding one ScraperBase subclass and one registration.
    Every scraper built here shares one requests.Session, owned by the registry
    unless the caller injects its own.
    """

    def __init__(
        self,
        registrations: Mapping[str, type[ScraperBase]] | None = None,
        *,
        settings: ScraperSettings | None = None,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] | None = None,
    ) -> None:
        builtins: dict[str, type[ScraperBase]] = {
            ScraperType.COMPETITOR_PRICING: CompetitorScraper,
            ScraperType.COMPETITOR_PRODUCTS: CompetitorScraper,
            ScraperType.SOCIAL_MEDIA_METRICS: SocialMediaScraper,
            ScraperType.MARKET_TRENDS: MarketIntelligenceScraper,
            ScraperType.NEWS_SENTIMENT: MarketIntelligenceScraper,
            ScraperType.INDUSTRY_REPORTS: MarketIntelligenceScraper,
        }
        if registrations:
            builtins.update(registrations)
        self._registrations = builtins
        self._settings = settings or ScraperSettings()
        self._owns_session = session is None
        self._session = session or requests.Session()
        self._sleep = sleep

    def register(self, *, scraper_type: str, scraper_class: type[ScraperBase] | str) -> None:
        if isinstance(scraper_class, str):
            scraper_class = self._load_dynamic_class(scraper_class)
        self._registrations[scraper_type.strip().upper()] = scraper_class

    def is_registered(self, scraper_type: str) -> bool:
        return scraper_type in self._registrations

    @property
    def registered_types(self) -> list[str]:
        return sorted(self._registrations)

    def close(self) -> None:
        if self._owns_session:
            self._session.close()

    def resolve(self, scraper_type: str) -> type[ScraperBase]:
        resolved = self._registrations.get(scraper_type)
        if resolved is None:
            raise ScraperTypeUnregistered(scraper_type)
        return resolved

    def create_scraper(
        self,
        scraper_type: str,
        options: Mapping[str, Any] | None = None,
    ) -> ScraperBase:
        """
        Build a scraper for `scraper_type`, applying job-level options.

        Recognised options: delay (ms), retries, timeout (ms), user_agent, headers,
        selectors. Unknown keys are ignored.
        """

        scraper_class, fetch_settings, selectors = self._prepare(scraper_type, options)
        client_kwargs: dict[str, Any] = {"session": self._session}
        if self._sleep is not None:
            client_kwargs["sleep"] = self._sleep
        return scraper_class(
            fetch_client=FetchClient(fetch_settings, **client_kwargs),
            selectors=selectors,
        )

    def validate_options(self, scraper_type: str, options: Mapping[str, Any] | None = None) -> None:
        """
        Check job-level options without building a fetch client.
        """

        self._prepare(scraper_type, options)

    def _prepare(
        self,
        scraper_type: str,
        options: Mapping[str, Any] | None,
    ) -> tuple[type[ScraperBase], FetchSettings, dict[str, str]]:
        scraper_class = self.resolve(scraper_type)
        options = options or {}
        return (
            scraper_class,
            self._fetch_settings(scraper_class, options),
            _string_mapping(options.get("selectors"), "selectors"),
        )

    def _fetch_settings(
        self,
        scraper_class: type[ScraperBase],
        options: Mapping[str, Any],
    ) -> FetchSettings:
        delay_seconds = scraper_class.DEFAULT_DELAY_SECONDS
        if options.get("delay") is not None:
            delay_seconds = _non_negative_number(options["delay"], "delay") / 1000

        retries = scraper_class.DEFAULT_RETRIES
        if options.get("retries") is not None:
            retries = max(1, int(_non_negative_number(options["retries"], "retries")))

        timeout_seconds = self._settings.timeout_seconds
        if options.get("timeout") is not None:
            timeout_seconds = max(1.0, _non_negative_number(options["timeout"], "timeout") / 1000)

        user_agent = options.get("user_agent") or self._settings.user_agent
        return FetchSettings(
            user_agent=str(user_agent) if user_agent else None,
            delay_seconds=delay_seconds,
            retries=retries,
            timeout_seconds=timeout_seconds,
            headers=_string_mapping(options.get("headers"), "headers"),
        )

    @staticmethod
    def _load_dynamic_class(path: str) -> type[ScraperBase]:
        if ":" not in path:
            raise ValueError(f"Invalid scraper_class '{path}'. Use 'module.path:ClassName'.")

        module_path, class_name = path.split(":", 1)
        module = importlib.import_module(module_path)
        loaded = getattr(module, class_name, None)
        if loaded is None:
            raise ValueError(f"Unable to resolve scraper class '{path}'.")
        if not isinstance(loaded, type) or not issubclass(loaded, ScraperBase):
            raise ValueError(f"Class '{path}' must inherit from ScraperBase.")
        return loaded


def _non_negative_number(value: Any, name: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidJobConfiguration(f"Option '{name}' must be a number, got {value!r}.") from exc
    if number < 0:
        raise InvalidJobConfiguration(f"Option '{name}' must not be negative.")
    return number


def _string_mapping(value: Any, name: str) -> dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise InvalidJobConfiguration(f"Option '{name}' must be an object of strings.")
    return {
        str(key): str(item)
        for key, item in value.items()
        if isinstance(key, str) and key.strip() and item is not None and str(item).strip()
    }
