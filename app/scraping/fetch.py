"""
HTTP fetch client with linear backoff and user-agent rotation.
"""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

import requests
from bs4 import BeautifulSoup

from app.scraping.errors import FetchFailure
from app.scraping.logging_utils import log_event

logger = logging.getLogger(__name__)

USER_AGENTS: tuple[str, ...] = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36",
)

BROWSER_HEADERS: dict[str, str] = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Accept-Encoding": "gzip, deflate",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
}


@dataclass(frozen=True)
class FetchSettings:
    """
    Per-client fetch behaviour.
    """

    user_agent: str | None = None
    delay_seconds: float = 1.0
    retries: int = 3
    timeout_seconds: float = 30.0
    headers: Mapping[str, str] = field(default_factory=dict)


class FetchClient:
    """
    Fetches a page and parses it into a BeautifulSoup document.

    Every status >= 400 counts as a failed attempt. Before attempt n (n > 1) the
    client sleeps `delay_seconds * (n - 1)`; after `retries` failed attempts a
    FetchFailure carrying the last error is raised.
    """

    def __init__(
        self,
        settings: FetchSettings | None = None,
        *,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.settings = settings or FetchSettings()
        self._session = session or requests.Session()
        self._sleep = sleep
        self.user_agent = self.settings.user_agent or random.choice(USER_AGENTS)

    @property
    def request_headers(self) -> dict[str, str]:
        return {
            "User-Agent": self.user_agent,
            **BROWSER_HEADERS,
            **dict(self.settings.headers),
        }

    def fetch_page(self, url: str) -> BeautifulSoup:
        max_attempts = max(1, self.settings.retries)
        last_error = "unknown error"

        for attempt in range(1, max_attempts + 1):
            if attempt > 1 and self.settings.delay_seconds > 0:
                self._sleep(self.settings.delay_seconds * (attempt - 1))

            try:
                response = self._session.get(
                    url,
                    headers=self.request_headers,
                    timeout=self.settings.timeout_seconds,
                    allow_redirects=True,
                )
                if response.status_code >= 400:
                    raise requests.HTTPError(
                        f"HTTP {response.status_code}: {response.reason or ''}".strip(),
                        response=response,
                    )
                return BeautifulSoup(response.text, "html.parser")
            except requests.RequestException as exc:
                last_error = str(exc)
                log_event(
                    logger,
                    logging.WARNING,
                    "fetch_attempt_failed",
                    url=url,
                    attempt=attempt,
                    max_attempts=max_attempts,
                    error=last_error,
                )

        raise FetchFailure(url=url, message=last_error, attempts=max_attempts)
