from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import pytest
import requests
from bs4 import BeautifulSoup
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import db.models  # noqa: F401 - registers the scraper tables on Base.metadata
from db.base import Base

COMPETITOR_HTML = """
<html>
  <head><title>Acme Store</title></head>
  <body>
    <div class="product">
      <h3 class="product-title">Widget A</h3>
      <span class="price">$10.00</span>
      <a href="/widgets/a">View</a>
    </div>
    <div class="product">
      <h3 class="product-title">Widget B</h3>
      <span class="price">$20.00</span>
    </div>
    <div class="product">
      <h3 class="product-title">Widget C</h3>
      <span class="price">$30.00</span>
    </div>
  </body>
</html>
"""


class FakeResponse:
    def __init__(self, status_code: int = 200, text: str = "", reason: str = "") -> None:
        self.status_code = status_code
        self.text = text
        self.reason = reason or ("OK" if status_code < 400 else "Error")


class FakeSession:
    """
    Stand-in for requests.Session that replays canned outcomes.

    Each outcome is an HTML string (200), an int status code or an exception
    to raise. The last outcome of a sequence repeats once the others are used.
    """

    def __init__(self, outcomes: list[Any] | None = None, routes: dict[str, list[Any]] | None = None) -> None:
        self._default = list(outcomes or [])
        self._routes = {url: list(items) for url, items in (routes or {}).items()}
        self.calls: list[dict[str, Any]] = []

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append({"url": url, **kwargs})
        queue = self._routes.get(url, self._default)
        if not queue:
            raise requests.ConnectionError(f"no canned response for {url}")
        outcome = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, int):
            return FakeResponse(status_code=outcome)
        return FakeResponse(text=outcome)


class StaticFetchClient:
    def __init__(self, html: str) -> None:
        self.html = html
        self.urls: list[str] = []

    def fetch_page(self, url: str) -> BeautifulSoup:
        self.urls.append(url)
        return BeautifulSoup(self.html, "html.parser")


# ---------------------------------------------------------------------------
# Fetch doubles
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_session():
    return FakeSession


@pytest.fixture()
def static_client():
    return StaticFetchClient


@pytest.fixture()
def competitor_html() -> str:
    return COMPETITOR_HTML


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest.fixture()
def engine() -> Iterator[Engine]:
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(test_engine)
    try:
        yield test_engine
    finally:
        Base.metadata.drop_all(test_engine)
        test_engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    session = factory()
    try:
        yield session
    finally:
        session.close()
