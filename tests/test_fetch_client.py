from __future__ import annotations

import pytest
import requests

from app.scraping.errors import FetchFailure
from app.scraping.fetch import BROWSER_HEADERS, USER_AGENTS, FetchClient, FetchSettings

URL = "https://shop.example.com/catalog"


class SleepRecorder:
    def __init__(self) -> None:
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture()
def sleeper() -> SleepRecorder:
    return SleepRecorder()


# ---------------------------------------------------------------------------
# Successful fetches
# ---------------------------------------------------------------------------


class TestFetchSuccess:
    def test_parses_html_and_sends_browser_headers(self, make_session, sleeper) -> None:
        session = make_session(["<html><head><title>Catalog</title></head></html>"])
        client = FetchClient(FetchSettings(timeout_seconds=12.0), session=session, sleep=sleeper)

        soup = client.fetch_page(URL)

        assert soup.title.get_text() == "Catalog"
        assert len(session.calls) == 1
        call = session.calls[0]
        assert call["url"] == URL
        assert call["timeout"] == 12.0
        assert call["allow_redirects"] is True
        assert call["headers"]["User-Agent"] in USER_AGENTS
        for name, value in BROWSER_HEADERS.items():
            assert call["headers"][name] == value
        assert sleeper.calls == []

    def test_user_agent_is_stable_per_client(self, make_session, sleeper) -> None:
        session = make_session(["<html></html>"])
        client = FetchClient(session=session, sleep=sleeper)

        client.fetch_page(URL)
        client.fetch_page(URL)

        agents = {call["headers"]["User-Agent"] for call in session.calls}
        assert agents == {client.user_agent}

    def test_configured_user_agent_and_headers_win(self, make_session, sleeper) -> None:
        session = make_session(["<html></html>"])
        settings = FetchSettings(user_agent="intel-bot/1.0", headers={"Accept-Language": "de-DE"})
        client = FetchClient(settings, session=session, sleep=sleeper)

        client.fetch_page(URL)

        headers = session.calls[0]["headers"]
        assert headers["User-Agent"] == "intel-bot/1.0"
        assert headers["Accept-Language"] == "de-DE"


# ---------------------------------------------------------------------------
# Retries and backoff
# ---------------------------------------------------------------------------


class TestFetchRetries:
    def test_exactly_retries_attempts_then_failure(self, make_session, sleeper) -> None:
        session = make_session([500])
        client = FetchClient(FetchSettings(delay_seconds=1.0, retries=3), session=session, sleep=sleeper)

        with pytest.raises(FetchFailure) as exc_info:
            client.fetch_page(URL)

        assert len(session.calls) == 3
        assert exc_info.value.attempts == 3
        assert exc_info.value.url == URL
        assert "HTTP 500" in exc_info.value.message

    def test_linear_backoff_between_attempts(self, make_session, sleeper) -> None:
        session = make_session([503])
        client = FetchClient(FetchSettings(delay_seconds=1.5, retries=3), session=session, sleep=sleeper)

        with pytest.raises(FetchFailure):
            client.fetch_page(URL)

        assert sleeper.calls == [1.5, 3.0]

    def test_client_errors_are_retried_too(self, make_session, sleeper) -> None:
        session = make_session([404])
        client = FetchClient(FetchSettings(delay_seconds=0, retries=2), session=session, sleep=sleeper)

        with pytest.raises(FetchFailure):
            client.fetch_page(URL)

        assert len(session.calls) == 2
        assert sleeper.calls == []

    def test_transport_error_then_success(self, make_session, sleeper) -> None:
        session = make_session([requests.ConnectionError("reset"), "<html><p>ok</p></html>"])
        client = FetchClient(FetchSettings(delay_seconds=2.0, retries=3), session=session, sleep=sleeper)

        soup = client.fetch_page(URL)

        assert soup.p.get_text() == "ok"
        assert len(session.calls) == 2
        assert sleeper.calls == [2.0]

    def test_zero_retries_still_attempts_once(self, make_session, sleeper) -> None:
        session = make_session([500])
        client = FetchClient(FetchSettings(retries=0), session=session, sleep=sleeper)

        with pytest.raises(FetchFailure) as exc_info:
            client.fetch_page(URL)

        assert len(session.calls) == 1
        assert exc_info.value.attempts == 1

    def test_failed_attempts_are_logged(self, make_session, sleeper, caplog) -> None:
        session = make_session([500])
        client = FetchClient(FetchSettings(delay_seconds=0, retries=2), session=session, sleep=sleeper)

        with caplog.at_level("WARNING", logger="app.scraping.fetch"):
            with pytest.raises(FetchFailure):
                client.fetch_page(URL)

        events = [record.getMessage() for record in caplog.records if "fetch_attempt_failed" in record.getMessage()]
        assert len(events) == 2
