"""Tests for the HTTP transport, endpoint clients and retry policy."""

from unittest.mock import MagicMock

import pytest
import requests

from nfl_stats.clients import EspnClient, PfrClient
from nfl_stats.fetcher import BROWSER_HEADERS, MarkupFetcher
from nfl_stats.result import Err, FetchFailure, Malformed, Ok
from nfl_stats.retry import NO_RETRY, RetryPolicy


def _response(status=200, text="", reason="OK"):
    r = MagicMock()
    r.status_code = status
    r.text = text
    r.reason = reason
    return r


def _fetcher(*responses):
    session = MagicMock()
    session.get.side_effect = list(responses)
    return MarkupFetcher(timeout=3, session=session), session


class TestMarkupFetcher:
    def test_success_sends_browser_headers_and_timeout(self):
        fetcher, session = _fetcher(_response(text="<html></html>"))
        out = fetcher.fetch("https://example.test/page")
        assert isinstance(out, Ok)
        assert out.value.text == "<html></html>"
        _, kwargs = session.get.call_args
        assert kwargs["timeout"] == 3
        assert kwargs["headers"]["User-Agent"] == BROWSER_HEADERS["User-Agent"]

    def test_non_2xx_is_err_with_status(self):
        fetcher, _ = _fetcher(_response(status=404, reason="Not Found"))
        out = fetcher.fetch("https://example.test/missing")
        assert isinstance(out, Err)
        assert out.error.status == 404
        assert not out.error.retryable

    def test_network_error_is_err_without_status(self):
        fetcher, _ = _fetcher(requests.ConnectionError("boom"))
        out = fetcher.fetch("https://example.test/down")
        assert isinstance(out, Err)
        assert out.error.status is None
        assert out.error.retryable

    def test_timeout_is_network_failure(self):
        fetcher, _ = _fetcher(requests.Timeout("slow"))
        out = fetcher.fetch("https://example.test/slow")
        assert out.error.status is None


class TestFetchFailure:
    @pytest.mark.parametrize("status, retryable", [(None, True), (500, True), (503, True), (429, True), (404, False), (403, False)])
    def test_retryable(self, status, retryable):
        assert FetchFailure(url="u", status=status).retryable is retryable


class TestClients:
    def test_espn_scoreboard_path_and_json(self):
        fetcher, session = _fetcher(_response(text='{"events": []}'))
        out = EspnClient(fetcher, "https://espn.test/nfl/").scoreboard(5, 2025)
        assert out == Ok({"events": []})
        url = session.get.call_args[0][0]
        assert url == "https://espn.test/nfl/scoreboard?seasontype=2&week=5&year=2025"

    def test_espn_bad_json_is_malformed(self):
        fetcher, _ = _fetcher(_response(text="<html>not json</html>"))
        out = EspnClient(fetcher, "https://espn.test").current_scoreboard()
        assert isinstance(out, Err)
        assert isinstance(out.error, Malformed)

    def test_pfr_team_page_uses_slug(self):
        fetcher, session = _fetcher(_response(text="<html/>"))
        out = PfrClient(fetcher, "https://pfr.test").team_page("sdg", 2025)
        assert out == Ok("<html/>")
        assert session.get.call_args[0][0] == "https://pfr.test/teams/sdg/2025.htm"

    def test_pfr_transport_error_passes_through(self):
        fetcher, _ = _fetcher(_response(status=502, reason="Bad Gateway"))
        out = PfrClient(fetcher, "https://pfr.test").season_schedule(2025)
        assert isinstance(out, Err)
        assert out.error.status == 502


class TestRetryPolicy:
    def _policy(self, sleeps, max_attempts=3):
        return RetryPolicy(max_attempts=max_attempts, base_delay=0.5, max_delay=5.0, sleep=sleeps.append, rand=lambda lo, hi: hi)

    def test_retries_retryable_errors_then_succeeds(self):
        sleeps = []
        outcomes = iter([Err(FetchFailure("u", 503)), Err(FetchFailure("u", None)), Ok("done")])
        out = self._policy(sleeps).run(lambda: next(outcomes))
        assert out == Ok("done")
        # exponential backoff: base * 2**attempt
        assert sleeps == [0.5, 1.0]

    def test_non_retryable_error_returns_immediately(self):
        sleeps = []
        calls = []

        def call():
            calls.append(1)
            return Err(FetchFailure("u", 404))

        out = self._policy(sleeps).run(call)
        assert out.error.status == 404
        assert len(calls) == 1
        assert sleeps == []

    def test_gives_up_after_max_attempts(self):
        sleeps = []
        calls = []

        def call():
            calls.append(1)
            return Err(FetchFailure("u", 500))

        out = self._policy(sleeps, max_attempts=3).run(call)
        assert isinstance(out, Err)
        assert len(calls) == 3

    def test_delay_is_capped(self):
        policy = RetryPolicy(base_delay=1.0, max_delay=2.0, rand=lambda lo, hi: hi)
        assert policy.delay_for(5) == 2.0

    def test_no_retry(self):
        calls = []

        def call():
            calls.append(1)
            return Err(FetchFailure("u", 503))

        NO_RETRY.run(call)
        assert len(calls) == 1
