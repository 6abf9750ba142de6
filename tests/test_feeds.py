"""Tests for feeds module."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp

from feeds import FetchTimeouts, SourceResult, fetch_payload, fetch_source, fetch_sources
from parsing import FeedParser
from tests.conftest import make_article, make_source

RSS = b"<rss><channel><item><title>Hello world</title><link>https://example.com/1</link></item></channel></rss>"


class FakeResponse:
    def __init__(self, status: int, body: bytes = b""):
        self.status = status
        self._body = body

    async def read(self) -> bytes:
        return self._body

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc) -> None:
        return None


def _session(response=None, error: Exception | None = None) -> MagicMock:
    session = MagicMock()
    if error is not None:
        session.get.side_effect = error
    else:
        session.get.return_value = response
    return session


class TestFetchTimeouts:
    def test_client_timeout(self) -> None:
        timeout = FetchTimeouts(request=15, total=30).client_timeout()
        assert timeout.total == 30
        assert timeout.sock_connect == 15
        assert timeout.sock_read == 15


class TestFetchPayload:
    def test_ok(self) -> None:
        session = _session(FakeResponse(200, RSS))
        assert asyncio.run(fetch_payload(session, make_source(), FetchTimeouts())) == RSS
        headers = session.get.call_args.kwargs["headers"]
        assert "Mozilla" in headers["User-Agent"]

    def test_non_200(self) -> None:
        for status in (404, 503):
            session = _session(FakeResponse(status, b"nope"))
            assert asyncio.run(fetch_payload(session, make_source(), FetchTimeouts())) is None

    def test_timeout(self) -> None:
        session = _session(error=asyncio.TimeoutError())
        assert asyncio.run(fetch_payload(session, make_source(), FetchTimeouts())) is None

    def test_client_error(self) -> None:
        session = _session(error=aiohttp.ClientConnectionError("refused"))
        assert asyncio.run(fetch_payload(session, make_source(), FetchTimeouts())) is None


class TestFetchSource:
    @patch("feeds.fetch_payload", new_callable=AsyncMock)
    def test_parses_payload(self, mock_payload) -> None:
        mock_payload.return_value = RSS
        result = asyncio.run(fetch_source(MagicMock(), make_source(), FeedParser(), FetchTimeouts()))
        assert result.ok
        assert [a.title for a in result.articles] == ["Hello world"]

    @patch("feeds.fetch_payload", new_callable=AsyncMock)
    def test_failed_fetch(self, mock_payload) -> None:
        mock_payload.return_value = None
        result = asyncio.run(fetch_source(MagicMock(), make_source(), FeedParser(), FetchTimeouts()))
        assert not result.ok
        assert result.articles == []


class TestFetchSources:
    def test_empty(self) -> None:
        assert asyncio.run(fetch_sources([], FeedParser())) == []

    @patch("feeds.fetch_source", new_callable=AsyncMock)
    def test_task_exception_isolated(self, mock_source) -> None:
        good = make_source("good")
        bad = make_source("bad")
        article = make_article("Fine story", good)

        async def fake(session, source, parser, timeouts):
            if source.id == "bad":
                raise RuntimeError("parser exploded")
            return SourceResult(source=source, articles=[article])

        mock_source.side_effect = fake
        results = asyncio.run(fetch_sources([bad, good], FeedParser()))

        assert [r.source.id for r in results] == ["bad", "good"]
        assert not results[0].ok
        assert "RuntimeError" in results[0].error
        assert results[1].articles == [article]
