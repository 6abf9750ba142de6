"""Async feed fetching.

This module handles concurrent fetching of feed payloads, one task per
configured source. Parsing is delegated to a Parser (see parsing.py) so
each task returns a ready list of articles.

Features:
    - Concurrent fetching with connection pooling
    - SSL certificate handling with fallback
    - Per-request and total timeouts
    - Graceful error handling per source

Error Handling Strategy:
    - Individual source failures don't affect other sources
    - SSL errors trigger a retry without verification
    - Non-200 responses, timeouts and client errors yield an empty result
    - Failures are logged at WARNING with the source ID
"""

import asyncio
import logging
import ssl
from dataclasses import dataclass, field
from datetime import datetime, timezone

import aiohttp
import certifi

from models.article import Article, Source
from parsing import Parser

logger = logging.getLogger(__name__)

# Browser-like User-Agent to avoid being blocked by some servers
USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)

ACCEPT = "application/rss+xml, application/atom+xml, application/xml;q=0.9, text/xml;q=0.8, */*;q=0.5"


@dataclass(frozen=True)
class FetchTimeouts:
    """Timeouts for one feed request.

    Attributes:
        request: Connect and socket-read timeout in seconds
        total: Whole request timeout in seconds
    """
    request: float = 15.0
    total: float = 30.0

    def client_timeout(self) -> aiohttp.ClientTimeout:
        return aiohttp.ClientTimeout(
            total=self.total,
            sock_connect=self.request,
            sock_read=self.request,
        )


@dataclass
class SourceResult:
    """Outcome of fetching and parsing one source."""
    source: Source
    articles: list[Article] = field(default_factory=list)
    ok: bool = True
    error: str = ""


def _ssl_context(verify: bool = True) -> ssl.SSLContext:
    """Create SSL context with optional certificate verification.

    Args:
        verify: If True, verify SSL certificates using certifi bundle.
                If False, disable verification (for problematic servers).
    """
    if verify:
        return ssl.create_default_context(cafile=certifi.where())
    # Fallback: disable verification for servers with cert issues
    ctx = ssl.create_default_context()
    ctx.check_hostname = False
    ctx.verify_mode = ssl.CERT_NONE
    return ctx


async def fetch_payload(
    session: aiohttp.ClientSession,
    source: Source,
    timeouts: FetchTimeouts,
    verify_ssl: bool = True,
) -> bytes | None:
    """Fetch a source's raw feed body with SSL fallback.

    On SSL certificate errors, automatically retries without verification.

    Returns:
        Raw response body, or None on any error
    """
    url = source.feed_url
    try:
        async with session.get(
            url,
            timeout=timeouts.client_timeout(),
            headers={"User-Agent": USER_AGENT, "Accept": ACCEPT},
            ssl=_ssl_context(verify_ssl),
        ) as resp:
            if resp.status != 200:
                if resp.status >= 500:
                    logger.warning("Feed %s: server error HTTP %d", source.id, resp.status)
                else:
                    logger.warning("Feed %s: HTTP %d", source.id, resp.status)
                return None
            return await resp.read()
    except aiohttp.ClientSSLError as e:
        # Retry without SSL verification on certificate errors
        if verify_ssl:
            logger.debug("Feed %s: SSL error, retrying without verification", source.id)
            return await fetch_payload(session, source, timeouts, verify_ssl=False)
        logger.warning("Feed %s: SSL verification failed after retry: %s", source.id, e)
        return None
    except asyncio.TimeoutError:
        logger.warning("Feed %s: request timed out after %.0fs", source.id, timeouts.total)
        return None
    except aiohttp.ClientError as e:
        logger.warning("Feed %s: %s: %s", source.id, type(e).__name__, e)
        return None


async def fetch_source(
    session: aiohttp.ClientSession,
    source: Source,
    parser: Parser,
    timeouts: FetchTimeouts,
) -> SourceResult:
    """Fetch and parse a single source.

    The returned result is local to this task; no shared state is touched.
    """
    payload = await fetch_payload(session, source, timeouts)
    if payload is None:
        return SourceResult(source=source, ok=False, error="fetch failed")

    articles = parser.parse(payload, source, fetched_at=datetime.now(timezone.utc))
    logger.debug("Feed %s: %d articles", source.id, len(articles))
    return SourceResult(source=source, articles=articles)


async def fetch_sources(
    sources: list[Source],
    parser: Parser,
    timeouts: FetchTimeouts = FetchTimeouts(),
    max_connections: int = 10,
) -> list[SourceResult]:
    """Fetch and parse all sources concurrently.

    One task per source. A task that raises is converted into a failed
    SourceResult; it never cancels or affects its siblings.

    Args:
        sources: Sources to fetch
        parser: Parser applied to each payload
        timeouts: Per-request and total timeouts
        max_connections: Maximum concurrent TCP connections

    Returns:
        One SourceResult per source, in the order of ``sources``
    """
    if not sources:
        return []

    connector = aiohttp.TCPConnector(limit=max_connections)

    async with aiohttp.ClientSession(connector=connector) as session:
        tasks = [fetch_source(session, source, parser, timeouts) for source in sources]
        results = await asyncio.gather(*tasks, return_exceptions=True)

    outcomes = []
    for source, result in zip(sources, results):
        if isinstance(result, BaseException):
            if isinstance(result, asyncio.CancelledError):
                raise result
            logger.warning("Feed error %s: %s (%s)", source.id, result, type(result).__name__)
            outcomes.append(SourceResult(source=source, ok=False, error=f"{type(result).__name__}: {result}"))
        else:
            outcomes.append(result)

    ok = sum(1 for r in outcomes if r.ok)
    logger.info(
        "Feeds fetched | sources=%d ok=%d failed=%d articles=%d",
        len(sources), ok, len(sources) - ok, sum(len(r.articles) for r in outcomes),
    )
    return outcomes
