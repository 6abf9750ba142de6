"""News aggregation: fetch, merge, filter and store.

NewsAggregator owns the article store. A refresh runs one fetch task per
source; every task returns its own article list and nothing shared is
touched until all tasks have finished. A single merge step then builds
the new snapshot and replaces the store in one assignment.

Merge Steps:
    1. Concatenate per-source results (in source order)
    2. Drop duplicate article IDs (first occurrence wins)
    3. Remove advertisements
    4. Assign quality scores
    5. Sort: breaking first, then newest first (stable)

Listeners registered with subscribe() receive the new snapshot after
every store replacement.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone

from errors import NoArticlesError
from feeds import FetchTimeouts, SourceResult, fetch_sources
from filters import ContentClassifier
from models.article import Article, NewsCategory, Source
from parsing import FeedParser, Parser

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[tuple[Article, ...]], None]


def sort_key(article: Article) -> tuple[bool, float]:
    """Breaking articles first, then newest first."""
    return (not article.is_breaking, -article.published.timestamp())


@dataclass
class FetchReport:
    """Outcome of one refresh.

    Attributes:
        succeeded: IDs of sources whose feed was fetched
        failed: IDs of sources that produced no payload
        fetched: Articles parsed before dedup and filtering
        duplicates: Articles dropped as duplicate IDs
        filtered: Articles dropped as advertisements
        stored: Articles in the resulting snapshot (or category slice)
    """

    succeeded: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    fetched: int = 0
    duplicates: int = 0
    filtered: int = 0
    stored: int = 0
    finished_at: datetime | None = None


class NewsAggregator:
    """Concurrent multi-source aggregator with an in-memory store.

    Example:
        >>> aggregator = NewsAggregator(DEFAULT_SOURCES)
        >>> articles = asyncio.run(aggregator.fetch_all())
        >>> aggregator.top(5)
    """

    def __init__(
        self,
        sources: Iterable[Source],
        parser: Parser | None = None,
        classifier: ContentClassifier | None = None,
        timeouts: FetchTimeouts = FetchTimeouts(),
        max_connections: int = 10,
    ):
        self.sources = list(sources)
        self.parser = parser or FeedParser()
        self.classifier = classifier or ContentClassifier()
        self.timeouts = timeouts
        self.max_connections = max_connections

        self._articles: tuple[Article, ...] = ()
        self._listeners: list[SnapshotListener] = []
        self.last_refresh: datetime | None = None
        self.last_report: FetchReport | None = None

    # --- Refresh ---

    async def fetch_all(self, sources: Iterable[Source] | None = None) -> list[Article]:
        """Refresh the whole store from all (or the given) sources.

        Partial failure is not an error: failed sources are reported in
        ``last_report`` and the rest are stored.

        Raises:
            NoArticlesError: If no source produced any article. The store
                is cleared first.
        """
        sources = self.sources if sources is None else list(sources)
        results = await self._fetch(sources)
        report = self._report(results)

        merged = [a for r in results for a in r.articles]
        if not merged:
            self._commit((), report)
            logger.error("No articles | sources=%d failed=%d", len(sources), len(report.failed))
            raise NoArticlesError(len(sources))

        snapshot = self._prepare(merged, report)
        self._commit(tuple(snapshot), report)
        logger.info(
            "Store refreshed | sources=%d ok=%d articles=%d duplicates=%d ads=%d",
            len(sources), len(report.succeeded), report.stored, report.duplicates, report.filtered,
        )
        return snapshot

    async def fetch_category(self, category: NewsCategory) -> list[Article]:
        """Refresh only the sources of one category.

        The category's slice of the store is replaced; articles of other
        categories are kept, and the whole store is re-sorted.

        Returns:
            The new articles of that category
        """
        sources = [s for s in self.sources if s.category == category]
        if not sources:
            logger.warning("No sources configured for category %s", category.value)
            return []

        results = await self._fetch(sources)
        report = self._report(results)
        fresh = self._prepare([a for r in results for a in r.articles], report)

        kept = [a for a in self._articles if a.category != category]
        seen = {a.id for a in kept}
        fresh = [a for a in fresh if a.id not in seen]
        self._commit(tuple(sorted(kept + fresh, key=sort_key)), report)

        logger.info("Category refreshed | category=%s sources=%d articles=%d", category.value, len(sources), len(fresh))
        return fresh

    async def _fetch(self, sources: list[Source]) -> list[SourceResult]:
        return await fetch_sources(sources, self.parser, self.timeouts, self.max_connections)

    def _report(self, results: list[SourceResult]) -> FetchReport:
        report = FetchReport()
        for result in results:
            (report.succeeded if result.ok else report.failed).append(result.source.id)
            report.fetched += len(result.articles)
        return report

    def _prepare(self, merged: list[Article], report: FetchReport) -> list[Article]:
        """Dedupe, filter, score and sort a merged article list."""
        unique: dict[str, Article] = {}
        for article in merged:
            unique.setdefault(article.id, article)
        report.duplicates = len(merged) - len(unique)

        kept = self.classifier.filter_articles(list(unique.values()))
        report.filtered = len(unique) - len(kept)

        scored = [
            a.model_copy(update={"quality_score": self.classifier.quality_score(a)})
            for a in kept
        ]
        scored.sort(key=sort_key)
        report.stored = len(scored)
        return scored

    def _commit(self, snapshot: tuple[Article, ...], report: FetchReport) -> None:
        self._articles = snapshot
        self.last_refresh = datetime.now(timezone.utc)
        report.finished_at = self.last_refresh
        self.last_report = report
        self._notify(snapshot)

    # --- Listeners ---

    def subscribe(self, callback: SnapshotListener) -> None:
        """Register a callback invoked with each new snapshot."""
        if callback not in self._listeners:
            self._listeners.append(callback)

    def unsubscribe(self, callback: SnapshotListener) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _notify(self, snapshot: tuple[Article, ...]) -> None:
        for callback in list(self._listeners):
            try:
                callback(snapshot)
            except Exception as e:
                logger.warning("Snapshot listener failed | listener=%r error=%s", callback, e, exc_info=True)

    # --- Views ---

    @property
    def articles(self) -> tuple[Article, ...]:
        """Current snapshot, breaking first then newest first."""
        return self._articles

    def by_category(self, category: NewsCategory) -> list[Article]:
        return [a for a in self._articles if a.category == category]

    def breaking(self) -> list[Article]:
        return [a for a in self._articles if a.is_breaking]

    def top(self, count: int = 10) -> list[Article]:
        return list(self._articles[:max(count, 0)])

    def recent(self, hours: float = 24, now: datetime | None = None) -> list[Article]:
        now = now or datetime.now(timezone.utc)
        return [a for a in self._articles if a.is_recent(hours, now)]

