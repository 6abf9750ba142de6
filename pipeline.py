"""Ingestion and synthesis pipeline.

This module wires the components into one refresh cycle:

Pipeline Flow:
    1. FETCH: Concurrently fetch and parse all configured feeds
    2. MERGE: Dedupe, drop ads, score quality, sort (NewsAggregator)
    3. CLUSTER: Group same-story coverage across sources
    4. TRENDS: Extract trending topics (rate limited)
    5. ALERTS: Match new articles against watched keywords
    6. NOTIFY: Deliver alert matches (webhook / JSONL)

Every stage after FETCH reads the immutable snapshot produced by the
merge; nothing runs concurrently with the fetch tasks.
"""

import asyncio
import logging
import time
import uuid
from dataclasses import asdict, dataclass, field
from typing import Any

from aggregator import NewsAggregator
from alerts import KeywordAlertMatcher, keyword_alerts
from clustering import ClusterEngine, ClusterSettings
from config import Config
from errors import NoArticlesError
from feeds import FetchTimeouts
from filters import ContentClassifier
from models.article import Article, NewsCategory
from models.cluster import StoryCluster
from models.trend import AlertMatch, KeywordAlert, TrendingTopic
from nlp.base import EntityExtractor, HeuristicEntityExtractor, SentimentScorer, TextEmbedder
from notifications import notify_matches
from observability.logging import clear_context, set_run_context
from observability.tracing import trace_operation
from parsing import create_parser
from sources import resolve_sources
from trending import TrendingTopicsEngine

logger = logging.getLogger(__name__)


@dataclass
class PipelineStats:
    """Statistics from a single pipeline run.

    Attributes:
        sources: Sources attempted
        sources_failed: Sources that produced no payload
        articles: Articles in the resulting snapshot
        duplicates: Articles dropped as duplicate IDs
        ads_filtered: Articles dropped as advertisements
        clusters: Multi-source clusters found
        trends: Trending topics reported
        alerts: Keywords with new matching articles
        notified: Successful alert notifications
        errors: Count of errors at any stage
        no_data: No source produced any article
        duration: Total run time in seconds
    """

    sources: int = 0
    sources_failed: int = 0
    articles: int = 0
    duplicates: int = 0
    ads_filtered: int = 0
    clusters: int = 0
    trends: int = 0
    alerts: int = 0
    notified: int = 0
    errors: int = 0
    no_data: bool = False
    duration: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        d = asdict(self)
        d["duration"] = round(d["duration"], 2)
        return d


@dataclass
class PipelineResult:
    """Outputs of one run. All lists are read-only snapshots."""

    articles: list[Article] = field(default_factory=list)
    clusters: list[StoryCluster] = field(default_factory=list)
    trends: list[TrendingTopic] = field(default_factory=list)
    matches: list[AlertMatch] = field(default_factory=list)
    stats: PipelineStats = field(default_factory=PipelineStats)


def build_entity_extractor(config: Config) -> EntityExtractor:
    if config.nlp_backend == "spacy":
        from nlp.entities import SpacyEntityExtractor
        return SpacyEntityExtractor(config.spacy_model)
    return HeuristicEntityExtractor()


def build_embedder(config: Config) -> TextEmbedder | None:
    """Embedder for clustering, or None when EMBEDDING_MODEL is empty."""
    if not config.embedding_model:
        return None
    from nlp.embeddings import SentenceEmbedder
    return SentenceEmbedder(config.embedding_model)


def build_sentiment(config: Config) -> SentimentScorer | None:
    if not config.sentiment_model:
        return None
    from nlp.sentiment import TransformerSentimentScorer
    return TransformerSentimentScorer(config.sentiment_model)


class Pipeline:
    """Refresh pipeline: aggregator, cluster engine, trends and alerts.

    Components are constructed once and reused across runs, so the trend
    rate limit and the alert "already seen" memory span the process.
    """

    def __init__(
        self,
        config: Config,
        aggregator: NewsAggregator | None = None,
        entities: EntityExtractor | None = None,
        embedder: TextEmbedder | None = None,
        sentiment: SentimentScorer | None = None,
        alerts: list[KeywordAlert] | None = None,
    ):
        """Initialize pipeline with all components.

        Args:
            config: Application configuration
            aggregator: Prebuilt aggregator (default: from config sources)
            entities: Entity extractor (default: per NLP_BACKEND)
            embedder: Title embedder (default: per EMBEDDING_MODEL)
            sentiment: Sentiment scorer (default: per SENTIMENT_MODEL)
            alerts: Keyword alerts (default: ALERT_KEYWORDS, all notifying)
        """
        self.config = config
        self.aggregator = aggregator or NewsAggregator(
            resolve_sources(config.sources_file, config.use_default_sources),
            parser=create_parser(config.feed_parser),
            classifier=ContentClassifier(),
            timeouts=FetchTimeouts(request=config.request_timeout, total=config.total_timeout),
            max_connections=config.max_connections,
        )

        entities = entities or build_entity_extractor(config)
        self.cluster_engine = ClusterEngine(
            entities,
            embedder=embedder if embedder is not None else build_embedder(config),
            settings=ClusterSettings(
                embedding_threshold=config.cluster_embedding_threshold,
                keyword_threshold=config.cluster_keyword_threshold,
                window_hours=config.cluster_window_hours,
            ),
        )
        self.trend_engine = TrendingTopicsEngine(
            entities,
            sentiment=sentiment if sentiment is not None else build_sentiment(config),
            interval_seconds=config.trend_interval_seconds,
        )
        self.alert_matcher = KeywordAlertMatcher(
            alerts if alerts is not None else keyword_alerts(config.alert_keywords)
        )

        # Optional: Distributed tracing
        if config.enable_logfire:
            from observability.tracing import setup_tracing
            setup_tracing(enabled=True, service_name="prism", token=config.logfire_token)

    async def run_once(self, category: NewsCategory | None = None) -> PipelineResult:
        """Execute one complete refresh.

        Args:
            category: Refresh only this category's sources

        Returns:
            PipelineResult with the snapshot, clusters, trends, alert
            matches and stats. Total ingestion failure is reported via
            ``stats.no_data`` with empty outputs.
        """
        run_id = uuid.uuid4().hex[:8]
        set_run_context(run_id)
        start = time.time()
        result = PipelineResult()
        stats = result.stats

        logger.info("Pipeline started | sources=%d category=%s", len(self.aggregator.sources), category.value if category else "all")

        try:
            with trace_operation("pipeline_run", {"run_id": run_id}) as attrs:
                try:
                    if category is None:
                        await self.aggregator.fetch_all()
                    else:
                        await self.aggregator.fetch_category(category)
                except NoArticlesError as e:
                    stats.no_data = True
                    stats.errors += 1
                    logger.error("%s", e)

                self._record_fetch(stats)
                articles = list(self.aggregator.articles)
                result.articles = articles

                if articles:
                    with trace_operation("cluster", {"articles": len(articles)}):
                        result.clusters = self.cluster_engine.cluster_articles(articles)
                    with trace_operation("trends", {"articles": len(articles)}):
                        result.trends = self.trend_engine.analyze(articles)
                    result.matches = self.alert_matcher.check(articles)

                stats.clusters = len(result.clusters)
                stats.trends = len(result.trends)
                stats.alerts = len(result.matches)

                to_notify = [m for m in result.matches if m.notify]
                if to_notify:
                    ok, fail = await notify_matches(to_notify, self.config)
                    stats.notified = ok
                    stats.errors += fail

                attrs.update(stats.to_dict())

        except asyncio.CancelledError:
            logger.info("Pipeline run cancelled")
            raise
        except Exception as e:
            logger.error("Pipeline error | type=%s error=%s", type(e).__name__, e, exc_info=True)
            stats.errors += 1
        finally:
            stats.duration = time.time() - start
            logger.info(
                "Pipeline done | duration=%.1fs articles=%d clusters=%d trends=%d alerts=%d errors=%d",
                stats.duration, stats.articles, stats.clusters, stats.trends, stats.alerts, stats.errors,
            )
            clear_context()

        return result

    def _record_fetch(self, stats: PipelineStats) -> None:
        report = self.aggregator.last_report
        stats.articles = len(self.aggregator.articles)
        if report is None:
            return
        stats.sources = len(report.succeeded) + len(report.failed)
        stats.sources_failed = len(report.failed)
        stats.duplicates = report.duplicates
        stats.ads_filtered = report.filtered

    async def run_continuous(self, category: NewsCategory | None = None) -> None:
        """Run the pipeline repeatedly, sleeping POLL_INTERVAL_SECONDS between runs."""
        run_count = 0
        total_alerts = 0
        total_errors = 0

        logger.info("Starting continuous mode | interval=%ds", self.config.poll_interval_seconds)

        try:
            while True:
                run_count += 1
                try:
                    result = await self.run_once(category)
                    total_alerts += result.stats.alerts
                    total_errors += result.stats.errors
                except Exception as e:
                    logger.error("Run failed | run=%d error=%s", run_count, e, exc_info=True)
                    total_errors += 1

                logger.info("Run complete | run=%d total_alerts=%d total_errors=%d", run_count, total_alerts, total_errors)
                await asyncio.sleep(self.config.poll_interval_seconds)

        except asyncio.CancelledError:
            logger.info("Pipeline stopped | runs=%d total_alerts=%d total_errors=%d", run_count, total_alerts, total_errors)
            raise
