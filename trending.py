"""Trending topic extraction.

TrendingTopicsEngine counts subjects (named entities and significant
capitalized nouns) across article titles and keeps those covered by at
least two different sources. Runs are rate limited: calling analyze()
more often than the interval returns the previous result unchanged.

Per-topic accumulation:
    - count: articles mentioning the topic (once per article)
    - sources: distinct source IDs
    - first_seen: earliest publication time
    - sentiment: pairwise running average, seeded by the first score
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from models.article import Article
from models.trend import TrendingTopic
from nlp.base import EntityExtractor, SentimentScorer
from nlp.sentiment import SentimentResult, label_for
from nlp.stopwords import ALL_STOP

logger = logging.getLogger(__name__)

MIN_ARTICLES = 2
MIN_SOURCES = 2
MAX_TOPICS = 10
MIN_ENTITY_LENGTH = 3
MIN_NOUN_LENGTH = 5
TICKER_SEPARATOR = "  •  "


def normalize_topic(text: str) -> str:
    """Title-case each word ("european UNION" -> "European Union")."""
    return " ".join(word.capitalize() for word in text.split())


@dataclass
class _TopicStats:
    count: int = 0
    sources: set[str] = field(default_factory=set)
    first_seen: datetime | None = None
    sentiment: float | None = None

    def add(self, article: Article, sentiment: float | None) -> None:
        self.count += 1
        self.sources.add(article.source.id)
        if self.first_seen is None or article.published < self.first_seen:
            self.first_seen = article.published
        if sentiment is not None:
            self.sentiment = sentiment if self.sentiment is None else (self.sentiment + sentiment) / 2


class TrendingTopicsEngine:
    """Rate-limited trending topic extractor.

    Example:
        >>> engine = TrendingTopicsEngine(HeuristicEntityExtractor())
        >>> topics = engine.analyze(aggregator.articles)
        >>> ticker_text(topics)
        'Tesla (3)  •  Federal Reserve (2)'
    """

    def __init__(
        self,
        entities: EntityExtractor,
        sentiment: SentimentScorer | None = None,
        interval_seconds: float = 300,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.entities = entities
        self.sentiment = sentiment
        self.interval_seconds = interval_seconds
        self.clock = clock
        self._last_run: float | None = None
        self._last_result: list[TrendingTopic] = []

    def analyze(self, articles: list[Article], force: bool = False) -> list[TrendingTopic]:
        """Extract trending topics from a snapshot.

        Args:
            articles: Snapshot to analyze
            force: Ignore the rate limit

        Returns:
            Up to 10 topics, most mentioned first
        """
        now = self.clock()
        if not force and self._last_run is not None and now - self._last_run < self.interval_seconds:
            logger.debug("Trend analysis rate limited | age=%.0fs", now - self._last_run)
            return self._last_result

        stats: dict[str, _TopicStats] = {}
        for article in articles:
            topics = self.topics_for(article.title)
            if not topics:
                continue
            score = self._score(article)
            for topic in topics:
                stats.setdefault(topic, _TopicStats()).add(article, score)

        trending = [
            TrendingTopic(
                label=label,
                article_count=s.count,
                source_count=len(s.sources),
                sources=sorted(s.sources),
                sentiment=s.sentiment,
                first_seen=s.first_seen,
            )
            for label, s in stats.items()
            if s.count >= MIN_ARTICLES and len(s.sources) >= MIN_SOURCES
        ]
        trending.sort(key=lambda t: (-t.article_count, -t.source_count, t.label))

        self._last_run = now
        self._last_result = trending[:MAX_TOPICS]
        logger.info("Trends analyzed | articles=%d candidates=%d trending=%d", len(articles), len(stats), len(self._last_result))
        return self._last_result

    def topics_for(self, title: str) -> list[str]:
        """Distinct normalized topics in one title, in order of appearance."""
        candidates = [e for e in self.entities.entities(title) if len(e) >= MIN_ENTITY_LENGTH]
        candidates += [n for n in self.entities.capitalized_nouns(title) if len(n) >= MIN_NOUN_LENGTH]

        topics: list[str] = []
        for candidate in candidates:
            if candidate.lower() in ALL_STOP:
                continue
            label = normalize_topic(candidate)
            if label not in topics:
                topics.append(label)
        return topics

    def _score(self, article: Article) -> float | None:
        if self.sentiment is None or not self.sentiment.available:
            return None
        try:
            return self.sentiment.score(article.title)
        except Exception as e:
            logger.warning("Sentiment scoring failed | article=%s error=%s", article.id, e)
            return None


def articles_for_topic(topic: TrendingTopic | str, articles: list[Article]) -> list[Article]:
    """Articles whose title or description mentions the topic."""
    label = (topic.label if isinstance(topic, TrendingTopic) else topic).lower()
    return [
        a for a in articles
        if label in a.title.lower() or label in (a.description or "").lower()
    ]


def top_trending(topics: list[TrendingTopic], count: int = 5) -> list[TrendingTopic]:
    return topics[:max(count, 0)]


def ticker_text(topics: list[TrendingTopic], count: int = 5) -> str:
    """One-line ticker, e.g. "Tesla (3)  •  Nvidia (2)"."""
    return TICKER_SEPARATOR.join(f"{t.label} ({t.article_count})" for t in top_trending(topics, count))


def sentiment_label(topic: TrendingTopic) -> SentimentResult | None:
    """Banded sentiment for display, None when the topic has no score."""
    if topic.sentiment is None:
        return None
    return label_for(topic.sentiment)
