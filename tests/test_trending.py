"""Tests for trending module."""

import logging
from unittest.mock import patch

import pytest

from models.trend import TrendingTopic
from nlp.base import HeuristicEntityExtractor
from nlp.sentiment import SentimentLabel, TransformerSentimentScorer
from tests.conftest import NOW, make_article, make_source
from trending import (
    TrendingTopicsEngine,
    articles_for_topic,
    normalize_topic,
    sentiment_label,
    ticker_text,
    top_trending,
)

SRC_A = make_source("src-a")
SRC_B = make_source("src-b")
SRC_C = make_source("src-c")

TESLA_TITLES = [
    ("Tesla recalls vehicles over software issue", SRC_A, 30),
    ("Analysts question Tesla delivery targets", SRC_B, 20),
    ("Investors cheer as Tesla shares rebound", SRC_C, 10),
]


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now


class FakeSentiment:
    available = True

    def __init__(self, scores: dict[str, float]):
        self.scores = scores

    def score(self, text: str) -> float:
        return self.scores[text]


def _tesla_articles():
    return [make_article(title, source, minutes_ago=m) for title, source, m in TESLA_TITLES]


@pytest.fixture
def engine() -> TrendingTopicsEngine:
    return TrendingTopicsEngine(HeuristicEntityExtractor(), interval_seconds=300, clock=FakeClock())


class TestAnalyze:
    def test_tesla_scenario(self, engine) -> None:
        topics = engine.analyze(_tesla_articles())
        tesla = next(t for t in topics if t.label == "Tesla")

        assert tesla.article_count == 3
        assert tesla.source_count == 3
        assert tesla.sources == ["src-a", "src-b", "src-c"]
        assert tesla.first_seen == min(a.published for a in _tesla_articles())

    def test_single_source_topic_excluded(self, engine) -> None:
        articles = _tesla_articles() + [
            make_article(f"Nvidia unveils chip number {i}", SRC_A, slug=f"nvidia-{i}") for i in range(5)
        ]
        labels = [t.label for t in engine.analyze(articles)]
        assert "Tesla" in labels
        assert "Nvidia" not in labels

    def test_counted_once_per_article(self, engine) -> None:
        articles = [
            make_article("Tesla says Tesla will build Tesla factory", SRC_A),
            make_article("Regulators probe Tesla", SRC_B),
        ]
        tesla = next(t for t in engine.analyze(articles) if t.label == "Tesla")
        assert tesla.article_count == 2

    def test_casing_normalized(self, engine) -> None:
        articles = [
            make_article("Tesla recalls vehicles", SRC_A),
            make_article("Why TESLA stock slipped", SRC_B),
        ]
        labels = [t.label for t in engine.analyze(articles)]
        assert "Tesla" in labels

    def test_stop_words_never_trend(self, engine) -> None:
        articles = [
            make_article("Breaking coverage of the storm", SRC_A),
            make_article("Breaking coverage continues downtown", SRC_B),
        ]
        assert "Breaking" not in [t.label for t in engine.analyze(articles)]

    def test_sort_order(self, engine) -> None:
        articles = _tesla_articles() + [
            make_article("Boeing delays new jet", SRC_A),
            make_article("Boeing wins defense contract", SRC_B),
        ]
        labels = [t.label for t in engine.analyze(articles)]
        assert labels.index("Tesla") < labels.index("Boeing")

    def test_at_most_ten(self, engine) -> None:
        companies = [
            "Apple", "Amazon", "Boeing", "Disney", "Google", "Intel", "Netflix",
            "Nvidia", "Oracle", "Pfizer", "Samsung", "Toyota",
        ]
        articles = [
            make_article(f"{name} reports earnings", source, slug=f"{name}-{source.id}")
            for name in companies
            for source in (SRC_A, SRC_B)
        ]
        assert len(engine.analyze(articles)) == 10

    def test_empty(self, engine) -> None:
        assert engine.analyze([]) == []


class TestSentiment:
    def test_pairwise_running_average(self) -> None:
        articles = _tesla_articles()
        scores = {articles[0].title: 0.8, articles[1].title: 0.4, articles[2].title: -0.2}
        engine = TrendingTopicsEngine(HeuristicEntityExtractor(), sentiment=FakeSentiment(scores), clock=FakeClock())

        tesla = next(t for t in engine.analyze(articles) if t.label == "Tesla")
        # 0.8 -> (0.8 + 0.4) / 2 -> (0.6 - 0.2) / 2
        assert tesla.sentiment == pytest.approx(0.2)

    def test_no_scorer(self, engine) -> None:
        tesla = next(t for t in engine.analyze(_tesla_articles()) if t.label == "Tesla")
        assert tesla.sentiment is None

    def test_scorer_failure_is_absent(self) -> None:
        class Broken:
            available = True

            def score(self, text: str) -> float:
                raise RuntimeError("model offline")

        engine = TrendingTopicsEngine(HeuristicEntityExtractor(), sentiment=Broken(), clock=FakeClock())
        tesla = next(t for t in engine.analyze(_tesla_articles()) if t.label == "Tesla")
        assert tesla.sentiment is None

    @patch("nlp.sentiment._load_pipeline")
    def test_failed_model_load_not_retried(self, mock_load, caplog) -> None:
        mock_load.side_effect = OSError("model not found")
        scorer = TransformerSentimentScorer("missing/model")
        engine = TrendingTopicsEngine(HeuristicEntityExtractor(), sentiment=scorer, clock=FakeClock())
        articles = [
            make_article(f"Tesla update number {i}", (SRC_A, SRC_B)[i % 2], minutes_ago=i)
            for i in range(50)
        ]

        with caplog.at_level(logging.WARNING):
            engine.analyze(articles)
            topics = engine.analyze(articles, force=True)

        assert mock_load.call_count == 1
        assert not scorer.available
        assert len([r for r in caplog.records if r.levelno == logging.WARNING]) == 1
        tesla = next(t for t in topics if t.label == "Tesla")
        assert tesla.sentiment is None

    def test_sentiment_label(self) -> None:
        topic = TrendingTopic(label="Tesla", article_count=2, source_count=2, sentiment=-0.6, first_seen=NOW)
        assert sentiment_label(topic).label == SentimentLabel.NEGATIVE
        assert sentiment_label(topic.model_copy(update={"sentiment": None})) is None


class TestRateLimit:
    def test_returns_cached_within_interval(self) -> None:
        clock = FakeClock()
        engine = TrendingTopicsEngine(HeuristicEntityExtractor(), interval_seconds=300, clock=clock)

        first = engine.analyze(_tesla_articles())
        clock.now += 120
        assert engine.analyze([]) is first

    def test_recomputes_after_interval(self) -> None:
        clock = FakeClock()
        engine = TrendingTopicsEngine(HeuristicEntityExtractor(), interval_seconds=300, clock=clock)

        engine.analyze(_tesla_articles())
        clock.now += 301
        assert engine.analyze([]) == []

    def test_force(self) -> None:
        clock = FakeClock()
        engine = TrendingTopicsEngine(HeuristicEntityExtractor(), interval_seconds=300, clock=clock)

        engine.analyze(_tesla_articles())
        assert engine.analyze([], force=True) == []


class TestQueries:
    def test_ticker_text(self, engine) -> None:
        articles = _tesla_articles() + [
            make_article("Boeing delays new jet", SRC_A),
            make_article("Boeing wins defense contract", SRC_B),
        ]
        topics = engine.analyze(articles)
        assert ticker_text(topics, 2) == "Tesla (3)  •  Boeing (2)"

    def test_ticker_text_empty(self) -> None:
        assert ticker_text([]) == ""

    def test_top_trending(self, engine) -> None:
        topics = engine.analyze(_tesla_articles())
        assert top_trending(topics, 1) == topics[:1]

    def test_articles_for_topic(self, engine) -> None:
        articles = _tesla_articles() + [make_article("Boeing delays new jet", SRC_A, description="No cars here")]
        tesla = next(t for t in engine.analyze(articles) if t.label == "Tesla")
        assert len(articles_for_topic(tesla, articles)) == 3
        assert len(articles_for_topic("boeing", articles)) == 1

    def test_normalize_topic(self) -> None:
        assert normalize_topic("european UNION") == "European Union"

    def test_first_seen_uses_published(self, engine) -> None:
        tesla = next(t for t in engine.analyze(_tesla_articles()) if t.label == "Tesla")
        assert tesla.first_seen < NOW
