"""Tests for pipeline module."""

import asyncio
import json
import os
import sys
from unittest.mock import AsyncMock, patch

import pytest

from aggregator import NewsAggregator
from config import Config
from feeds import SourceResult
from models.article import NewsCategory, SourceBias
from models.trend import KeywordAlert
from nlp.base import HeuristicEntityExtractor
from pipeline import Pipeline, build_embedder, build_entity_extractor, build_sentiment
from tests.conftest import make_article, make_source

SRC_A = make_source("src-a", bias=SourceBias.CENTER)
SRC_B = make_source("src-b", bias=SourceBias.LEFT)
SRC_C = make_source("src-c", bias=SourceBias.RIGHT)


@pytest.fixture
def config(tmp_path) -> Config:
    return Config(
        embedding_model="",
        sentiment_model="",
        alert_keywords=["spacex"],
        alerts_file=str(tmp_path / "alerts.jsonl"),
        log_dir=tmp_path / "log",
    )


@pytest.fixture
def pipeline(config) -> Pipeline:
    aggregator = NewsAggregator([SRC_A, SRC_B, SRC_C])
    return Pipeline(config, aggregator=aggregator, entities=HeuristicEntityExtractor())


def _results():
    return [
        SourceResult(source=SRC_A, articles=[
            make_article("SpaceX launches new rocket from Florida", SRC_A, minutes_ago=10),
            make_article("Tesla recalls vehicles over software issue", SRC_A, minutes_ago=15),
        ]),
        SourceResult(source=SRC_B, articles=[
            make_article("SpaceX rocket launch succeeds in Florida", SRC_B, minutes_ago=20),
            make_article("Analysts question Tesla delivery targets", SRC_B, minutes_ago=25),
        ]),
        SourceResult(source=SRC_C, ok=False, error="fetch failed"),
    ]


class TestRunOnce:
    @patch("aggregator.fetch_sources", new_callable=AsyncMock)
    def test_full_run(self, mock_fetch, pipeline, config) -> None:
        mock_fetch.return_value = _results()

        result = asyncio.run(pipeline.run_once())

        assert len(result.articles) == 4
        assert len(result.clusters) == 1
        assert "Tesla" in [t.label for t in result.trends]
        assert [m.keyword for m in result.matches] == ["spacex"]

        stats = result.stats
        assert stats.sources == 3
        assert stats.sources_failed == 1
        assert stats.articles == 4
        assert stats.clusters == 1
        assert stats.alerts == 1
        assert stats.notified == 1
        assert stats.errors == 0
        assert not stats.no_data

        with open(config.alerts_file, encoding="utf-8") as f:
            assert json.loads(f.readline())["keyword"] == "spacex"

    @patch("aggregator.fetch_sources", new_callable=AsyncMock)
    def test_no_data(self, mock_fetch, pipeline) -> None:
        mock_fetch.return_value = [
            SourceResult(source=s, ok=False, error="fetch failed") for s in (SRC_A, SRC_B, SRC_C)
        ]

        result = asyncio.run(pipeline.run_once())

        assert result.stats.no_data
        assert result.stats.errors == 1
        assert result.articles == []
        assert result.clusters == []
        assert result.trends == []

    @patch("aggregator.fetch_sources", new_callable=AsyncMock)
    def test_alerts_fire_once(self, mock_fetch, pipeline) -> None:
        mock_fetch.return_value = _results()
        asyncio.run(pipeline.run_once())
        second = asyncio.run(pipeline.run_once())
        assert second.matches == []

    @patch("aggregator.fetch_sources", new_callable=AsyncMock)
    def test_category_run(self, mock_fetch, config) -> None:
        world = make_source("world", category=NewsCategory.WORLD)
        pipeline = Pipeline(config, aggregator=NewsAggregator([SRC_A, world]), entities=HeuristicEntityExtractor())
        mock_fetch.return_value = [SourceResult(source=world, articles=[make_article("Summit opens", world)])]

        result = asyncio.run(pipeline.run_once(NewsCategory.WORLD))

        assert mock_fetch.call_args[0][0] == [world]
        assert [a.title for a in result.articles] == ["Summit opens"]

    @patch("aggregator.fetch_sources", new_callable=AsyncMock)
    def test_unexpected_error_counted(self, mock_fetch, pipeline) -> None:
        mock_fetch.side_effect = RuntimeError("boom")
        result = asyncio.run(pipeline.run_once())
        assert result.stats.errors == 1

    @patch("aggregator.fetch_sources", new_callable=AsyncMock)
    def test_silent_alert_matches_without_delivery(self, mock_fetch, config) -> None:
        pipeline = Pipeline(
            config,
            aggregator=NewsAggregator([SRC_A, SRC_B, SRC_C]),
            entities=HeuristicEntityExtractor(),
            alerts=[KeywordAlert(keyword="spacex", notify=False)],
        )
        mock_fetch.return_value = _results()

        with patch("notifications.send_webhook", new_callable=AsyncMock) as mock_webhook:
            result = asyncio.run(pipeline.run_once())

        assert [m.keyword for m in result.matches] == ["spacex"]
        assert result.stats.alerts == 1
        assert result.stats.notified == 0
        assert not os.path.exists(config.alerts_file)
        mock_webhook.assert_not_called()

    @patch("aggregator.fetch_sources", new_callable=AsyncMock)
    def test_missing_spacy_falls_back_to_heuristics(self, mock_fetch, tmp_path) -> None:
        config = Config(embedding_model="", sentiment_model="", nlp_backend="spacy", log_dir=tmp_path)
        mock_fetch.return_value = _results()

        with patch.dict(sys.modules, {"spacy": None}):
            pipeline = Pipeline(config, aggregator=NewsAggregator([SRC_A, SRC_B, SRC_C]))
            result = asyncio.run(pipeline.run_once())

        assert [c.topic for c in result.clusters] == ["SpaceX Florida"]
        assert "Tesla" in [t.label for t in result.trends]
        assert result.stats.errors == 0

    def test_stats_to_dict(self, pipeline) -> None:
        with patch("aggregator.fetch_sources", new_callable=AsyncMock) as mock_fetch:
            mock_fetch.return_value = _results()
            result = asyncio.run(pipeline.run_once())
        d = result.stats.to_dict()
        assert d["articles"] == 4
        assert isinstance(d["duration"], float)


class TestBuilders:
    def test_defaults(self) -> None:
        config = Config(embedding_model="", sentiment_model="")
        assert isinstance(build_entity_extractor(config), HeuristicEntityExtractor)
        assert build_embedder(config) is None
        assert build_sentiment(config) is None

    def test_configured_models_are_lazy(self) -> None:
        config = Config(embedding_model="some/model", sentiment_model="some/sentiment")
        assert build_embedder(config).model_name == "some/model"
        assert build_sentiment(config).model_name == "some/sentiment"
