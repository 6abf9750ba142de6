"""Tests for config module."""

from pathlib import Path

import pytest

from config import Config

ENV_VARS = (
    "SOURCES_FILE", "DEFAULT_SOURCES", "FEED_PARSER", "REQUEST_TIMEOUT", "TOTAL_TIMEOUT",
    "MAX_CONNECTIONS", "NLP_BACKEND", "SPACY_MODEL", "EMBEDDING_MODEL", "SENTIMENT_MODEL",
    "CLUSTER_EMBEDDING_THRESHOLD", "CLUSTER_KEYWORD_THRESHOLD", "CLUSTER_WINDOW_HOURS",
    "TREND_INTERVAL_SECONDS", "POLL_INTERVAL_SECONDS", "ALERT_KEYWORDS",
    "NOTIFICATION_WEBHOOK_URL", "ALERTS_FILE", "LOG_DIR", "LOG_LEVEL", "LOG_BACKUP_COUNT",
    "LOG_MAX_BYTES", "LOG_FORMAT", "ENABLE_LOGFIRE", "LOGFIRE_TOKEN",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch) -> None:
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)


class TestLoad:
    def test_defaults(self) -> None:
        config = Config.load()
        assert config.sources_file is None
        assert config.use_default_sources
        assert config.feed_parser == "loose"
        assert config.request_timeout == 15.0
        assert config.total_timeout == 30.0
        assert config.cluster_embedding_threshold == 0.6
        assert config.cluster_keyword_threshold == 0.4
        assert config.cluster_window_hours == 48.0
        assert config.trend_interval_seconds == 300
        assert config.alert_keywords == []
        assert config.log_dir == Path("log")
        assert config.validate() is None

    def test_overrides(self, monkeypatch) -> None:
        monkeypatch.setenv("FEED_PARSER", "STRICT")
        monkeypatch.setenv("CLUSTER_KEYWORD_THRESHOLD", "0.5")
        monkeypatch.setenv("ALERT_KEYWORDS", "tesla, climate ,,")
        monkeypatch.setenv("DEFAULT_SOURCES", "no")
        monkeypatch.setenv("EMBEDDING_MODEL", "")
        monkeypatch.setenv("LOG_LEVEL", "debug")

        config = Config.load()

        assert config.feed_parser == "strict"
        assert config.cluster_keyword_threshold == 0.5
        assert config.alert_keywords == ["tesla", "climate"]
        assert not config.use_default_sources
        assert config.embedding_model == ""
        assert config.log_level == "DEBUG"

    def test_invalid_integer(self, monkeypatch) -> None:
        monkeypatch.setenv("MAX_CONNECTIONS", "many")
        with pytest.raises(ValueError, match="MAX_CONNECTIONS"):
            Config.load()

    def test_invalid_float(self, monkeypatch) -> None:
        monkeypatch.setenv("REQUEST_TIMEOUT", "soon")
        with pytest.raises(ValueError, match="REQUEST_TIMEOUT"):
            Config.load()


class TestValidate:
    def test_bad_parser(self) -> None:
        assert "FEED_PARSER" in Config(feed_parser="xml").validate()

    def test_bad_backend(self) -> None:
        assert "NLP_BACKEND" in Config(nlp_backend="nltk").validate()

    def test_threshold_range(self) -> None:
        assert "CLUSTER_KEYWORD_THRESHOLD" in Config(cluster_keyword_threshold=1.5).validate()

    def test_no_sources(self) -> None:
        assert "No sources" in Config(use_default_sources=False).validate()

    def test_missing_sources_file(self, tmp_path) -> None:
        assert "does not exist" in Config(sources_file=tmp_path / "missing.json").validate()

    def test_bad_log_format(self) -> None:
        assert "LOG_FORMAT" in Config(log_format="xml").validate()

    def test_timeouts_positive(self) -> None:
        assert Config(request_timeout=0).validate() is not None
