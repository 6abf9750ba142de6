"""Tests for sources module."""

import json

import pytest

from models.article import NewsCategory, SourceBias
from sources import DEFAULT_SOURCES, custom_source, load_sources, resolve_sources


class TestDefaultSources:
    def test_unique_ids(self) -> None:
        ids = [s.id for s in DEFAULT_SOURCES]
        assert len(ids) == len(set(ids))

    def test_covers_every_category(self) -> None:
        assert {s.category for s in DEFAULT_SOURCES} == set(NewsCategory)

    def test_https_feeds(self) -> None:
        assert all(s.feed_url.startswith("https://") for s in DEFAULT_SOURCES)


class TestCustomSource:
    def test_stable_id(self) -> None:
        a = custom_source("HN", "https://hnrss.org/frontpage")
        b = custom_source("Hacker News", "https://hnrss.org/frontpage")
        assert a.id == b.id
        assert a.id.startswith("custom-")

    def test_defaults(self) -> None:
        source = custom_source("HN", "https://hnrss.org/frontpage", NewsCategory.TECHNOLOGY)
        assert source.bias == SourceBias.CENTER
        assert source.reliability == 0.7
        assert source.category == NewsCategory.TECHNOLOGY


class TestLoadSources:
    def test_full_custom_and_invalid(self, tmp_path) -> None:
        path = tmp_path / "sources.json"
        path.write_text(json.dumps([
            {"id": "npr-extra", "name": "NPR Extra", "feed_url": "https://example.com/npr",
             "category": "Top Stories", "bias": "Lean Left", "reliability": 0.9},
            {"name": "Hacker News", "feed_url": "https://hnrss.org/frontpage", "category": "Technology"},
            {"id": "broken", "name": "Broken", "feed_url": "https://example.com/b", "category": "Gossip"},
            {"name": "No URL"},
        ]))

        sources = load_sources(path)

        assert [s.name for s in sources] == ["NPR Extra", "Hacker News"]
        assert sources[0].bias == SourceBias.LEAN_LEFT
        assert sources[1].id.startswith("custom-")

    def test_not_a_list(self, tmp_path) -> None:
        path = tmp_path / "sources.json"
        path.write_text('{"id": "x"}')
        with pytest.raises(ValueError):
            load_sources(path)


class TestResolveSources:
    def test_defaults_only(self) -> None:
        assert resolve_sources() == list(DEFAULT_SOURCES)

    def test_file_only_and_dedup(self, tmp_path) -> None:
        path = tmp_path / "sources.json"
        entry = {"id": "dup", "name": "Dup", "feed_url": "https://example.com/d", "category": "World"}
        path.write_text(json.dumps([entry, dict(entry, name="Dup again")]))

        sources = resolve_sources(path, use_defaults=False)

        assert [s.name for s in sources] == ["Dup"]

    def test_file_cannot_override_default_id(self, tmp_path) -> None:
        path = tmp_path / "sources.json"
        path.write_text(json.dumps([
            {"id": "npr", "name": "Other NPR", "feed_url": "https://example.com/npr", "category": "World"},
        ]))
        sources = resolve_sources(path)
        npr = next(s for s in sources if s.id == "npr")
        assert npr.name == "NPR"
