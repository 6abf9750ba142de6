"""Shared fixtures and builders for the test suite."""

from datetime import datetime, timedelta, timezone

import pytest

from models.article import Article, NewsCategory, Source, SourceBias, article_id

NOW = datetime(2025, 6, 10, 12, 0, tzinfo=timezone.utc)


def make_source(
    id: str = "src-a",
    category: NewsCategory = NewsCategory.TECHNOLOGY,
    bias: SourceBias = SourceBias.CENTER,
    reliability: float = 0.8,
) -> Source:
    return Source(
        id=id,
        name=id.upper(),
        feed_url=f"https://{id}.example.com/rss.xml",
        category=category,
        bias=bias,
        reliability=reliability,
    )


def make_article(
    title: str,
    source: Source | None = None,
    *,
    minutes_ago: float = 0,
    description: str | None = None,
    slug: str | None = None,
    category: NewsCategory | None = None,
    is_breaking: bool = False,
) -> Article:
    source = source or make_source()
    link = f"https://{source.id}.example.com/{slug or title.lower().replace(' ', '-')}"
    return Article(
        id=article_id(source.id, link),
        title=title,
        source=source,
        link=link,
        published=NOW - timedelta(minutes=minutes_ago),
        category=category or source.category,
        raw_description=description,
        description=description,
        is_breaking=is_breaking,
        importance=9 if is_breaking else 5,
    )


@pytest.fixture
def source_a() -> Source:
    return make_source("src-a", bias=SourceBias.CENTER)


@pytest.fixture
def source_b() -> Source:
    return make_source("src-b", bias=SourceBias.LEFT)


@pytest.fixture
def source_c() -> Source:
    return make_source("src-c", bias=SourceBias.LEAN_RIGHT)
