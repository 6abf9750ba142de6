"""Pydantic models for the Prism news synthesis pipeline.

This package contains all data models used throughout the pipeline:

Source:
    Configured feed with category, editorial bias and reliability.

Article:
    Normalized feed entry. Frozen; identified by source + link.

StoryCluster / PerspectiveBreakdown:
    Same-story articles from 2+ sources, with left/center/right excerpts
    and shared/contested keywords.

TrendingTopic:
    Subject recurring across 2+ articles from 2+ sources.

KeywordAlert / AlertMatch:
    Watched keywords and the new articles matching them.

Example:
    >>> from models import Article, Source, NewsCategory, SourceBias
    >>> source = Source(id="bbc", name="BBC", feed_url="...", category=NewsCategory.WORLD)
"""

from models.article import (
    Article,
    BiasBucket,
    NewsCategory,
    Source,
    SourceBias,
    article_id,
)
from models.cluster import PerspectiveBreakdown, StoryCluster
from models.trend import AlertMatch, KeywordAlert, TrendingTopic

__all__ = [
    "Article",
    "BiasBucket",
    "NewsCategory",
    "Source",
    "SourceBias",
    "article_id",
    "PerspectiveBreakdown",
    "StoryCluster",
    "TrendingTopic",
    "KeywordAlert",
    "AlertMatch",
]
