"""Trending topic and keyword alert models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from models.article import Article


class TrendingTopic(BaseModel):
    """A subject recurring across articles from several sources.

    Only topics seen in at least 2 articles from at least 2 distinct
    sources are ever produced by the trend engine.

    Attributes:
        label: Normalized topic text (title case)
        article_count: Number of articles mentioning the topic
        source_count: Number of distinct sources mentioning it
        sources: Sorted IDs of those sources
        sentiment: Running average sentiment, None when unavailable
        first_seen: Earliest publication time among contributing articles
    """

    model_config = ConfigDict(frozen=True)

    label: str
    article_count: int = Field(ge=2)
    source_count: int = Field(ge=2)
    sources: list[str] = Field(default_factory=list)
    sentiment: float | None = None
    first_seen: datetime


class KeywordAlert(BaseModel):
    """A user-defined keyword to watch for in new articles."""

    keyword: str = Field(min_length=1)
    enabled: bool = True
    notify: bool = True


class AlertMatch(BaseModel):
    """New articles that matched one keyword alert.

    ``notify`` is copied from the alert; silent matches are reported but
    never delivered.
    """

    keyword: str
    articles: list[Article] = Field(default_factory=list)
    notify: bool = True
