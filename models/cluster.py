"""Story cluster models for cross-source comparison.

A StoryCluster groups articles from different sources that describe the
same real-world story. Clusters only exist when at least two distinct
sources covered the story; single-source groupings are never built.
"""

from datetime import datetime
from hashlib import sha256

from pydantic import BaseModel, ConfigDict, Field, computed_field

from models.article import Article


class PerspectiveBreakdown(BaseModel):
    """How left, center and right leaning outlets covered one story.

    Attributes:
        left: Representative excerpt from a left-leaning source
        center: Representative excerpt from a center source
        right: Representative excerpt from a right-leaning source
        shared_facts: Keywords present in every member description (max 5)
        contentions: Keywords present in some but not all descriptions (max 5)
    """

    model_config = ConfigDict(frozen=True)

    left: str | None = None
    center: str | None = None
    right: str | None = None
    shared_facts: list[str] = Field(default_factory=list, max_length=5)
    contentions: list[str] = Field(default_factory=list, max_length=5)


class StoryCluster(BaseModel):
    """A set of same-story articles from two or more sources."""

    model_config = ConfigDict(frozen=True)

    topic: str = Field(description="Derived topic label")
    articles: list[Article] = Field(min_length=2, description="Member articles")
    perspectives: PerspectiveBreakdown | None = None

    @computed_field
    @property
    def id(self) -> str:
        """16-character ID derived from the sorted member IDs."""
        payload = "|".join(sorted(a.id for a in self.articles))
        return sha256(payload.encode()).hexdigest()[:16]

    @property
    def article_ids(self) -> frozenset[str]:
        return frozenset(a.id for a in self.articles)

    @property
    def article_count(self) -> int:
        return len(self.articles)

    @property
    def source_count(self) -> int:
        return len({a.source.id for a in self.articles})

    @property
    def first_seen(self) -> datetime:
        return min(a.published for a in self.articles)

    @property
    def last_updated(self) -> datetime:
        return max(a.published for a in self.articles)

    def __str__(self) -> str:
        return f"StoryCluster({self.id[:8]}..., '{self.topic[:40]}', articles={self.article_count})"
