"""Source and article models for syndicated news feeds.

This module defines the core models that flow through the ingestion
pipeline. Each Article represents a single entry from one source's feed.

Identity Strategy:
    Article IDs are derived from the source ID and the canonical link:
    - Same link from the same source = same ID (deduplicated on merge)
    - Same link from different sources = different IDs (both kept,
      so the cluster engine can compare how each outlet covered it)

Immutability:
    Articles are frozen once created. The aggregator replaces its whole
    store on every run instead of patching articles in place, so the
    cluster and trend passes can safely read a snapshot.
"""

from datetime import datetime, timedelta, timezone
from enum import Enum
from hashlib import sha256

from pydantic import BaseModel, ConfigDict, Field


class NewsCategory(str, Enum):
    """Closed set of feed categories."""

    TOP_STORIES = "Top Stories"
    US = "US"
    WORLD = "World"
    BUSINESS = "Business"
    TECHNOLOGY = "Technology"
    SCIENCE = "Science"
    HEALTH = "Health"
    SPORTS = "Sports"
    ENTERTAINMENT = "Entertainment"
    POLITICS = "Politics"


class BiasBucket(str, Enum):
    """Three-way collapse of the editorial bias scale."""

    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class SourceBias(str, Enum):
    """Editorial leaning of a source, ordered from far left to far right.

    Each value has a numeric position in [-1, 1] and collapses into one
    of three BiasBucket values for perspective comparison.
    """

    FAR_LEFT = "Far Left"
    LEFT = "Left"
    LEAN_LEFT = "Lean Left"
    CENTER = "Center"
    LEAN_RIGHT = "Lean Right"
    RIGHT = "Right"
    FAR_RIGHT = "Far Right"

    @property
    def position(self) -> float:
        """Numeric position on the left/right axis."""
        return _BIAS_POSITIONS[self]

    @property
    def bucket(self) -> BiasBucket:
        """Collapsed left/center/right bucket."""
        return _BIAS_BUCKETS[self]


_BIAS_POSITIONS: dict[SourceBias, float] = {
    SourceBias.FAR_LEFT: -1.0,
    SourceBias.LEFT: -0.66,
    SourceBias.LEAN_LEFT: -0.33,
    SourceBias.CENTER: 0.0,
    SourceBias.LEAN_RIGHT: 0.33,
    SourceBias.RIGHT: 0.66,
    SourceBias.FAR_RIGHT: 1.0,
}

_BIAS_BUCKETS: dict[SourceBias, BiasBucket] = {
    SourceBias.FAR_LEFT: BiasBucket.LEFT,
    SourceBias.LEFT: BiasBucket.LEFT,
    SourceBias.LEAN_LEFT: BiasBucket.LEFT,
    SourceBias.CENTER: BiasBucket.CENTER,
    SourceBias.LEAN_RIGHT: BiasBucket.RIGHT,
    SourceBias.RIGHT: BiasBucket.RIGHT,
    SourceBias.FAR_RIGHT: BiasBucket.RIGHT,
}


class Source(BaseModel):
    """A configured news feed.

    Attributes:
        id: Short unique identifier (e.g. "bbc-world")
        name: Display name
        feed_url: Address of the RSS/Atom feed
        category: Category assigned to this source's articles
        bias: Editorial leaning of the outlet
        reliability: Trust score in [0, 1], used by quality scoring

    Example:
        >>> source = Source(
        ...     id="npr",
        ...     name="NPR",
        ...     feed_url="https://feeds.npr.org/1001/rss.xml",
        ...     category=NewsCategory.TOP_STORIES,
        ...     bias=SourceBias.LEAN_LEFT,
        ...     reliability=0.9,
        ... )
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1, description="Unique source identifier")
    name: str = Field(description="Display name")
    feed_url: str = Field(description="RSS/Atom feed address")
    category: NewsCategory = Field(description="Category for this source's articles")
    bias: SourceBias = Field(default=SourceBias.CENTER, description="Editorial leaning")
    reliability: float = Field(default=0.8, ge=0.0, le=1.0, description="Trust score")


def article_id(source_id: str, link: str) -> str:
    """Stable 16-character ID for a source + canonical link pair."""
    return sha256(f"{source_id}|{link}".encode()).hexdigest()[:16]


class Article(BaseModel):
    """A normalized news article parsed from one source's feed.

    Attributes:
        id: Stable ID from source ID + link (see article_id)
        title: Cleaned headline (required, non-empty)
        source: Source the article came from
        link: Canonical article URL
        published: Publication timestamp (UTC); fetch time if unparseable
        category: Inherited from the source unless overridden at parse time
        raw_description: Description exactly as found in the feed
        description: Description with markup and entities removed
        image_url: Optional image address
        is_breaking: Title carries a breaking-news marker
        importance: 9 for breaking news, 5 otherwise
        quality_score: Heuristic 0..1 score assigned before storage
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Stable per source + link")
    title: str = Field(min_length=1, description="Article headline")
    source: Source = Field(description="Originating source")
    link: str = Field(description="Canonical article URL")
    published: datetime = Field(description="Publication timestamp (UTC)")
    category: NewsCategory = Field(description="Article category")
    raw_description: str | None = Field(default=None, description="Description as found in the feed")
    description: str | None = Field(default=None, description="HTML-cleaned description")
    image_url: str | None = Field(default=None, description="Image address")
    is_breaking: bool = Field(default=False, description="Breaking-news flag")
    importance: int = Field(default=5, description="Importance score")
    quality_score: float = Field(default=0.0, ge=0.0, le=1.0, description="Quality score")

    def is_recent(self, hours: float = 24, now: datetime | None = None) -> bool:
        """Check whether the article was published within the last N hours."""
        now = now or datetime.now(timezone.utc)
        return self.published > now - timedelta(hours=hours)

    def __str__(self) -> str:
        """Human-readable representation for logging."""
        return f"Article({self.id[:8]}..., {self.source.id}, '{self.title[:50]}')"
