"""Feed source catalog and user-defined feeds.

DEFAULT_SOURCES is the built-in catalog, organized by category with an
editorial bias and reliability per outlet. Additional sources can be
loaded from a JSON file (SOURCES_FILE), either as full source records or
as lightweight custom feeds that only give a name and URL.

JSON Format:
    [
        {"id": "npr", "name": "NPR", "feed_url": "https://...",
         "category": "Top Stories", "bias": "Lean Left", "reliability": 0.9},
        {"name": "Hacker News", "feed_url": "https://hnrss.org/frontpage",
         "category": "Technology"}
    ]

Entries without an ``id`` are treated as custom feeds: they get a
generated ``custom-`` ID, Center bias and 0.7 reliability.
"""

import json
import logging
from hashlib import sha256
from pathlib import Path

from pydantic import ValidationError

from models.article import NewsCategory, Source, SourceBias

logger = logging.getLogger(__name__)

CUSTOM_FEED_RELIABILITY = 0.7


def _source(id: str, name: str, url: str, category: NewsCategory, bias: SourceBias, reliability: float) -> Source:
    return Source(id=id, name=name, feed_url=url, category=category, bias=bias, reliability=reliability)


C = NewsCategory
B = SourceBias

DEFAULT_SOURCES: tuple[Source, ...] = (
    # === Top Stories ===
    _source("npr", "NPR", "https://feeds.npr.org/1001/rss.xml", C.TOP_STORIES, B.LEAN_LEFT, 0.9),
    _source("abc-news", "ABC News", "https://abcnews.go.com/abcnews/topstories", C.TOP_STORIES, B.CENTER, 0.85),
    _source("cbs-news", "CBS News", "https://www.cbsnews.com/latest/rss/main", C.TOP_STORIES, B.CENTER, 0.85),

    # === US ===
    _source("nyt-us", "NY Times US", "https://rss.nytimes.com/services/xml/rss/nyt/US.xml", C.US, B.LEAN_LEFT, 0.9),
    _source("usa-today", "USA Today", "https://rssfeeds.usatoday.com/usatoday-NewsTopStories", C.US, B.CENTER, 0.85),

    # === World ===
    _source("bbc-world", "BBC World", "https://feeds.bbci.co.uk/news/world/rss.xml", C.WORLD, B.CENTER, 0.9),
    _source("guardian-world", "The Guardian", "https://www.theguardian.com/world/rss", C.WORLD, B.LEFT, 0.85),
    _source("nyt-world", "NY Times World", "https://rss.nytimes.com/services/xml/rss/nyt/World.xml", C.WORLD, B.LEAN_LEFT, 0.9),

    # === Technology ===
    _source("techcrunch", "TechCrunch", "https://techcrunch.com/feed/", C.TECHNOLOGY, B.CENTER, 0.85),
    _source("arstechnica", "Ars Technica", "https://feeds.arstechnica.com/arstechnica/index", C.TECHNOLOGY, B.CENTER, 0.9),
    _source("verge", "The Verge", "https://www.theverge.com/rss/index.xml", C.TECHNOLOGY, B.LEAN_LEFT, 0.85),
    _source("wired", "Wired", "https://www.wired.com/feed/rss", C.TECHNOLOGY, B.CENTER, 0.85),

    # === Business ===
    _source("cnbc", "CNBC", "https://www.cnbc.com/id/100003114/device/rss/rss.html", C.BUSINESS, B.CENTER, 0.85),
    _source("nyt-business", "NY Times Business", "https://rss.nytimes.com/services/xml/rss/nyt/Business.xml", C.BUSINESS, B.LEAN_LEFT, 0.9),

    # === Science ===
    _source("science-daily", "Science Daily", "https://www.sciencedaily.com/rss/all.xml", C.SCIENCE, B.CENTER, 0.95),
    _source("nyt-science", "NY Times Science", "https://rss.nytimes.com/services/xml/rss/nyt/Science.xml", C.SCIENCE, B.LEAN_LEFT, 0.9),

    # === Health ===
    _source("nyt-health", "NY Times Health", "https://rss.nytimes.com/services/xml/rss/nyt/Health.xml", C.HEALTH, B.LEAN_LEFT, 0.9),

    # === Sports ===
    _source("espn", "ESPN", "https://www.espn.com/espn/rss/news", C.SPORTS, B.CENTER, 0.85),
    _source("nyt-sports", "NY Times Sports", "https://rss.nytimes.com/services/xml/rss/nyt/Sports.xml", C.SPORTS, B.LEAN_LEFT, 0.9),

    # === Entertainment ===
    _source("variety", "Variety", "https://variety.com/feed/", C.ENTERTAINMENT, B.CENTER, 0.85),
    _source("ew", "Entertainment Weekly", "https://ew.com/feed/", C.ENTERTAINMENT, B.CENTER, 0.8),

    # === Politics ===
    _source("politico", "Politico", "https://rss.politico.com/politics-news.xml", C.POLITICS, B.CENTER, 0.85),
    _source("nyt-politics", "NY Times Politics", "https://rss.nytimes.com/services/xml/rss/nyt/Politics.xml", C.POLITICS, B.LEAN_LEFT, 0.9),
)


def custom_source(name: str, feed_url: str, category: NewsCategory = NewsCategory.TOP_STORIES) -> Source:
    """Build a Source for a user-added feed.

    The ID is derived from the URL so the same feed always gets the same
    ID (and therefore the same article IDs) across runs.
    """
    digest = sha256(feed_url.encode()).hexdigest()[:12]
    return Source(
        id=f"custom-{digest}",
        name=name,
        feed_url=feed_url,
        category=category,
        bias=SourceBias.CENTER,
        reliability=CUSTOM_FEED_RELIABILITY,
    )


def load_sources(path: Path) -> list[Source]:
    """Load sources from a JSON file.

    Invalid entries are logged and skipped; the rest are returned.

    Raises:
        OSError: If the file cannot be read
        ValueError: If the file is not a JSON list
    """
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a JSON list of sources")

    sources = []
    for i, entry in enumerate(data):
        try:
            if isinstance(entry, dict) and "id" not in entry:
                sources.append(custom_source(
                    entry["name"],
                    entry["feed_url"],
                    NewsCategory(entry.get("category", NewsCategory.TOP_STORIES)),
                ))
            else:
                sources.append(Source.model_validate(entry))
        except (KeyError, ValueError, ValidationError) as e:
            logger.warning("Skipping source %d in %s: %s", i, path, e)
    return sources


def resolve_sources(sources_file: Path | None = None, use_defaults: bool = True) -> list[Source]:
    """Combine the default catalog with sources from a file.

    Later entries with an ID already seen are dropped.
    """
    candidates = list(DEFAULT_SOURCES) if use_defaults else []
    if sources_file is not None:
        candidates.extend(load_sources(sources_file))

    resolved: dict[str, Source] = {}
    for source in candidates:
        if source.id in resolved:
            logger.debug("Duplicate source ID ignored: %s", source.id)
            continue
        resolved[source.id] = source
    return list(resolved.values())
