"""Feed parsing: raw RSS/Atom payloads into Article records.

Two parsers share one contract, ``parse(payload, source) -> list[Article]``:

FeedParser (default):
    Tolerant pattern-based extraction (see extraction.py). Survives
    unclosed tags, stray markup and invalid XML as long as the entry
    blocks themselves can be found.

StrictFeedParser:
    Backed by the feedparser library. More correct on well-formed
    feeds, less forgiving on broken ones. Selected with FEED_PARSER=strict.

Error Handling Strategy:
    - A payload that is not decodable text yields an empty list
    - A malformed entry is dropped; the rest of the feed is still parsed
    - Entries without a title or a valid http(s) link are dropped
    - A missing or unparseable date falls back to the fetch time
    - Nothing is raised to the caller
"""

import logging
from datetime import datetime, timezone
from typing import Protocol

import feedparser

from errors import FeedDecodeError
from extraction import (
    DATE_TAGS,
    DESCRIPTION_TAGS,
    ENTRY_PATTERN,
    ITEM_PATTERN,
    TITLE_TAGS,
    clean_text,
    extract_first,
    extract_image,
    extract_link,
    is_valid_url,
    parse_date,
)
from models.article import Article, NewsCategory, Source, article_id

logger = logging.getLogger(__name__)

BREAKING_MARKERS = ("breaking", "just in", "developing")
BREAKING_IMPORTANCE = 9
DEFAULT_IMPORTANCE = 5


class Parser(Protocol):
    """Common interface of the feed parsers."""

    def parse(
        self,
        payload: bytes | str,
        source: Source,
        *,
        fetched_at: datetime | None = None,
        category: NewsCategory | None = None,
    ) -> list[Article]: ...


def decode_payload(payload: bytes | str) -> str:
    """Decode a raw payload as UTF-8 text.

    Raises:
        FeedDecodeError: If the bytes are not valid UTF-8
    """
    if isinstance(payload, str):
        return payload
    try:
        return payload.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise FeedDecodeError(f"Payload is not UTF-8 text: {e}") from e


def is_breaking(title: str) -> bool:
    """Check the title for breaking-news markers (case-insensitive)."""
    lower = title.lower()
    return any(marker in lower for marker in BREAKING_MARKERS)


def build_article(
    source: Source,
    *,
    title: str | None,
    link: str | None,
    raw_description: str | None,
    published: datetime | None,
    image_url: str | None,
    fetched_at: datetime,
    category: NewsCategory | None = None,
) -> Article | None:
    """Assemble an Article from extracted fields.

    Returns:
        Article, or None if the title is empty or the link is invalid
    """
    title = clean_text(title)
    link = link.strip() if link else None
    if not title or not is_valid_url(link):
        return None

    breaking = is_breaking(title)
    return Article(
        id=article_id(source.id, link),
        title=title,
        source=source,
        link=link,
        published=published or fetched_at,
        category=category or source.category,
        raw_description=raw_description,
        description=clean_text(raw_description),
        image_url=image_url if is_valid_url(image_url) else None,
        is_breaking=breaking,
        importance=BREAKING_IMPORTANCE if breaking else DEFAULT_IMPORTANCE,
    )


class FeedParser:
    """Tolerant pattern-based RSS/Atom parser.

    Example:
        >>> parser = FeedParser()
        >>> articles = parser.parse(xml_bytes, source)
        >>> [a.title for a in articles]
        ['SpaceX launches new rocket from Florida', ...]
    """

    def parse(
        self,
        payload: bytes | str,
        source: Source,
        *,
        fetched_at: datetime | None = None,
        category: NewsCategory | None = None,
    ) -> list[Article]:
        """Parse one feed payload into articles.

        Args:
            payload: Raw feed body
            source: Source the payload was fetched from
            fetched_at: Substituted for missing dates (default: now)
            category: Overrides the source category when given

        Returns:
            Articles in feed order (may be empty)
        """
        try:
            xml = decode_payload(payload)
        except FeedDecodeError as e:
            logger.debug("Feed %s: %s", source.id, e)
            return []

        fetched_at = fetched_at or datetime.now(timezone.utc)
        blocks = ITEM_PATTERN.findall(xml) or ENTRY_PATTERN.findall(xml)

        articles = []
        dropped = 0
        for block in blocks:
            try:
                article = self._parse_entry(block, source, fetched_at, category)
            except Exception as e:
                logger.debug("Feed %s: malformed entry: %s: %s", source.id, type(e).__name__, e)
                article = None
            if article is None:
                dropped += 1
                continue
            articles.append(article)

        logger.debug(
            "Feed parsed | source=%s entries=%d articles=%d dropped=%d",
            source.id, len(blocks), len(articles), dropped,
        )
        return articles

    def _parse_entry(
        self,
        xml: str,
        source: Source,
        fetched_at: datetime,
        category: NewsCategory | None,
    ) -> Article | None:
        raw_description = extract_first(DESCRIPTION_TAGS, xml)
        date_text = extract_first(DATE_TAGS, xml)
        published = parse_date(date_text)
        if date_text and published is None:
            logger.debug("Feed %s: unrecognized date '%s', using fetch time", source.id, date_text[:40])

        return build_article(
            source,
            title=extract_first(TITLE_TAGS, xml),
            link=extract_link(xml),
            raw_description=raw_description.strip() if raw_description else None,
            published=published,
            image_url=extract_image(xml, raw_description),
            fetched_at=fetched_at,
            category=category,
        )


def _entry_date(entry: dict) -> datetime | None:
    """Publication date of a feedparser entry.

    Tries published_parsed, updated_parsed, created_parsed in order.
    """
    for field in ("published_parsed", "updated_parsed", "created_parsed"):
        time_tuple = entry.get(field)
        if time_tuple:
            try:
                return datetime(*time_tuple[:6], tzinfo=timezone.utc)
            except (TypeError, ValueError):
                continue
    return None


def _entry_image(entry: dict, raw_description: str | None) -> str | None:
    """Image of a feedparser entry: media content, enclosure, <img> in description."""
    for media in entry.get("media_content") or []:
        if is_valid_url(media.get("url")):
            return media["url"]
    for enclosure in entry.get("enclosures") or []:
        url = enclosure.get("href") or enclosure.get("url")
        if is_valid_url(url):
            return url
    return extract_image("", raw_description)


class StrictFeedParser:
    """feedparser-backed parser with the same contract as FeedParser."""

    def parse(
        self,
        payload: bytes | str,
        source: Source,
        *,
        fetched_at: datetime | None = None,
        category: NewsCategory | None = None,
    ) -> list[Article]:
        try:
            text = decode_payload(payload)
        except FeedDecodeError as e:
            logger.debug("Feed %s: %s", source.id, e)
            return []

        fetched_at = fetched_at or datetime.now(timezone.utc)
        feed = feedparser.parse(text)
        if feed.get("bozo"):
            logger.debug("Feed %s: not well-formed: %s", source.id, feed.get("bozo_exception"))

        articles = []
        for entry in feed.entries:
            try:
                raw_description = entry.get("description") or entry.get("summary") or None
                article = build_article(
                    source,
                    title=entry.get("title"),
                    link=entry.get("link"),
                    raw_description=raw_description,
                    published=_entry_date(entry),
                    image_url=_entry_image(entry, raw_description),
                    fetched_at=fetched_at,
                    category=category,
                )
            except Exception as e:
                logger.debug("Feed %s: malformed entry: %s: %s", source.id, type(e).__name__, e)
                continue
            if article is not None:
                articles.append(article)
        return articles


def create_parser(kind: str = "loose") -> Parser:
    """Build the parser selected by configuration ('loose' or 'strict')."""
    if kind == "strict":
        return StrictFeedParser()
    return FeedParser()
