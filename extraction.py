"""Field extraction strategies for loosely structured feed markup.

Feeds in the wild are frequently malformed, so fields are pulled out of
each entry with tolerant patterns instead of a strict XML parser. Every
field is extracted by an ordered list of strategies; the first strategy
that yields a usable value wins.

Strategy Order:
    Tag text:      CDATA-wrapped form, then plain tag
    Title:         <title>
    Link:          <link> text, then Atom <link href="...">
    Description:   <description>, <summary>, <content:encoded>, <content>
    Image:         media:content@url, enclosure@url, <img src> in description
    Date text:     <pubDate>, <published>, <updated>, <dc:date>
    Date formats:  see DATE_FORMATS, then RFC 2822 via email.utils

The tuples below are the source of truth for these orders.
"""

import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Callable
from urllib.parse import urlsplit

ITEM_PATTERN = re.compile(r"<item\b[^>]*>(.*?)</item>", re.DOTALL | re.IGNORECASE)
ENTRY_PATTERN = re.compile(r"<entry\b[^>]*>(.*?)</entry>", re.DOTALL | re.IGNORECASE)

TAG_PATTERN = re.compile(r"<[^>]+>")
WHITESPACE_PATTERN = re.compile(r"\s+")
IMG_SRC_PATTERN = re.compile(r"""<img[^>]+src=["']([^"']+)["']""", re.IGNORECASE)

# Only these entities are unescaped; everything else is left as-is
HTML_ENTITIES = {
    "&nbsp;": " ",
    "&amp;": "&",
    "&lt;": "<",
    "&gt;": ">",
    "&quot;": '"',
}
_ENTITY_PATTERN = re.compile("|".join(re.escape(e) for e in HTML_ENTITIES))

TITLE_TAGS = ("title",)
DESCRIPTION_TAGS = ("description", "summary", "content:encoded", "content")
DATE_TAGS = ("pubDate", "published", "updated", "dc:date")

DATE_FORMATS = (
    "%a, %d %b %Y %H:%M:%S %z",   # RFC 822, numeric zone
    "%Y-%m-%dT%H:%M:%S%z",        # ISO 8601
    "%Y-%m-%dT%H:%M:%S.%f%z",     # ISO 8601, fractional seconds
    "%a, %d %b %Y %H:%M:%S %Z",   # RFC 822, zone name (GMT/UTC)
)


def _open_tag(tag: str) -> str:
    # Opening tag with optional attributes, excluding self-closing tags
    return rf"<{re.escape(tag)}(?:\s[^>]*?)?(?<!/)>"


def _cdata_text(tag: str, xml: str) -> str | None:
    pattern = rf"{_open_tag(tag)}\s*<!\[CDATA\[(.*?)\]\]>\s*</{re.escape(tag)}>"
    match = re.search(pattern, xml, re.DOTALL)
    return match.group(1) if match else None


def _plain_text(tag: str, xml: str) -> str | None:
    pattern = rf"{_open_tag(tag)}(.*?)</{re.escape(tag)}>"
    match = re.search(pattern, xml, re.DOTALL)
    return match.group(1) if match else None


TAG_TEXT_STRATEGIES: tuple[Callable[[str, str], str | None], ...] = (
    _cdata_text,
    _plain_text,
)


def extract_tag(tag: str, xml: str) -> str | None:
    """Return the text content of the first <tag> in xml.

    The CDATA-wrapped form is preferred over the plain form. Empty or
    whitespace-only content counts as absent.
    """
    for strategy in TAG_TEXT_STRATEGIES:
        value = strategy(tag, xml)
        if value is not None and value.strip():
            return value
    return None


def extract_first(tags: tuple[str, ...], xml: str) -> str | None:
    """Return the text of the first tag in tags that is present."""
    for tag in tags:
        value = extract_tag(tag, xml)
        if value is not None:
            return value
    return None


def extract_attribute(attr: str, tag: str, xml: str) -> str | None:
    """Return attr="..." from the first <tag ...> carrying it."""
    pattern = rf"""<{re.escape(tag)}\b[^>]*?\s{re.escape(attr)}=["']([^"']+)["']"""
    match = re.search(pattern, xml, re.IGNORECASE)
    return match.group(1).strip() if match else None


def is_valid_url(value: str | None) -> bool:
    """Check that value is an absolute http(s) URL with a host."""
    if not value or any(c.isspace() for c in value):
        return False
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    return parts.scheme in ("http", "https") and bool(parts.netloc)


def _link_text(xml: str, raw_description: str | None) -> str | None:
    value = extract_tag("link", xml)
    return value.strip() if value else None


def _link_href(xml: str, raw_description: str | None) -> str | None:
    # Atom: prefer the alternate link, fall back to any link with href
    match = re.search(
        r"""<link\b(?=[^>]*\brel=["']alternate["'])[^>]*\bhref=["']([^"']+)["']""",
        xml,
        re.IGNORECASE,
    )
    if match:
        return match.group(1).strip()
    return extract_attribute("href", "link", xml)


LINK_STRATEGIES: tuple[Callable[[str, str | None], str | None], ...] = (
    _link_text,
    _link_href,
)


def _media_content(xml: str, raw_description: str | None) -> str | None:
    return extract_attribute("url", "media:content", xml)


def _enclosure(xml: str, raw_description: str | None) -> str | None:
    return extract_attribute("url", "enclosure", xml)


def _description_img(xml: str, raw_description: str | None) -> str | None:
    if not raw_description:
        return None
    match = IMG_SRC_PATTERN.search(raw_description)
    return match.group(1).strip() if match else None


IMAGE_STRATEGIES: tuple[Callable[[str, str | None], str | None], ...] = (
    _media_content,
    _enclosure,
    _description_img,
)


def extract_link(xml: str) -> str | None:
    """Run LINK_STRATEGIES in order; first valid http(s) URL wins."""
    for strategy in LINK_STRATEGIES:
        value = strategy(xml, None)
        if is_valid_url(value):
            return value
    return None


def extract_image(xml: str, raw_description: str | None) -> str | None:
    """Run IMAGE_STRATEGIES in order; first valid http(s) URL wins."""
    for strategy in IMAGE_STRATEGIES:
        value = strategy(xml, raw_description)
        if is_valid_url(value):
            return value
    return None


def parse_date(value: str | None) -> datetime | None:
    """Parse a feed date string with DATE_FORMATS, then RFC 2822.

    Returns:
        Timezone-aware datetime in UTC, or None if nothing matched
    """
    if not value:
        return None
    value = value.strip()

    parsed = None
    for fmt in DATE_FORMATS:
        try:
            parsed = datetime.strptime(value, fmt)
            break
        except ValueError:
            continue

    if parsed is None:
        try:
            parsed = parsedate_to_datetime(value)
        except (TypeError, ValueError, IndexError):
            return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def unescape_entities(text: str) -> str:
    """Replace the fixed HTML entity set in a single pass."""
    return _ENTITY_PATTERN.sub(lambda m: HTML_ENTITIES[m.group(0)], text)


def clean_text(text: str | None) -> str | None:
    """Strip markup, unescape entities and collapse whitespace.

    Returns:
        Cleaned text, or None if nothing remains
    """
    if text is None:
        return None
    cleaned = TAG_PATTERN.sub("", text)
    cleaned = unescape_entities(cleaned)
    cleaned = WHITESPACE_PATTERN.sub(" ", cleaned).strip()
    return cleaned or None
