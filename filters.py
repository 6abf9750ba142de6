"""Content filtering: advertisement detection and quality scoring.

The classifier is a set of fixed lexicons and title heuristics. No single
field is authoritative; any one rule firing marks an article as
promotional (logical OR).

Rules:
    1. Ad lexicon in title + description ("sponsored", "deal alert", ...)
    2. PR / deal-announcement phrase ("signs deal", "offers discount", ...)
    3. Press-release wire service in the source ID
    4. Telecom/TV brand in the title next to a deal word
    5. Clickbait title (phrases, repeated !/?, shouting)

Quality Score:
    Independent of filtering. Starts at 1.0, penalizes short titles,
    missing descriptions and sensational punctuation, and rewards
    reliable sources. Clamped to [0, 1].
"""

import re

from models.article import Article

AD_KEYWORDS = frozenset({
    "sponsored",
    "advertisement",
    "promoted",
    "partner content",
    "paid post",
    "affiliate",
    "promo code",
    "discount code",
    "limited time offer",
    "special offer",
    "exclusive deal",
    "save now",
    "buy now",
    "shop now",
    "order now",
    "subscribe now",
    "sign up now",
    "free trial",
    "act now",
    "don't miss",
    "hurry",
    "deal alert",
    "price drop",
})

PR_KEYWORDS = frozenset({
    "announces partnership",
    "signs deal",
    "reaches agreement",
    "expands service",
    "launches promotion",
    "offers discount",
    "introduces new plan",
    "unveils package",
    "rolls out offer",
})

# Press-release wires that mix paid announcements with news
SUSPICIOUS_SOURCES = frozenset({
    "prnewswire",
    "businesswire",
    "globenewswire",
    "accesswire",
})

DEAL_CONTEXT_BRANDS = frozenset({
    "directv",
    "dish network",
    "comcast",
    "xfinity",
    "spectrum",
    "at&t",
    "verizon",
    "t-mobile",
})

DEAL_WORDS = ("deal", "offer", "plan", "package", "price", "discount", "save", "bundle", "promotion")

CLICKBAIT_PATTERNS = (
    "you won't believe",
    "this one trick",
    "doctors hate",
    "secret revealed",
    "what happened next",
    "mind-blowing",
    "jaw-dropping",
    "game-changer",
    "life-changing",
    "this changes everything",
)

QUESTION_WORDS = frozenset({"who", "what", "when", "where", "why", "how"})

_WORD_PATTERN = re.compile(r"[a-z]+")


def is_clickbait(title: str) -> bool:
    """Check a title for clickbait phrasing or formatting.

    True if the title contains a known clickbait phrase, more than one
    "!" or "?", or more than two shouted words (longer than 3 chars,
    fully uppercase, starting with a letter).
    """
    lower = title.lower()
    if any(pattern in lower for pattern in CLICKBAIT_PATTERNS):
        return True

    if title.count("!") > 1 or title.count("?") > 1:
        return True

    caps_words = [
        word for word in title.split()
        if len(word) > 3 and word == word.upper() and word[0].isalpha()
    ]
    return len(caps_words) > 2


class ContentClassifier:
    """Advertisement filter and quality scorer.

    Lexicons default to the module constants and can be overridden per
    instance (e.g. for a different market's brand list).

    Example:
        >>> classifier = ContentClassifier()
        >>> classifier.is_advertisement(article)
        False
        >>> classifier.quality_score(article)
        0.97
    """

    def __init__(
        self,
        ad_keywords: frozenset[str] = AD_KEYWORDS,
        pr_keywords: frozenset[str] = PR_KEYWORDS,
        suspicious_sources: frozenset[str] = SUSPICIOUS_SOURCES,
        deal_brands: frozenset[str] = DEAL_CONTEXT_BRANDS,
    ):
        self.ad_keywords = ad_keywords
        self.pr_keywords = pr_keywords
        self.suspicious_sources = suspicious_sources
        self.deal_brands = deal_brands

    def is_advertisement(self, article: Article) -> bool:
        """Check whether an article is advertising or promotional content."""
        title = article.title.lower()
        description = (article.description or "").lower()
        combined = f"{title} {description}"
        source = article.source.id.lower()

        if any(keyword in combined for keyword in self.ad_keywords):
            return True
        if any(keyword in combined for keyword in self.pr_keywords):
            return True
        if any(wire in source for wire in self.suspicious_sources):
            return True

        # Brand in a deal context, e.g. "Comcast offers new bundle"
        if any(brand in title for brand in self.deal_brands):
            if any(word in title for word in DEAL_WORDS):
                return True

        return is_clickbait(article.title)

    def filter_articles(self, articles: list[Article]) -> list[Article]:
        """Drop advertisements, preserving order."""
        return [a for a in articles if not self.is_advertisement(a)]

    def quality_score(self, article: Article) -> float:
        """Heuristic 0..1 measure of completeness and credibility."""
        score = 1.0

        if len(article.title) < 20:
            score -= 0.2
        if not article.description:
            score -= 0.1

        score += article.source.reliability * 0.3

        title = article.title.lower()
        if "!" in title:
            score -= 0.1
        if "?" in title and QUESTION_WORDS.isdisjoint(_WORD_PATTERN.findall(title)):
            score -= 0.1

        return max(0.0, min(1.0, score))
