"""Keyword alert matching.

KeywordAlertMatcher checks each refresh for articles mentioning a watched
keyword. Only articles not seen by an earlier check can match, so a story
triggers an alert once even though it stays in the store for many runs.
"""

import logging
from collections import OrderedDict
from collections.abc import Iterable

from models.article import Article
from models.trend import AlertMatch, KeywordAlert

logger = logging.getLogger(__name__)

MAX_SEEN = 1000


def keyword_alerts(keywords: Iterable[str]) -> list[KeywordAlert]:
    """Build enabled alerts from plain keyword strings (e.g. ALERT_KEYWORDS)."""
    return [KeywordAlert(keyword=k.strip()) for k in keywords if k.strip()]


def matches(alert: KeywordAlert, article: Article) -> bool:
    """Case-insensitive substring match on title or description."""
    needle = alert.keyword.lower()
    return needle in article.title.lower() or needle in (article.description or "").lower()


class KeywordAlertMatcher:
    """Matches new articles against keyword alerts.

    Remembers the IDs of the most recent ``max_seen`` checked articles.

    Example:
        >>> matcher = KeywordAlertMatcher(keyword_alerts(["tesla"]))
        >>> [m.keyword for m in matcher.check(articles)]
        ['tesla']
        >>> matcher.check(articles)
        []
    """

    def __init__(self, alerts: list[KeywordAlert], max_seen: int = MAX_SEEN):
        self.alerts = list(alerts)
        self.max_seen = max_seen
        self._seen: OrderedDict[str, None] = OrderedDict()

    def check(self, articles: Iterable[Article]) -> list[AlertMatch]:
        """Return one AlertMatch per enabled keyword with new hits."""
        new = [a for a in articles if a.id not in self._seen]
        for article in new:
            self._remember(article.id)

        active = [alert for alert in self.alerts if alert.enabled]
        if not new or not active:
            return []

        results = []
        for alert in active:
            hits = [a for a in new if matches(alert, a)]
            if hits:
                results.append(AlertMatch(keyword=alert.keyword, articles=hits, notify=alert.notify))

        if results:
            logger.info(
                "Keyword alerts | new_articles=%d matched=%s",
                len(new), ",".join(m.keyword for m in results),
            )
        return results

    def _remember(self, article_id: str) -> None:
        self._seen[article_id] = None
        while len(self._seen) > self.max_seen:
            self._seen.popitem(last=False)
