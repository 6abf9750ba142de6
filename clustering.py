"""Story clustering across sources.

ClusterEngine groups articles that describe the same story so outlets
with different editorial leanings can be compared side by side.

Algorithm:
    1. Put the snapshot in canonical order (newest first, then ID)
    2. Take the first remaining article as seed and scan the rest
    3. A candidate joins the seed when it has the same category, was
       published within the window of the seed, and is similar enough
    4. Remove the group from the pool; repeat until the pool is empty
    5. Keep groups with >= 2 articles from >= 2 distinct sources

Similarity:
    - Embeddings: cosine similarity of title vectors, used only when an
      embedder is configured and reports itself available
    - Fallback: overlap of significant title keywords,
      |A & B| / max(|A|, |B|, 1)
"""

import logging
from collections import Counter
from dataclasses import dataclass
from datetime import timedelta

import numpy as np

from models.article import Article, BiasBucket
from models.cluster import PerspectiveBreakdown, StoryCluster
from nlp.base import EntityExtractor, TextEmbedder
from nlp.embeddings import cosine_similarity_matrix

logger = logging.getLogger(__name__)

TOPIC_WORDS = 3
MAX_FACTS = 5


@dataclass(frozen=True)
class ClusterSettings:
    """Thresholds for cluster membership.

    Attributes:
        embedding_threshold: Cosine similarity a pair must exceed
        keyword_threshold: Keyword overlap a pair must exceed
        window_hours: Publication gap must be strictly below this
    """
    embedding_threshold: float = 0.6
    keyword_threshold: float = 0.4
    window_hours: float = 48.0


def keyword_overlap(a: set[str], b: set[str]) -> float:
    """Overlap ratio |a & b| / max(|a|, |b|, 1)."""
    return len(a & b) / max(len(a), len(b), 1)


def canonical_order(articles: list[Article]) -> list[Article]:
    """Newest first, ties broken by ID."""
    return sorted(articles, key=lambda a: (-a.published.timestamp(), a.id))


class ClusterEngine:
    """Greedy same-story clustering with perspective breakdowns.

    Example:
        >>> engine = ClusterEngine(HeuristicEntityExtractor())
        >>> clusters = engine.cluster_articles(aggregator.articles)
        >>> clusters[0].topic
        'SpaceX Florida'
    """

    def __init__(
        self,
        entities: EntityExtractor,
        embedder: TextEmbedder | None = None,
        settings: ClusterSettings = ClusterSettings(),
    ):
        self.entities = entities
        self.embedder = embedder
        self.settings = settings

    def cluster_articles(self, articles: list[Article]) -> list[StoryCluster]:
        """Group a snapshot into multi-source story clusters.

        Returns:
            Clusters sorted by member count, largest first
        """
        if not articles:
            return []

        ordered = canonical_order(list(articles))
        similar = self._similarity_test(ordered)
        window = timedelta(hours=self.settings.window_hours)

        remaining = list(range(len(ordered)))
        groups: list[list[int]] = []
        while remaining:
            seed, *rest = remaining
            members = [seed]
            for i in rest:
                if (
                    ordered[i].category == ordered[seed].category
                    and abs(ordered[i].published - ordered[seed].published) < window
                    and similar(seed, i)
                ):
                    members.append(i)
            groups.append(members)
            taken = set(members)
            remaining = [i for i in remaining if i not in taken]

        clusters = []
        for members in groups:
            group = [ordered[i] for i in members]
            if len(group) < 2 or len({a.source.id for a in group}) < 2:
                continue
            clusters.append(StoryCluster(
                topic=self.topic_for(group),
                articles=group,
                perspectives=self.perspectives_for(group),
            ))

        clusters.sort(key=lambda c: c.article_count, reverse=True)
        logger.info(
            "Clustering complete | articles=%d groups=%d clusters=%d",
            len(ordered), len(groups), len(clusters),
        )
        return clusters

    def _similarity_test(self, ordered: list[Article]):
        """Build the pairwise similarity predicate for one pass."""
        matrix = self._embedding_matrix(ordered)
        if matrix is not None:
            threshold = self.settings.embedding_threshold
            return lambda i, j: matrix[i, j] > threshold

        keywords = [set(self.entities.keywords(a.title)) for a in ordered]
        threshold = self.settings.keyword_threshold
        return lambda i, j: keyword_overlap(keywords[i], keywords[j]) > threshold

    def _embedding_matrix(self, ordered: list[Article]) -> np.ndarray | None:
        if self.embedder is None or not self.embedder.available:
            return None
        try:
            vectors = self.embedder.encode_batch([a.title for a in ordered])
        except Exception as e:
            logger.warning("Embedding failed, using keyword overlap: %s", e)
            return None
        return cosine_similarity_matrix(np.asarray(vectors, dtype=np.float32))

    def topic_for(self, group: list[Article]) -> str:
        """Most frequent capitalized nouns across member titles."""
        counts: Counter[str] = Counter()
        for article in group:
            counts.update(self.entities.capitalized_nouns(article.title))
        if not counts:
            return group[0].title
        # Counter preserves first-insertion order for equal counts
        return " ".join(word for word, _ in counts.most_common(TOPIC_WORDS))

    def perspectives_for(self, group: list[Article]) -> PerspectiveBreakdown:
        """Left/center/right excerpts plus shared and contested keywords."""
        excerpts: dict[BiasBucket, str | None] = {}
        for article in group:
            bucket = article.source.bias.bucket
            if bucket not in excerpts:
                excerpts[bucket] = article.description

        described = [a.description for a in group if a.description]
        shared: list[str] = []
        contested: list[str] = []
        if len(described) >= 2:
            keyword_sets = [self.entities.keywords(d) for d in described]
            membership = [set(k) for k in keyword_sets]
            seen: set[str] = set()
            for words in keyword_sets:
                for word in words:
                    if word in seen:
                        continue
                    seen.add(word)
                    if all(word in m for m in membership):
                        shared.append(word)
                    else:
                        contested.append(word)

        return PerspectiveBreakdown(
            left=excerpts.get(BiasBucket.LEFT),
            center=excerpts.get(BiasBucket.CENTER),
            right=excerpts.get(BiasBucket.RIGHT),
            shared_facts=shared[:MAX_FACTS],
            contentions=contested[:MAX_FACTS],
        )


def cluster_for(clusters: list[StoryCluster], article_id: str) -> StoryCluster | None:
    """Find the cluster containing an article, if any."""
    for cluster in clusters:
        if article_id in cluster.article_ids:
            return cluster
    return None


def top_clusters(clusters: list[StoryCluster], count: int = 5) -> list[StoryCluster]:
    """Largest clusters first."""
    return sorted(clusters, key=lambda c: c.article_count, reverse=True)[:max(count, 0)]
