"""Interfaces for the natural-language capabilities the pipeline consumes.

The pipeline does not implement embeddings, entity recognition or
sentiment itself. It consumes them through three small protocols so a
backend can be swapped without touching clustering or trend code.

TextEmbedder:
    Batch sentence embeddings. ``available`` is an explicit capability
    flag: callers check it before encoding instead of inferring
    unavailability from an empty result.

EntityExtractor:
    Named entities, capitalized nouns and significant keywords.

SentimentScorer:
    Polarity score in [-1, 1] for a piece of text, with the same
    ``available`` flag as TextEmbedder.

HeuristicEntityExtractor is the dependency-free default extractor; it
works on headline casing and a stop word list.
"""

import re
from typing import Protocol, runtime_checkable

import numpy as np

from nlp.stopwords import ALL_STOP, TITLE_STOP


@runtime_checkable
class TextEmbedder(Protocol):
    @property
    def available(self) -> bool: ...

    def encode_batch(self, texts: list[str]) -> np.ndarray: ...


@runtime_checkable
class EntityExtractor(Protocol):
    def entities(self, text: str) -> list[str]: ...

    def capitalized_nouns(self, text: str) -> list[str]: ...

    def keywords(self, text: str) -> list[str]: ...


@runtime_checkable
class SentimentScorer(Protocol):
    @property
    def available(self) -> bool: ...

    def score(self, text: str) -> float: ...


_TOKEN_PATTERN = re.compile(r"[A-Za-z][A-Za-z0-9'’&.-]*[A-Za-z0-9]|[A-Za-z]")

# Share of long words that must be capitalized for a headline to count as Title Case
_TITLE_CASE_RATIO = 0.6


def tokenize(text: str) -> list[str]:
    """Split text into word tokens, dropping punctuation and numbers."""
    return _TOKEN_PATTERN.findall(text)


def _is_capitalized(token: str) -> bool:
    return token[0].isupper()


def _unique(items: list[str]) -> list[str]:
    return list(dict.fromkeys(items))


def is_title_case(tokens: list[str]) -> bool:
    """Check whether most long words of a headline are capitalized."""
    long_words = [t for t in tokens if len(t) > 3 and t.lower() not in TITLE_STOP]
    if not long_words:
        return False
    capitalized = sum(1 for t in long_words if _is_capitalized(t))
    return capitalized / len(long_words) >= _TITLE_CASE_RATIO


class HeuristicEntityExtractor:
    """Casing and stop word based extractor for English headlines.

    - keywords: lowercased words longer than 3 characters that are not
      stop words
    - capitalized_nouns: capitalized words longer than 2 characters that
      are not stop words
    - entities: runs of up to ``max_entity_words`` adjacent capitalized
      words ("Elon Musk", "European Union"). In Title Case headlines
      every word is capitalized, so runs are split into single words.
    """

    def __init__(self, max_entity_words: int = 3):
        self.max_entity_words = max_entity_words

    def keywords(self, text: str) -> list[str]:
        words = [t.lower() for t in tokenize(text)]
        return _unique([w for w in words if len(w) > 3 and w not in ALL_STOP])

    def capitalized_nouns(self, text: str) -> list[str]:
        return [
            t for t in tokenize(text)
            if len(t) > 2 and _is_capitalized(t) and t.lower() not in ALL_STOP
        ]

    def entities(self, text: str) -> list[str]:
        tokens = tokenize(text)
        if is_title_case(tokens):
            return self.capitalized_nouns(text)

        entities = []
        run: list[str] = []
        for token in tokens + [""]:
            if token and _is_capitalized(token) and token.lower() not in ALL_STOP:
                run.append(token)
                if len(run) < self.max_entity_words:
                    continue
            if run:
                entities.append(" ".join(run))
                run = []
        return [e for e in entities if len(e) > 2]
