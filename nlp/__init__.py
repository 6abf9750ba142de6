"""Natural-language capabilities consumed by clustering and trends.

TextEmbedder / EntityExtractor / SentimentScorer:
    Protocols the core depends on.

HeuristicEntityExtractor:
    Default casing-based extractor (no model download).

SentenceEmbedder:
    sentence-transformers embeddings (optional, lazy).

SpacyEntityExtractor:
    spaCy NER + POS extractor (optional, lazy). NLP_BACKEND=spacy

TransformerSentimentScorer:
    transformers sentiment pipeline (optional, lazy).

Example:
    >>> from nlp import HeuristicEntityExtractor
    >>> HeuristicEntityExtractor().keywords("SpaceX launches new rocket from Florida")
    ['spacex', 'launches', 'rocket', 'florida']
"""

from nlp.base import EntityExtractor, HeuristicEntityExtractor, SentimentScorer, TextEmbedder
from nlp.embeddings import SentenceEmbedder
from nlp.entities import SpacyEntityExtractor
from nlp.sentiment import SentimentResult, TransformerSentimentScorer, label_for

__all__ = [
    "EntityExtractor",
    "HeuristicEntityExtractor",
    "SentimentScorer",
    "TextEmbedder",
    "SentenceEmbedder",
    "SpacyEntityExtractor",
    "SentimentResult",
    "TransformerSentimentScorer",
    "label_for",
]
