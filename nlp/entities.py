"""spaCy-backed entity, noun and keyword extraction.

Selected with NLP_BACKEND=spacy. The model is loaded lazily and cached
per model name.

Entity types kept: PERSON, ORG, GPE, LOC
Keyword parts of speech: NOUN, PROPN, VERB, ADJ
"""

import logging

from nlp.base import HeuristicEntityExtractor
from nlp.stopwords import ALL_STOP

logger = logging.getLogger(__name__)

DEFAULT_SPACY_MODEL = "en_core_web_sm"

ENTITY_TYPES = {"PERSON", "ORG", "GPE", "LOC"}
KEYWORD_POS = {"NOUN", "PROPN", "VERB", "ADJ"}
NOUN_POS = {"NOUN", "PROPN"}

_nlp_cache: dict = {}


def get_nlp(model_name: str = DEFAULT_SPACY_MODEL):
    """Load (once) and return a spaCy pipeline."""
    if model_name not in _nlp_cache:
        import spacy

        logger.info("Loading spaCy model: %s", model_name)
        _nlp_cache[model_name] = spacy.load(model_name)
    return _nlp_cache[model_name]


class SpacyEntityExtractor:
    """EntityExtractor implementation using a spaCy pipeline.

    When spaCy or the model cannot be loaded, the failure is logged once
    and every call is answered by HeuristicEntityExtractor instead.
    """

    def __init__(self, model_name: str = DEFAULT_SPACY_MODEL):
        self.model_name = model_name
        self._nlp = None
        self._load_failed = False
        self._fallback = HeuristicEntityExtractor()

    def _load_model(self):
        if self._nlp is None and not self._load_failed:
            try:
                self._nlp = get_nlp(self.model_name)
            except (ImportError, OSError) as e:
                self._load_failed = True
                logger.warning(
                    "spaCy unavailable, using heuristic extraction | model=%s error=%s: %s",
                    self.model_name, type(e).__name__, e,
                )
                return None
        return self._nlp

    @property
    def available(self) -> bool:
        return self._load_model() is not None

    def entities(self, text: str) -> list[str]:
        if not text:
            return []
        nlp = self._load_model()
        if nlp is None:
            return self._fallback.entities(text)
        return [
            ent.text for ent in nlp(text).ents
            if ent.label_ in ENTITY_TYPES and len(ent.text) > 2
            and ent.text.lower() not in ALL_STOP
        ]

    def capitalized_nouns(self, text: str) -> list[str]:
        if not text:
            return []
        nlp = self._load_model()
        if nlp is None:
            return self._fallback.capitalized_nouns(text)
        return [
            tok.text for tok in nlp(text)
            if tok.pos_ in NOUN_POS and tok.text[:1].isupper()
            and len(tok.text) > 2 and tok.text.lower() not in ALL_STOP
        ]

    def keywords(self, text: str) -> list[str]:
        if not text:
            return []
        nlp = self._load_model()
        if nlp is None:
            return self._fallback.keywords(text)
        words = [
            tok.text.lower() for tok in nlp(text)
            if tok.pos_ in KEYWORD_POS and len(tok.text) > 3
            and tok.text.lower() not in ALL_STOP
        ]
        return list(dict.fromkeys(words))
