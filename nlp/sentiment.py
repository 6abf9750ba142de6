"""Sentiment scoring for trend analysis.

The trend engine only needs a polarity score in [-1, 1] per article.
TransformerSentimentScorer wraps a HuggingFace text-classification
pipeline (loaded lazily); ``label_for`` turns a score into the
positive / negative / neutral / mixed label shown next to topics.

Label bands:
    score >= 0.3          positive   confidence min(score + 0.5, 1)
    score <= -0.3         negative   confidence min(|score| + 0.5, 1)
    |score| <= 0.1        neutral    confidence 0.8
    otherwise             mixed      confidence 0.6
"""

import logging
from enum import Enum

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_SENTIMENT_MODEL = "distilbert-base-uncased-finetuned-sst-2-english"


class SentimentLabel(str, Enum):
    POSITIVE = "Positive"
    NEGATIVE = "Negative"
    NEUTRAL = "Neutral"
    MIXED = "Mixed"


class SentimentResult(BaseModel):
    """Polarity score with a coarse label."""

    score: float = Field(ge=-1.0, le=1.0)
    label: SentimentLabel
    confidence: float = Field(ge=0.0, le=1.0)


def label_for(score: float) -> SentimentResult:
    """Band a polarity score into a SentimentResult."""
    score = max(-1.0, min(1.0, score))
    if score >= 0.3:
        return SentimentResult(score=score, label=SentimentLabel.POSITIVE, confidence=min(score + 0.5, 1.0))
    if score <= -0.3:
        return SentimentResult(score=score, label=SentimentLabel.NEGATIVE, confidence=min(abs(score) + 0.5, 1.0))
    if -0.1 <= score <= 0.1:
        return SentimentResult(score=score, label=SentimentLabel.NEUTRAL, confidence=0.8)
    return SentimentResult(score=score, label=SentimentLabel.MIXED, confidence=0.6)


def _load_pipeline(model_name: str):
    from transformers import pipeline

    logger.info("Loading sentiment model: %s", model_name)
    return pipeline("text-classification", model=model_name, truncation=True)


class TransformerSentimentScorer:
    """SentimentScorer backed by a transformers classification pipeline.

    The signed score is the probability of the predicted label, negated
    for negative predictions.
    """

    def __init__(self, model_name: str = DEFAULT_SENTIMENT_MODEL):
        self.model_name = model_name
        self._pipeline = None
        self._load_failed = False

    def _load_model(self):
        """Lazily load the pipeline; a failed load is not retried."""
        if self._pipeline is None and not self._load_failed:
            try:
                self._pipeline = _load_pipeline(self.model_name)
            except Exception as e:
                self._load_failed = True
                logger.warning(
                    "Sentiment model unavailable, trends carry no sentiment | model=%s error=%s: %s",
                    self.model_name, type(e).__name__, e,
                )
                return None
        return self._pipeline

    @property
    def available(self) -> bool:
        """True when the model is (or can be) loaded."""
        return self._load_model() is not None

    def score(self, text: str) -> float:
        """Signed polarity of text.

        Raises:
            RuntimeError: If the model is not available
        """
        if not text.strip():
            return 0.0
        model = self._load_model()
        if model is None:
            raise RuntimeError(f"Sentiment model {self.model_name} is not available")
        result = model(text[:512])[0]
        label = str(result["label"]).lower()
        prob = float(result["score"])
        if label.startswith("neg"):
            return -prob
        if label.startswith("neu"):
            return 0.0
        return prob
