"""Tests for nlp package (heuristic extractor, sentiment bands, similarity)."""

import sys
from unittest.mock import patch

import numpy as np
import pytest

from nlp.base import EntityExtractor, HeuristicEntityExtractor, TextEmbedder, is_title_case, tokenize
from nlp.embeddings import SentenceEmbedder, cosine_similarity_matrix
from nlp.entities import SpacyEntityExtractor
from nlp.sentiment import SentimentLabel, TransformerSentimentScorer, label_for


@pytest.fixture
def extractor() -> HeuristicEntityExtractor:
    return HeuristicEntityExtractor()


class TestHeuristicEntityExtractor:
    def test_is_entity_extractor(self, extractor) -> None:
        assert isinstance(extractor, EntityExtractor)

    def test_keywords(self, extractor) -> None:
        assert extractor.keywords("SpaceX launches new rocket from Florida") == [
            "spacex", "launches", "rocket", "florida",
        ]

    def test_keywords_unique(self, extractor) -> None:
        assert extractor.keywords("Rocket after rocket after rocket") == ["rocket"]

    def test_capitalized_nouns(self, extractor) -> None:
        assert extractor.capitalized_nouns("The SpaceX rocket lands in Florida") == ["SpaceX", "Florida"]

    def test_entity_runs(self, extractor) -> None:
        entities = extractor.entities("Shares of electric carmaker fall as Elon Musk meets regulators in Brussels")
        assert "Elon Musk" in entities
        assert "Brussels" in entities

    def test_title_case_headline(self, extractor) -> None:
        entities = extractor.entities("Tesla Shares Rally After Strong Quarter")
        assert "Tesla" in entities
        assert "Tesla Shares Rally" not in entities

    def test_tokenize_drops_numbers(self) -> None:
        assert tokenize("3 dead, 12 hurt in U.S. storm") == ["dead", "hurt", "in", "U.S", "storm"]

    def test_is_title_case(self) -> None:
        assert is_title_case(tokenize("Markets Rally As Fed Holds Rates"))
        assert not is_title_case(tokenize("Markets rally as the central bank holds rates"))


class TestSentimentLabels:
    @pytest.mark.parametrize("score,label", [
        (0.9, SentimentLabel.POSITIVE),
        (0.3, SentimentLabel.POSITIVE),
        (-0.3, SentimentLabel.NEGATIVE),
        (-1.0, SentimentLabel.NEGATIVE),
        (0.05, SentimentLabel.NEUTRAL),
        (-0.1, SentimentLabel.NEUTRAL),
        (0.2, SentimentLabel.MIXED),
        (-0.25, SentimentLabel.MIXED),
    ])
    def test_bands(self, score, label) -> None:
        assert label_for(score).label == label

    def test_confidence(self) -> None:
        assert label_for(0.9).confidence == 1.0
        assert label_for(0.4).confidence == pytest.approx(0.9)
        assert label_for(0.0).confidence == 0.8
        assert label_for(0.2).confidence == 0.6

    def test_clamped(self) -> None:
        assert label_for(3.0).score == 1.0


class TestTransformerSentimentScorer:
    @patch("nlp.sentiment._load_pipeline")
    def test_signed_score(self, mock_load) -> None:
        mock_load.return_value = lambda text: [{"label": "NEGATIVE", "score": 0.9}]
        assert TransformerSentimentScorer("any").score("Markets crash") == pytest.approx(-0.9)

        mock_load.return_value = lambda text: [{"label": "POSITIVE", "score": 0.7}]
        assert TransformerSentimentScorer("any").score("Markets soar") == pytest.approx(0.7)

    def test_blank_text(self) -> None:
        assert TransformerSentimentScorer("any").score("  ") == 0.0

    @patch("nlp.sentiment._load_pipeline")
    def test_unavailable_after_failed_load(self, mock_load) -> None:
        mock_load.side_effect = OSError("model not found")
        scorer = TransformerSentimentScorer("missing/model")

        assert not scorer.available
        assert not scorer.available
        with pytest.raises(RuntimeError):
            scorer.score("Markets crash")
        assert mock_load.call_count == 1


class TestSpacyEntityExtractor:
    def test_missing_spacy_uses_heuristics(self, extractor) -> None:
        title = "SpaceX launches new rocket from Florida"
        with patch.dict(sys.modules, {"spacy": None}):
            spacy_extractor = SpacyEntityExtractor("not_installed_model")
            assert not spacy_extractor.available
            assert spacy_extractor.keywords(title) == extractor.keywords(title)
            assert spacy_extractor.entities(title) == extractor.entities(title)
            assert spacy_extractor.capitalized_nouns(title) == extractor.capitalized_nouns(title)


class TestEmbeddings:
    def test_cosine_matrix(self) -> None:
        sims = cosine_similarity_matrix(np.array([[1.0, 0.0], [2.0, 0.0], [0.0, 0.0], [0.0, 3.0]]))
        assert sims[0, 1] == pytest.approx(1.0)
        assert sims[0, 2] == 0.0
        assert sims[2, 2] == 0.0
        assert sims[0, 3] == pytest.approx(0.0)

    def test_unavailable_when_load_fails(self) -> None:
        embedder = SentenceEmbedder("missing/model")
        with patch.object(SentenceEmbedder, "_load_model", return_value=None):
            assert isinstance(embedder, TextEmbedder)
            assert not embedder.available
            with pytest.raises(RuntimeError):
                embedder.encode_batch(["text"])

    def test_empty_batch(self) -> None:
        assert SentenceEmbedder(dim=4).encode_batch([]).shape == (0, 4)
