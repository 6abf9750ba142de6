"""Sentence embeddings for same-story detection.

This module provides title embeddings using the BGE-small-en-v1.5 model
via sentence-transformers. The cluster engine compares titles by cosine
similarity when an embedder is available, and falls back to keyword
overlap when it is not.

Model: BAAI/bge-small-en-v1.5
    - 384 dimensions
    - Fast inference on CPU
    - English only

Availability:
    ``SentenceEmbedder.available`` loads the model on first access and
    reports whether that succeeded. A missing package or a model that
    cannot be downloaded makes the embedder unavailable for the rest of
    the process; the failure is logged once.

Usage:
    >>> from nlp.embeddings import SentenceEmbedder
    >>> embedder = SentenceEmbedder()
    >>> if embedder.available:
    ...     vectors = embedder.encode_batch(["text1", "text2"])
"""

import logging

import numpy as np

logger = logging.getLogger(__name__)

# Model configuration
MODEL_NAME = "BAAI/bge-small-en-v1.5"
EMBEDDING_DIM = 384


class SentenceEmbedder:
    """Wrapper for a sentence-transformers embedding model.

    The model is loaded lazily on first use and reused afterwards.

    Attributes:
        model_name: HuggingFace model identifier
        dim: Embedding dimension size
    """

    def __init__(self, model_name: str = MODEL_NAME, dim: int = EMBEDDING_DIM):
        self.model_name = model_name
        self.dim = dim
        self._model = None
        self._load_failed = False

    def _load_model(self):
        """Lazily load the sentence-transformers model."""
        if self._model is None and not self._load_failed:
            logger.info("Loading embedding model: %s", self.model_name)
            try:
                from sentence_transformers import SentenceTransformer
                self._model = SentenceTransformer(self.model_name)
            except Exception as e:
                self._load_failed = True
                logger.warning(
                    "Embedding model unavailable, using keyword overlap | model=%s error=%s: %s",
                    self.model_name, type(e).__name__, e,
                )
                return None
            logger.info("Embedding model loaded | dim=%d", self.dim)
        return self._model

    @property
    def available(self) -> bool:
        """True when the model is (or can be) loaded."""
        return self._load_model() is not None

    def encode_batch(self, texts: list[str], batch_size: int = 32) -> np.ndarray:
        """Encode multiple texts to normalized embedding vectors.

        Args:
            texts: List of input texts
            batch_size: Batch size for encoding

        Returns:
            numpy array of shape (len(texts), dim) with float32 values

        Raises:
            RuntimeError: If the model is not available
        """
        if not texts:
            return np.array([], dtype=np.float32).reshape(0, self.dim)

        model = self._load_model()
        if model is None:
            raise RuntimeError(f"Embedding model {self.model_name} is not available")

        embeddings = model.encode(
            texts,
            convert_to_numpy=True,
            normalize_embeddings=True,
            batch_size=batch_size,
            show_progress_bar=False,
        )
        return embeddings.astype(np.float32)


def cosine_similarity_matrix(vectors: np.ndarray) -> np.ndarray:
    """Pairwise cosine similarity of row vectors.

    Zero vectors have similarity 0 with everything.
    """
    vectors = np.asarray(vectors, dtype=np.float64)
    norms = np.linalg.norm(vectors, axis=1)
    safe = np.where(norms > 0, norms, 1.0)
    unit = vectors / safe[:, None]
    sims = unit @ unit.T
    zero = norms == 0
    sims[zero, :] = 0.0
    sims[:, zero] = 0.0
    return sims
