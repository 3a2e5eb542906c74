"""
Embedding service used by the reference search backend.

Vectors are normalized to unit length so a dot product is a cosine
similarity. Query and stored vectors must come from the same model.
"""

import logging
from typing import List, Optional

import numpy as np
from sentence_transformers import SentenceTransformer

from shared.config import EmbeddingConfig, settings

logger = logging.getLogger(__name__)


class EmbeddingService:
    """
    Sentence-transformers embedding service.

    Usage:
        service = EmbeddingService()
        vectors = service.embed_batch(["text1", "text2"])
    """

    def __init__(self, config: Optional[EmbeddingConfig] = None):
        self.config = config or settings.embedding
        self._model: Optional[SentenceTransformer] = None

    @property
    def model(self) -> SentenceTransformer:
        """Lazy load the model."""
        if self._model is None:
            logger.info(f"Loading embedding model: {self.config.model_name}")
            self._model = SentenceTransformer(self.config.model_name)
        return self._model

    @staticmethod
    def preprocess_text(text: str) -> str:
        """Collapse whitespace. Keep this stable across index and query."""
        return " ".join((text or "").split())

    def embed_batch(self, texts: List[str]) -> np.ndarray:
        """
        Embed a batch of texts.

        Returns:
            Array of shape (len(texts), dimension)
        """
        if not texts:
            return np.zeros((0, 0), dtype=np.float32)

        vectors = self.model.encode(
            [self.preprocess_text(t) for t in texts],
            show_progress_bar=False,
            convert_to_numpy=True,
        )

        if self.config.normalize:
            norms = np.linalg.norm(vectors, axis=1, keepdims=True)
            vectors = vectors / (norms + 1e-10)

        return vectors

    def __call__(self, texts: List[str]) -> np.ndarray:
        return self.embed_batch(texts)


_embedding_service: Optional[EmbeddingService] = None


def get_embedding_service(config: Optional[EmbeddingConfig] = None) -> EmbeddingService:
    """Get or create the global embedding service."""
    global _embedding_service
    if _embedding_service is None or config is not None:
        _embedding_service = EmbeddingService(config)
    return _embedding_service
