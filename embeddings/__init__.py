"""
Embedding Module.

Unit-normalized sentence embeddings for the reference search service.

Usage:
    from embeddings import get_embedding_service

    vectors = get_embedding_service().embed_batch(["text1", "text2"])
"""

from .embedder import EmbeddingService, get_embedding_service

__all__ = [
    "EmbeddingService",
    "get_embedding_service",
]
