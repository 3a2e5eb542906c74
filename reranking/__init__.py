"""
Relevance Ranking Module.

Order candidate context items by similarity to the query before packing,
so the budget goes to the most relevant items first.

Usage:
    from reranking import SimilarityRanker

    ranker = SimilarityRanker(service, user)
    ranked = await ranker.rank(query, items, adapter)
"""

from .similarity_ranker import SimilarityRanker

__all__ = [
    "SimilarityRanker",
]
