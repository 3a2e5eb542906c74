"""
Fragment Retrieval Module.

Recall the most relevant fragments of items too large to include whole.

This module implements:
- The SearchService interface the pipeline depends on
- Indexed recall (entity-scoped search over the knowledge base)
- In-memory recall (index free text on the fly)
- A reference SearchService over ChromaDB

Usage:
    from retrieval import FragmentRetriever, SearchUser, VectorSearchService

    retriever = FragmentRetriever(VectorSearchService(), SearchUser(uid="u-1"))
    chunks = await retriever.retrieve_in_memory(query, long_text)
"""

from .fragment_retriever import FragmentRetriever
from .search_service import (
    Entity,
    FragmentResponse,
    SearchRequest,
    SearchResponse,
    SearchResultItem,
    SearchService,
    SearchUser,
    Snippet,
)
from .vector_search_service import VectorSearchService, VectorStore

__all__ = [
    "FragmentRetriever",
    "SearchService",
    "SearchUser",
    "SearchRequest",
    "SearchResponse",
    "SearchResultItem",
    "Snippet",
    "Entity",
    "FragmentResponse",
    "VectorSearchService",
    "VectorStore",
]
