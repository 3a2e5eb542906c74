"""
Search service interface consumed by the packing pipeline.

The pipeline never talks to a vector store directly. It is handed an
object implementing SearchService, which makes it trivial to swap in
a stub for tests or a remote service in production.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence, Union, runtime_checkable

from context.context_items import Fragment

SEARCH_DOMAINS = ("resource", "document")


@dataclass
class SearchUser:
    """Tenant on whose behalf a search runs."""

    uid: str


@dataclass
class Entity:
    """Reference to an indexed entity."""

    entity_id: Optional[str]
    entity_type: str


@dataclass
class SearchRequest:
    """Request against the persisted index."""

    query: str
    entities: List[Entity] = field(default_factory=list)
    mode: str = "vector"
    limit: int = 10
    domains: List[str] = field(default_factory=lambda: list(SEARCH_DOMAINS))


@dataclass
class Snippet:
    """Matched text inside a search result."""

    text: str


@dataclass
class SearchResultItem:
    """One entity returned by the persisted index."""

    id: str
    domain: str
    title: str = ""
    snippets: List[Snippet] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class SearchResponse:
    data: List[SearchResultItem] = field(default_factory=list)


@dataclass
class FragmentResponse:
    data: List[Fragment] = field(default_factory=list)


@runtime_checkable
class SearchService(Protocol):
    """
    Protocol for search backends.

    Implementations:
        - VectorSearchService: Chroma collection + in-memory cosine index
    """

    async def search(
        self,
        user: SearchUser,
        request: SearchRequest,
        enable_reranker: bool = False,
    ) -> SearchResponse:
        """Search the persisted index, scoped by entity and domain filters."""
        ...

    async def in_memory_search_with_indexing(
        self,
        user: SearchUser,
        content: Union[Fragment, Sequence[Fragment]],
        query: str,
        k: int,
        filter: Optional[Dict[str, Any]] = None,
        need_chunk: bool = False,
        additional_metadata: Optional[Dict[str, Any]] = None,
    ) -> FragmentResponse:
        """
        Index content on the fly and return the k fragments most similar
        to query, most similar first.

        With need_chunk the content is split into chunks before indexing
        and returned fragments carry start offsets.
        """
        ...
