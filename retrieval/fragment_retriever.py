"""
Fragment retrieval for items too large to include whole.

Two recall paths:
- Indexed: the item is already in the knowledge base, search it by id
- In-memory: the item is free text, index it on the fly and search it

Reranking is never enabled here; it is reserved for interactive search.
"""

import logging
from typing import List, Optional, Sequence

from context.context_items import Fragment
from shared.config import settings

from .search_service import Entity, SearchRequest, SearchService, SearchUser

logger = logging.getLogger(__name__)

SNIPPET_SEPARATOR = "\n\n"


class FragmentRetriever:
    """
    Fetch the fragments of an item most relevant to a query.

    Usage:
        retriever = FragmentRetriever(service, SearchUser(uid="u-1"))
        chunks = await retriever.retrieve_indexed(
            query, entities=[Entity("d-1", "document")], domains=["document"]
        )
    """

    def __init__(
        self,
        service: SearchService,
        user: SearchUser,
        limit: int = None,
    ):
        """
        Args:
            service: Search backend
            user: Tenant the searches run for
            limit: Fragments requested per call
        """
        self.service = service
        self.user = user
        self.limit = limit if limit is not None else settings.packing.retrieval_limit

    async def retrieve_indexed(
        self,
        query: str,
        entities: Sequence[Entity],
        domains: Sequence[str],
        limit: Optional[int] = None,
    ) -> List[Fragment]:
        """
        Search the persisted index, scoped to entities and domains.

        An empty entity list searches the whole workspace.

        Returns:
            One fragment per search result, snippets joined
        """
        request = SearchRequest(
            query=query,
            entities=list(entities),
            mode="vector",
            limit=limit if limit is not None else self.limit,
            domains=list(domains),
        )
        response = await self.service.search(self.user, request, enable_reranker=False)

        fragments = []
        for item in (response.data if response else None) or []:
            fragments.append(
                Fragment(
                    id=item.id,
                    text=SNIPPET_SEPARATOR.join(s.text for s in item.snippets or []),
                    metadata={
                        **(item.metadata or {}),
                        "title": item.title,
                        "domain": item.domain,
                    },
                )
            )

        logger.debug(
            f"Indexed recall: {len(fragments)} fragments for "
            f"{len(request.entities)} entities in {request.domains}"
        )
        return fragments

    async def retrieve_in_memory(
        self,
        query: str,
        content: str,
        entity_id: Optional[str] = None,
        title: Optional[str] = None,
        entity_type: Optional[str] = None,
    ) -> List[Fragment]:
        """
        Index raw text on the fly and return its most relevant chunks.

        Returns:
            Up to limit chunk fragments, most relevant first
        """
        doc = Fragment(
            text=content or "",
            metadata={
                "node_type": entity_type,
                "entity_type": entity_type,
                "title": title,
                "entity_id": entity_id,
                "tenant_id": self.user.uid,
            },
        )
        response = await self.service.in_memory_search_with_indexing(
            self.user,
            content=doc,
            query=query,
            k=self.limit,
            filter=None,
            need_chunk=True,
            additional_metadata={},
        )

        fragments = list((response.data if response else None) or [])
        logger.debug(f"In-memory recall: {len(fragments)} fragments for {title!r}")
        return fragments
