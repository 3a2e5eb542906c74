"""
Per-category item adapters.

The packer and ranker are written once and work on any item type
through an adapter. An adapter knows where an item keeps its text and
id, how to describe it to the ranking call, how to map ranked results
back to items, and which recall path to use for it.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Any, Dict, List, Optional, Sequence

from context.context_items import ContentItem, ContextItem, Fragment
from retrieval.fragment_retriever import FragmentRetriever
from retrieval.search_service import Entity

logger = logging.getLogger(__name__)


class ItemAdapter(ABC):
    """Accessors the packer needs for one item category."""

    category: str = ""
    id_field: Optional[str] = None

    def content_of(self, item: ContextItem) -> str:
        return item.content or ""

    def id_of(self, item: ContextItem) -> Optional[str]:
        if self.id_field is None:
            return None
        return getattr(item, self.id_field, None)

    def with_content(self, item: ContextItem, content: str) -> ContextItem:
        """Copy of item with its text replaced."""
        return replace(item, content=content)

    @abstractmethod
    def ranking_metadata(self, item: ContextItem) -> Dict[str, Any]:
        """Metadata sent along with the item's text to the ranking call."""

    def from_ranked(
        self,
        ranked: Sequence[Fragment],
        items: Sequence[ContextItem],
    ) -> List[ContextItem]:
        """
        Map ranked fragments back to the input items by id.

        Fragments whose id matches no item are dropped. Items without
        an id never match.
        """
        by_id = {}
        for item in items:
            item_id = self.id_of(item)
            if item_id is not None and item_id not in by_id:
                by_id[item_id] = item

        result = []
        for fragment in ranked:
            item = by_id.get((fragment.metadata or {}).get(self.id_field))
            if item is None:
                logger.debug(f"Dropping ranked {self.category} with no matching item")
                continue
            result.append(item)
        return result

    @abstractmethod
    async def fetch_fragments(
        self,
        retriever: FragmentRetriever,
        query: str,
        item: ContextItem,
    ) -> List[Fragment]:
        """Recall the fragments of item most relevant to query."""


class ContentAdapter(ItemAdapter):
    """Free text selections. Recalled by indexing the text on the fly."""

    category = "content"

    def ranking_metadata(self, item: ContentItem) -> Dict[str, Any]:
        metadata = item.metadata or {}
        return {
            **metadata,
            "title": metadata.get("title"),
            "node_type": metadata.get("entity_type"),
        }

    def from_ranked(
        self,
        ranked: Sequence[Fragment],
        items: Sequence[ContentItem],
    ) -> List[ContentItem]:
        # No id to join on: rebuild items from what the ranker returned
        return [
            ContentItem(content=fragment.text, metadata=dict(fragment.metadata or {}))
            for fragment in ranked
        ]

    async def fetch_fragments(
        self,
        retriever: FragmentRetriever,
        query: str,
        item: ContentItem,
    ) -> List[Fragment]:
        metadata = item.metadata or {}
        return await retriever.retrieve_in_memory(
            query,
            item.content,
            entity_id=metadata.get("entity_id"),
            title=metadata.get("title"),
            entity_type=metadata.get("domain"),
        )


class _IndexedAdapter(ItemAdapter):
    """Items stored in the knowledge base, recalled by entity search."""

    def ranking_metadata(self, item: ContextItem) -> Dict[str, Any]:
        return {
            **(item.metadata or {}),
            "title": item.title,
            "node_type": self.category,
            self.id_field: self.id_of(item),
        }

    async def fetch_fragments(
        self,
        retriever: FragmentRetriever,
        query: str,
        item: ContextItem,
    ) -> List[Fragment]:
        return await retriever.retrieve_indexed(
            query,
            entities=[Entity(entity_id=self.id_of(item), entity_type=self.category)],
            domains=[self.category],
        )


class DocumentAdapter(_IndexedAdapter):
    category = "document"
    id_field = "doc_id"


class ResourceAdapter(_IndexedAdapter):
    category = "resource"
    id_field = "resource_id"


CONTENT = ContentAdapter()
DOCUMENTS = DocumentAdapter()
RESOURCES = ResourceAdapter()
