"""
Relevance ranking of candidate context items.

Ranking runs through the search service's in-memory index: every
candidate is indexed as one document and the whole set is asked back
in similarity order. Text is clipped before indexing so the ranking
call stays cheap no matter how large the candidates are.
"""

import logging
from typing import TYPE_CHECKING, List, Sequence

from context.context_budgeting import Tokenizer, truncate_text
from context.context_items import ContextItem, Fragment
from retrieval.search_service import SearchService, SearchUser
from shared.config import settings

if TYPE_CHECKING:
    from packing.item_adapters import ItemAdapter

logger = logging.getLogger(__name__)


class SimilarityRanker:
    """
    Order items by similarity to a query, most relevant first.

    Usage:
        ranker = SimilarityRanker(service, user)
        ranked = await ranker.rank(query, documents, DOCUMENTS)
    """

    def __init__(
        self,
        service: SearchService,
        user: SearchUser,
        max_text_tokens: int = None,
        tokenizer: Tokenizer = None,
    ):
        """
        Args:
            service: Search backend
            user: Tenant the ranking call runs for
            max_text_tokens: Tokens of each item sent to the ranking call
            tokenizer: Tokenizer used to clip item text
        """
        self.service = service
        self.user = user
        self.max_text_tokens = (
            max_text_tokens if max_text_tokens is not None
            else settings.packing.max_need_recall_tokens
        )
        self.tokenizer = tokenizer

    async def rank(
        self,
        query: str,
        items: Sequence[ContextItem],
        adapter: "ItemAdapter",
    ) -> List[ContextItem]:
        """
        Rank items against query.

        Lists of zero or one item are returned as-is without calling
        the search service. Service failures propagate.

        Args:
            query: User query
            items: Candidate items of one category
            adapter: Accessors for the item category

        Returns:
            Items in descending relevance
        """
        if len(items) <= 1:
            return list(items)

        documents = [
            Fragment(
                text=truncate_text(
                    adapter.content_of(item), self.max_text_tokens, tokenizer=self.tokenizer
                ),
                metadata=adapter.ranking_metadata(item),
            )
            for item in items
        ]

        response = await self.service.in_memory_search_with_indexing(
            self.user,
            content=documents,
            query=query,
            k=len(documents),
            filter=None,
        )
        ranked = adapter.from_ranked(response.data or [], items)

        if len(ranked) != len(items):
            logger.warning(
                f"Ranking {adapter.category} returned {len(ranked)} of {len(items)} items"
            )
        else:
            logger.debug(f"Ranked {len(ranked)} {adapter.category} items")

        return ranked
