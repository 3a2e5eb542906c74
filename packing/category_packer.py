"""
Greedy token-budget packing of one item category.

Given items of one category and a token budget, decide for each item
whether to include it whole, include only its most relevant fragments,
or leave it out.

Two passes over the ranked items:
- Primary pass: most relevant items first, up to a fraction of the
  budget. Oversized items, and items that do not ask to be included
  whole, are reduced to their recalled fragments.
- Remainder pass: short items are always kept; long ones are recalled
  and their fragments truncated to whatever budget is left.

The primary pass does not cap recalled fragments, so one oversized
item may push the total past the budget before the early exit fires.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from context.chunk_assembly import assemble_chunks, truncate_chunks
from context.context_budgeting import Tokenizer, get_tokenizer
from context.context_items import ContextItem, wants_whole_content
from context.exceptions import check_budget
from reranking.similarity_ranker import SimilarityRanker
from retrieval.fragment_retriever import FragmentRetriever
from shared.config import PackingConfig, settings

from .item_adapters import ItemAdapter

logger = logging.getLogger(__name__)


@dataclass
class PackingResult:
    """Packed items plus the tokens they consume."""

    items: List[ContextItem] = field(default_factory=list)
    used_tokens: int = 0
    recalled: int = 0


class CategoryPacker:
    """
    Pack one category of context items into a token budget.

    Usage:
        packer = CategoryPacker(DOCUMENTS, ranker, retriever)
        documents = await packer.pack(query, documents, budget=2400)
    """

    def __init__(
        self,
        adapter: ItemAdapter,
        ranker: SimilarityRanker,
        retriever: FragmentRetriever,
        config: Optional[PackingConfig] = None,
        tokenizer: Optional[Tokenizer] = None,
    ):
        """
        Args:
            adapter: Accessors for the item category
            ranker: Relevance ranker
            retriever: Fragment retriever for oversized items
            config: Packing thresholds (settings.packing if None)
            tokenizer: Tokenizer for budget accounting
        """
        self.adapter = adapter
        self.ranker = ranker
        self.retriever = retriever
        self.config = config or settings.packing
        self.tokenizer = tokenizer or get_tokenizer()

    @property
    def relevant_ratio(self) -> float:
        return self.config.relevant_ratios[self.adapter.category]

    @property
    def short_ratio(self) -> float:
        return self.config.short_ratios[self.adapter.category]

    def _count(self, text: str) -> int:
        return self.tokenizer.count(text)

    async def _recall(
        self,
        query: str,
        item: ContextItem,
        max_tokens: Optional[int] = None,
    ) -> ContextItem:
        chunks = await self.adapter.fetch_fragments(self.retriever, query, item)
        if max_tokens is not None:
            chunks = truncate_chunks(chunks, max_tokens, token_counter=self._count)
        return self.adapter.with_content(item, assemble_chunks(chunks))

    async def pack(self, query: str, items: Sequence[ContextItem], budget: int) -> List[ContextItem]:
        """
        Pack items into budget.

        Returns:
            Included items, primary-pass inclusions first
        """
        result = await self.pack_with_usage(query, items, budget)
        return result.items

    async def pack_with_usage(
        self,
        query: str,
        items: Sequence[ContextItem],
        budget: int,
    ) -> PackingResult:
        """
        Pack items into budget and report token usage.

        Args:
            query: User query driving ranking and recall
            items: Candidate items of this category
            budget: Token budget for the category

        Returns:
            PackingResult
        """
        check_budget(budget)
        result = PackingResult()
        if not items:
            return result

        primary_cutoff = math.floor(budget * self.relevant_ratio)
        # Reported only, the remainder pass does not enforce it
        short_cutoff = math.floor(budget * self.short_ratio)

        ranked = await self.ranker.rank(query, items, self.adapter)

        # 1. Primary pass, in relevance order
        for item in ranked:
            item_tokens = self._count(self.adapter.content_of(item))

            if (
                item_tokens > self.config.max_need_recall_tokens
                or not wants_whole_content(item)
            ):
                packed = await self._recall(query, item)
                packed_tokens = self._count(self.adapter.content_of(packed))
                result.items.append(packed)
                result.used_tokens += packed_tokens
                result.recalled += 1
                logger.debug(
                    f"[{self.adapter.category}] recalled {item_tokens} -> {packed_tokens} tokens"
                )
            elif result.used_tokens + item_tokens <= primary_cutoff:
                result.items.append(item)
                result.used_tokens += item_tokens
            else:
                break

            if result.used_tokens >= primary_cutoff:
                break

        # 2. Remainder pass
        for item in ranked[len(result.items):]:
            item_tokens = self._count(self.adapter.content_of(item))

            if item_tokens < self.config.short_content_threshold:
                result.items.append(item)
                result.used_tokens += item_tokens
            else:
                remaining_tokens = budget - result.used_tokens
                packed = await self._recall(query, item, max_tokens=remaining_tokens)
                result.items.append(packed)
                result.used_tokens += self._count(self.adapter.content_of(packed))
                result.recalled += 1

            if result.used_tokens >= budget:
                break

        logger.info(
            f"Packed {len(result.items)}/{len(items)} {self.adapter.category} items: "
            f"{result.used_tokens}/{budget} tokens "
            f"(primary cutoff {primary_cutoff}, short share {short_cutoff}, "
            f"{result.recalled} recalled)"
        )
        return result
