"""
Top-level context composition.

Splits an overall token budget across content, resources and
documents, packs each category on its own, and offers a
whole-workspace mode that builds context straight from search.
"""

import logging
from dataclasses import replace
from typing import Dict, List, Optional, Tuple, Union

from context.chunk_assembly import assemble_chunks
from context.context_budgeting import CategoryBudgets, Tokenizer, get_tokenizer, split_budget
from context.context_items import DocumentItem, Fragment, MentionedContext, ResourceItem
from reranking.similarity_ranker import SimilarityRanker
from retrieval.fragment_retriever import FragmentRetriever
from retrieval.search_service import SEARCH_DOMAINS, SearchService, SearchUser
from shared.config import BudgetSplitConfig, PackingConfig, settings

from .category_packer import CategoryPacker
from .item_adapters import CONTENT, DOCUMENTS, RESOURCES

logger = logging.getLogger(__name__)

WorkspaceItem = Union[ResourceItem, DocumentItem]


class ContextComposer:
    """
    Assemble a budgeted prompt context from mentioned items or the workspace.

    Calls are sequential: one category after the other, one recall at a
    time. Wrap compose() in asyncio.wait_for to bound latency.

    Usage:
        composer = ContextComposer(service, SearchUser(uid="u-1"))
        packed = await composer.compose(query, mentioned, max_tokens=8000)
    """

    def __init__(
        self,
        service: SearchService,
        user: SearchUser,
        packing_config: Optional[PackingConfig] = None,
        split_config: Optional[BudgetSplitConfig] = None,
        tokenizer: Optional[Tokenizer] = None,
    ):
        self.split_config = split_config or settings.budget_split
        self.tokenizer = tokenizer or get_tokenizer()

        packing_config = packing_config or settings.packing
        self.retriever = FragmentRetriever(service, user, limit=packing_config.retrieval_limit)
        ranker = SimilarityRanker(
            service,
            user,
            max_text_tokens=packing_config.max_need_recall_tokens,
            tokenizer=self.tokenizer,
        )

        self.packers: Dict[str, CategoryPacker] = {
            adapter.category: CategoryPacker(
                adapter, ranker, self.retriever, config=packing_config, tokenizer=self.tokenizer
            )
            for adapter in (CONTENT, RESOURCES, DOCUMENTS)
        }

    def split(self, max_tokens: int) -> CategoryBudgets:
        return split_budget(max_tokens, self.split_config)

    async def compose(
        self,
        query: str,
        mentioned_context: MentionedContext,
        max_tokens: int,
    ) -> MentionedContext:
        """
        Pack every category of mentioned_context into its share of max_tokens.

        Args:
            query: User query
            mentioned_context: Candidate items
            max_tokens: Overall token budget

        Returns:
            New MentionedContext with the three lists packed
        """
        budgets = self.split(max_tokens)
        logger.info(
            f"Composing context for {max_tokens} tokens: content={budgets.content}, "
            f"resource={budgets.resource}, document={budgets.document}"
        )

        content_list = await self.packers["content"].pack(
            query, mentioned_context.content_list, budgets.content
        )
        resources = await self.packers["resource"].pack(
            query, mentioned_context.resources, budgets.resource
        )
        documents = await self.packers["document"].pack(
            query, mentioned_context.documents, budgets.document
        )

        return replace(
            mentioned_context,
            content_list=content_list,
            resources=resources,
            documents=documents,
        )

    async def search_whole_space(self, query: str) -> List[WorkspaceItem]:
        """
        Build context from one search over the whole workspace.

        Fragments are grouped by (domain, id) in first-seen order and each
        group becomes one resource or document item. No per-category
        budget applies; the search limit bounds the result.
        """
        chunks = await self.retriever.retrieve_indexed(
            query,
            entities=[],
            domains=list(SEARCH_DOMAINS),
            limit=self.split_config.whole_space_limit,
        )

        grouped: Dict[Tuple[str, str], List[Fragment]] = {}
        for chunk in chunks:
            key = ((chunk.metadata or {}).get("domain"), chunk.id)
            grouped.setdefault(key, []).append(chunk)

        result: List[WorkspaceItem] = []
        for (domain, entity_id), group in grouped.items():
            first = group[0].metadata or {}
            fields = dict(
                title=first.get("title") or "",
                content=assemble_chunks(group),
                data={"url": first.get("url")},
            )
            if domain == "resource":
                result.append(ResourceItem(resource_id=entity_id, **fields))
            elif domain == "document":
                result.append(DocumentItem(doc_id=entity_id, **fields))
            else:
                logger.warning(f"Skipping workspace result with unknown domain {domain!r}")

        logger.info(f"Whole-space search: {len(chunks)} fragments -> {len(result)} items")
        return result
