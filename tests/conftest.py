"""Shared fixtures: a word-count tokenizer and a scripted search service."""

from typing import Any, Dict, List, Optional

import pytest

from context.context_budgeting import Tokenizer
from context.context_items import Fragment
from retrieval.search_service import (
    FragmentResponse,
    SearchResponse,
    SearchResultItem,
    SearchUser,
    Snippet,
)
from shared.config import PackingConfig


class WordTokenizer(Tokenizer):
    """One token per whitespace-separated word."""

    def __init__(self):
        super().__init__(encoding_name="words")

    def encode(self, text: str) -> List[str]:
        return (text or "").split()

    def decode(self, tokens: List[str]) -> str:
        return " ".join(tokens)

    def count(self, text: str) -> int:
        return len(self.encode(text))


def words(n: int, word: str = "w") -> str:
    return " ".join([word] * n)


def result(entity_id: str, domain: str, *snippets: str, **metadata) -> SearchResultItem:
    return SearchResultItem(
        id=entity_id,
        domain=domain,
        title=metadata.pop("title", entity_id),
        snippets=[Snippet(text=s) for s in snippets],
        metadata=metadata,
    )


class StubSearchService:
    """
    Scripted SearchService.

    - Ranking calls (list content) sort by scores[title], highest first
    - In-memory recall (need_chunk) returns recalled[title]
    - Indexed search returns indexed[entity_id] per entity, or workspace
      when no entities are given
    """

    def __init__(
        self,
        scores: Optional[Dict[str, float]] = None,
        recalled: Optional[Dict[str, List[Fragment]]] = None,
        indexed: Optional[Dict[str, List[SearchResultItem]]] = None,
        workspace: Optional[List[SearchResultItem]] = None,
        error: Optional[Exception] = None,
    ):
        self.scores = scores or {}
        self.recalled = recalled or {}
        self.indexed = indexed or {}
        self.workspace = workspace or []
        self.error = error
        self.calls: List[tuple] = []

    async def search(self, user, request, enable_reranker=False):
        self.calls.append(("search", request, enable_reranker))
        if self.error:
            raise self.error
        if not request.entities:
            return SearchResponse(data=list(self.workspace))
        data = []
        for entity in request.entities:
            data.extend(self.indexed.get(entity.entity_id, []))
        return SearchResponse(data=data)

    async def in_memory_search_with_indexing(
        self,
        user,
        content,
        query,
        k,
        filter=None,
        need_chunk=False,
        additional_metadata=None,
    ):
        self.calls.append(("in_memory", content, k, need_chunk))
        if self.error:
            raise self.error
        if need_chunk:
            title = content.metadata.get("title")
            return FragmentResponse(data=list(self.recalled.get(title, []))[:k])

        ranked = sorted(
            content,
            key=lambda doc: self.scores.get(doc.metadata.get("title"), 0),
            reverse=True,
        )
        return FragmentResponse(data=ranked[:k])

    def calls_of(self, kind: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == kind]


@pytest.fixture
def tokenizer() -> WordTokenizer:
    return WordTokenizer()


@pytest.fixture
def user() -> SearchUser:
    return SearchUser(uid="user-1")


@pytest.fixture
def packing_config() -> PackingConfig:
    return PackingConfig(max_need_recall_tokens=4096, short_content_threshold=100)
