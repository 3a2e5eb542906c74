"""Tests for indexed and in-memory fragment recall."""

from unittest.mock import AsyncMock

import pytest
from conftest import StubSearchService, result

from context.context_items import Fragment
from retrieval.fragment_retriever import FragmentRetriever
from retrieval.search_service import Entity, FragmentResponse, SearchResponse


@pytest.mark.asyncio
async def test_indexed_request(user):
    service = StubSearchService()
    retriever = FragmentRetriever(service, user, limit=10)

    await retriever.retrieve_indexed(
        "payment terms", entities=[Entity("d1", "document")], domains=["document"]
    )

    (_, request, enable_reranker), = service.calls_of("search")
    assert request.query == "payment terms"
    assert request.mode == "vector"
    assert request.limit == 10
    assert request.domains == ["document"]
    assert request.entities == [Entity("d1", "document")]
    assert enable_reranker is False


@pytest.mark.asyncio
async def test_explicit_zero_limit_is_kept(user):
    service = StubSearchService()
    retriever = FragmentRetriever(service, user, limit=0)

    await retriever.retrieve_indexed("q", entities=[], domains=["document"])
    await retriever.retrieve_indexed("q", entities=[], domains=["document"], limit=0)
    await retriever.retrieve_in_memory("q", "text")

    assert retriever.limit == 0
    assert [request.limit for _, request, _ in service.calls_of("search")] == [0, 0]
    (_, _, k, _), = service.calls_of("in_memory")
    assert k == 0


@pytest.mark.asyncio
async def test_indexed_joins_snippets_and_merges_metadata(user):
    service = StubSearchService(
        indexed={"d1": [result("d1", "document", "first", "second", title="Terms", url="http://x")]}
    )
    retriever = FragmentRetriever(service, user)

    fragments = await retriever.retrieve_indexed(
        "q", entities=[Entity("d1", "document")], domains=["document"]
    )

    assert fragments == [
        Fragment(
            id="d1",
            text="first\n\nsecond",
            metadata={"url": "http://x", "title": "Terms", "domain": "document"},
        )
    ]


@pytest.mark.asyncio
async def test_indexed_result_without_snippets(user):
    service = StubSearchService(indexed={"r1": [result("r1", "resource")]})
    retriever = FragmentRetriever(service, user)

    fragments = await retriever.retrieve_indexed(
        "q", entities=[Entity("r1", "resource")], domains=["resource"]
    )

    assert fragments[0].text == ""


@pytest.mark.asyncio
async def test_indexed_empty_response(user):
    service = AsyncMock()
    service.search.return_value = SearchResponse(data=[])

    retriever = FragmentRetriever(service, user)

    assert await retriever.retrieve_indexed("q", [], ["resource", "document"]) == []


@pytest.mark.asyncio
async def test_in_memory_request(user):
    service = AsyncMock()
    service.in_memory_search_with_indexing.return_value = FragmentResponse(
        data=[Fragment("chunk", start=3)]
    )
    retriever = FragmentRetriever(service, user, limit=10)

    fragments = await retriever.retrieve_in_memory(
        "q", "some long text", entity_id="e1", title="Notes", entity_type="note"
    )

    assert fragments == [Fragment("chunk", start=3)]
    call = service.in_memory_search_with_indexing.await_args
    assert call.args == (user,)
    assert call.kwargs["k"] == 10
    assert call.kwargs["need_chunk"] is True
    assert call.kwargs["filter"] is None
    assert call.kwargs["content"].text == "some long text"
    assert call.kwargs["content"].metadata == {
        "node_type": "note",
        "entity_type": "note",
        "title": "Notes",
        "entity_id": "e1",
        "tenant_id": "user-1",
    }


@pytest.mark.asyncio
async def test_failure_propagates(user):
    service = StubSearchService(error=TimeoutError("slow"))
    retriever = FragmentRetriever(service, user)

    with pytest.raises(TimeoutError):
        await retriever.retrieve_indexed("q", [Entity("d1", "document")], ["document"])

    with pytest.raises(TimeoutError):
        await retriever.retrieve_in_memory("q", "text")
