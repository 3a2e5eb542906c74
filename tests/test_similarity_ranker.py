"""Tests for relevance ranking."""

import pytest
from conftest import StubSearchService, WordTokenizer, words

from context.context_items import ContentItem, DocumentItem, ResourceItem
from packing.item_adapters import CONTENT, DOCUMENTS, RESOURCES
from reranking.similarity_ranker import SimilarityRanker


def make_ranker(service, user, max_text_tokens=4096):
    return SimilarityRanker(service, user, max_text_tokens=max_text_tokens, tokenizer=WordTokenizer())


@pytest.mark.asyncio
async def test_single_item_skips_search(user):
    service = StubSearchService()
    items = [DocumentItem(doc_id="d1", title="one", content="x")]

    ranked = await make_ranker(service, user).rank("q", items, DOCUMENTS)

    assert ranked == items
    assert service.calls == []


@pytest.mark.asyncio
async def test_empty_skips_search(user):
    service = StubSearchService()

    assert await make_ranker(service, user).rank("q", [], DOCUMENTS) == []
    assert service.calls == []


@pytest.mark.asyncio
async def test_documents_reordered_by_relevance(user):
    service = StubSearchService(scores={"low": 1, "high": 3, "mid": 2})
    items = [
        DocumentItem(doc_id="d-low", title="low", content="a"),
        DocumentItem(doc_id="d-high", title="high", content="b"),
        DocumentItem(doc_id="d-mid", title="mid", content="c"),
    ]

    ranked = await make_ranker(service, user).rank("q", items, DOCUMENTS)

    assert [d.doc_id for d in ranked] == ["d-high", "d-mid", "d-low"]
    # The input objects come back, not copies
    assert ranked[0] is items[1]


@pytest.mark.asyncio
async def test_ranking_request_shape(user):
    service = StubSearchService()
    items = [
        ResourceItem(resource_id="r1", title="one", content="a", metadata={"use_whole_content": True}),
        ResourceItem(resource_id="r2", title="two", content="b"),
    ]

    await make_ranker(service, user).rank("q", items, RESOURCES)

    (_, documents, k, need_chunk), = service.calls_of("in_memory")
    assert k == 2
    assert need_chunk is False
    assert documents[0].metadata == {
        "use_whole_content": True,
        "title": "one",
        "node_type": "resource",
        "resource_id": "r1",
    }


@pytest.mark.asyncio
async def test_text_clipped_before_ranking(user):
    service = StubSearchService()
    items = [
        DocumentItem(doc_id="d1", title="long", content=words(50)),
        DocumentItem(doc_id="d2", title="short", content=words(3)),
    ]

    await make_ranker(service, user, max_text_tokens=10).rank("q", items, DOCUMENTS)

    (_, documents, _, _), = service.calls_of("in_memory")
    assert documents[0].text == words(10)
    assert documents[1].text == words(3)


@pytest.mark.asyncio
async def test_zero_text_tokens_sends_empty_text(user):
    service = StubSearchService()
    items = [
        DocumentItem(doc_id="d1", title="one", content=words(5)),
        DocumentItem(doc_id="d2", title="two", content=words(5)),
    ]

    await make_ranker(service, user, max_text_tokens=0).rank("q", items, DOCUMENTS)

    (_, documents, _, _), = service.calls_of("in_memory")
    assert [d.text for d in documents] == ["", ""]


@pytest.mark.asyncio
async def test_unmatched_and_missing_ids_dropped(user):
    service = StubSearchService(scores={"kept": 2})
    items = [
        DocumentItem(doc_id=None, title="no-id", content="a"),
        DocumentItem(doc_id="d1", title="kept", content="b"),
    ]

    ranked = await make_ranker(service, user).rank("q", items, DOCUMENTS)

    assert [d.doc_id for d in ranked] == ["d1"]


@pytest.mark.asyncio
async def test_content_items_rebuilt_from_response(user):
    service = StubSearchService(scores={"second": 2, "first": 1})
    items = [
        ContentItem(content="alpha", metadata={"title": "first", "domain": "skill", "entity_type": "skill"}),
        ContentItem(content="beta", metadata={"title": "second", "domain": "workspace", "entity_type": "note"}),
    ]

    ranked = await make_ranker(service, user).rank("q", items, CONTENT)

    assert [c.content for c in ranked] == ["beta", "alpha"]
    assert ranked[0].metadata["title"] == "second"
    assert ranked[0].metadata["node_type"] == "note"


@pytest.mark.asyncio
async def test_failure_propagates(user):
    service = StubSearchService(error=ConnectionError("search down"))
    items = [DocumentItem(doc_id="a"), DocumentItem(doc_id="b")]

    with pytest.raises(ConnectionError, match="search down"):
        await make_ranker(service, user).rank("q", items, DOCUMENTS)


@pytest.mark.asyncio
async def test_ranking_is_deterministic(user):
    service = StubSearchService(scores={"a": 1, "b": 1, "c": 5})
    items = [DocumentItem(doc_id=t, title=t) for t in "abc"]
    ranker = make_ranker(service, user)

    first = await ranker.rank("q", items, DOCUMENTS)
    second = await ranker.rank("q", items, DOCUMENTS)

    assert first == second
