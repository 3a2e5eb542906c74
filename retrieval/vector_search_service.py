"""
Reference SearchService backed by ChromaDB and an in-memory cosine index.

- search(): queries an existing Chroma collection, filtered by tenant,
  domain and entity ids
- in_memory_search_with_indexing(): embeds ad-hoc content (optionally
  chunked) and ranks it by cosine similarity to the query

Blocking client and model calls run in a worker thread so the event
loop is never stalled.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

import chromadb
import numpy as np
from chromadb.config import Settings as ChromaSettings

from chunking.sentence_splitter import SentenceSplitter
from context.context_items import Fragment
from context.exceptions import SearchServiceError
from shared.config import settings

from .search_service import (
    FragmentResponse,
    SearchRequest,
    SearchResponse,
    SearchResultItem,
    SearchUser,
    Snippet,
)

logger = logging.getLogger(__name__)

EmbedFn = Callable[[List[str]], np.ndarray]


class VectorStore:
    """
    Read-side wrapper around a Chroma collection.

    Chunks are expected to carry tenant_id, domain, entity_id and title
    in their metadata.

    Usage:
        store = VectorStore(path="./chroma_data", collection_name="knowledge_v1")
        results = store.query(query_embedding, n_results=10, where={"domain": "document"})
    """

    def __init__(
        self,
        path: str = None,
        collection_name: str = None,
        host: str = None,
        port: int = None,
    ):
        self.path = path or settings.CHROMA_PATH
        self.collection_name = collection_name or settings.COLLECTION_NAME
        self.host = host if host is not None else settings.CHROMA_HOST
        self.port = port or settings.CHROMA_PORT

        self._client: Optional[chromadb.ClientAPI] = None
        self._collection = None

    @property
    def client(self) -> chromadb.ClientAPI:
        """Get or create Chroma client."""
        if self._client is None:
            if self.host:
                self._client = chromadb.HttpClient(host=self.host, port=self.port)
            else:
                self._client = chromadb.PersistentClient(
                    path=self.path,
                    settings=ChromaSettings(anonymized_telemetry=False),
                )
        return self._client

    @property
    def collection(self):
        """Get the collection. It must already exist."""
        if self._collection is None:
            self._collection = self.client.get_collection(name=self.collection_name)
        return self._collection

    def query(
        self,
        query_embedding: np.ndarray,
        n_results: int = 10,
        where: Optional[Dict] = None,
    ) -> Dict:
        """Query the collection with a precomputed embedding."""
        return self.collection.query(
            query_embeddings=[np.asarray(query_embedding).tolist()],
            n_results=n_results,
            where=where,
            include=["documents", "metadatas", "distances"],
        )

    def count(self) -> int:
        return self.collection.count()


def build_where(user: SearchUser, request: SearchRequest) -> Dict:
    """Chroma metadata filter for a tenant-scoped search request."""
    clauses: List[Dict[str, Any]] = [{"tenant_id": user.uid}]

    if request.domains:
        clauses.append({"domain": {"$in": list(request.domains)}})

    entity_ids = [e.entity_id for e in request.entities if e.entity_id is not None]
    if entity_ids:
        clauses.append({"entity_id": {"$in": entity_ids}})

    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}


def _matches(metadata: Dict[str, Any], filter: Optional[Dict[str, Any]]) -> bool:
    if not filter:
        return True
    return all(metadata.get(key) == value for key, value in filter.items())


class VectorSearchService:
    """
    SearchService implementation over Chroma and sentence embeddings.

    Usage:
        service = VectorSearchService()
        response = await service.search(user, SearchRequest(query="payment terms"))
    """

    def __init__(
        self,
        vector_store: Optional[VectorStore] = None,
        embed_fn: Optional[EmbedFn] = None,
        splitter: Optional[SentenceSplitter] = None,
    ):
        """
        Args:
            vector_store: Persisted index (created lazily from settings if None)
            embed_fn: Maps texts to unit-length vectors
            splitter: Chunker used when need_chunk is requested
        """
        self._vector_store = vector_store
        self._embed_fn = embed_fn
        self._splitter = splitter

    @property
    def vector_store(self) -> VectorStore:
        if self._vector_store is None:
            self._vector_store = VectorStore()
        return self._vector_store

    @property
    def embed_fn(self) -> EmbedFn:
        if self._embed_fn is None:
            from embeddings import get_embedding_service
            self._embed_fn = get_embedding_service()
        return self._embed_fn

    @property
    def splitter(self) -> SentenceSplitter:
        if self._splitter is None:
            self._splitter = SentenceSplitter()
        return self._splitter

    async def search(
        self,
        user: SearchUser,
        request: SearchRequest,
        enable_reranker: bool = False,
    ) -> SearchResponse:
        return await asyncio.to_thread(self._search, user, request, enable_reranker)

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
        return await asyncio.to_thread(
            self._in_memory_search,
            content,
            query,
            k,
            filter,
            need_chunk,
            additional_metadata or {},
        )

    def _search(
        self,
        user: SearchUser,
        request: SearchRequest,
        enable_reranker: bool,
    ) -> SearchResponse:
        if request.mode != "vector":
            raise SearchServiceError(f"Unsupported search mode: {request.mode}")

        where = build_where(user, request)
        try:
            query_vec = self.embed_fn([request.query])[0]
            results = self.vector_store.query(query_vec, n_results=request.limit, where=where)
        except Exception as e:
            raise SearchServiceError(f"Vector search failed: {e}") from e

        ids = (results.get("ids") or [[]])[0]
        texts = (results.get("documents") or [[]])[0]
        metadatas = (results.get("metadatas") or [[]])[0]
        distances = (results.get("distances") or [[]])[0]

        # One result item per entity, snippets in hit order
        items: Dict[tuple, SearchResultItem] = {}
        for i in range(len(ids)):
            metadata = dict(metadatas[i] or {})
            domain = metadata.get("domain", "")
            entity_id = metadata.get("entity_id", ids[i])
            key = (domain, entity_id)

            if key not in items:
                items[key] = SearchResultItem(
                    id=entity_id,
                    domain=domain,
                    title=metadata.get("title", ""),
                    metadata={
                        k: v for k, v in metadata.items()
                        if k not in ("domain", "entity_id", "title", "tenant_id")
                    },
                )
                items[key].metadata["score"] = 1 - (distances[i] / 2)
            items[key].snippets.append(Snippet(text=texts[i] or ""))

        data = list(items.values())
        if enable_reranker and len(data) > 1:
            data = self._rerank(request.query, data)

        logger.info(f"Search returned {len(ids)} chunks in {len(data)} entities")
        return SearchResponse(data=data)

    def _rerank(self, query: str, data: List[SearchResultItem]) -> List[SearchResultItem]:
        """Reorder results by cosine similarity of their joined snippets."""
        texts = [" ".join(s.text for s in item.snippets) for item in data]
        vectors = self.embed_fn(texts)
        query_vec = self.embed_fn([query])[0]
        scores = np.asarray(vectors) @ np.asarray(query_vec)
        order = np.argsort(-scores, kind="stable")
        return [data[i] for i in order]

    def _in_memory_search(
        self,
        content: Union[Fragment, Sequence[Fragment]],
        query: str,
        k: int,
        filter: Optional[Dict[str, Any]],
        need_chunk: bool,
        additional_metadata: Dict[str, Any],
    ) -> FragmentResponse:
        documents = [content] if isinstance(content, Fragment) else list(content)

        if need_chunk:
            candidates = []
            for doc in documents:
                candidates.extend(
                    self.splitter.split(doc.text, {**doc.metadata, **additional_metadata})
                )
        else:
            candidates = [
                Fragment(
                    text=doc.text,
                    metadata={**doc.metadata, **additional_metadata},
                    id=doc.id,
                    start=doc.start,
                )
                for doc in documents
            ]

        candidates = [c for c in candidates if _matches(c.metadata, filter)]
        if not candidates or k <= 0:
            return FragmentResponse(data=[])

        try:
            vectors = np.asarray(self.embed_fn([c.text for c in candidates]))
            query_vec = np.asarray(self.embed_fn([query])[0])
        except Exception as e:
            raise SearchServiceError(f"Embedding failed: {e}") from e

        scores = vectors @ query_vec
        order = np.argsort(-scores, kind="stable")[:k]

        logger.debug(f"In-memory search: {len(candidates)} candidates, returning {len(order)}")
        return FragmentResponse(data=[candidates[i] for i in order])
