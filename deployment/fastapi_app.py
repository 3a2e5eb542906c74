"""
FastAPI application for the context packing service.

Exposes:
- /context/pack: pack mentioned items into a token budget
- /context/workspace: build context from whole-workspace search
- /health
"""

import logging
import time
import uuid
from contextlib import asynccontextmanager
from dataclasses import asdict

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from context.context_budgeting import Tokenizer, get_tokenizer
from context.context_items import DocumentItem, ResourceItem
from context.exceptions import InvalidBudgetError, SearchServiceError
from packing.context_composer import ContextComposer
from retrieval.search_service import SearchService, SearchUser
from retrieval.vector_search_service import VectorSearchService
from shared.config import settings
from shared.schemas import (
    CategoryBudgetsModel,
    HealthResponse,
    MentionedContextModel,
    PackRequest,
    PackResponse,
    WorkspaceSearchRequest,
    WorkspaceSearchResponse,
)

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

__version__ = "0.1.0"

_search_service = None


def get_search_service() -> SearchService:
    """Get the global search service."""
    global _search_service
    if _search_service is None:
        _search_service = VectorSearchService()
    return _search_service


def get_default_tokenizer() -> Tokenizer:
    return get_tokenizer()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info(f"Starting context packing service v{__version__}")
    yield
    logger.info("Shutting down context packing service")


app = FastAPI(
    title="Context Packing Service",
    description="Token-budgeted prompt context assembly",
    version=__version__,
    lifespan=lifespan,
)


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Add request ID for tracing."""
    request_id = str(uuid.uuid4())[:8]
    request.state.request_id = request_id

    start_time = time.time()
    response = await call_next(request)

    duration_ms = (time.time() - start_time) * 1000
    logger.info(
        f"[{request_id}] {request.method} {request.url.path} "
        f"- {response.status_code} - {duration_ms:.1f}ms"
    )

    response.headers["X-Request-ID"] = request_id
    return response


@app.exception_handler(SearchServiceError)
async def search_error_handler(request: Request, exc: SearchServiceError):
    """Search backend failures surface as 503."""
    return JSONResponse(
        status_code=503,
        content={"error": "Search service unavailable", "detail": str(exc)},
    )


@app.exception_handler(InvalidBudgetError)
async def invalid_budget_handler(request: Request, exc: InvalidBudgetError):
    return JSONResponse(status_code=422, content={"error": "Invalid budget", "detail": str(exc)})


@app.get("/health", response_model=HealthResponse)
async def health_check(service: SearchService = Depends(get_search_service)):
    """Health check endpoint."""
    store = getattr(service, "vector_store", None)
    try:
        chunk_count = store.count() if store is not None else 0
        connected = store is not None
    except Exception as e:
        logger.warning(f"Vector store unreachable: {e}")
        chunk_count = 0
        connected = False

    return HealthResponse(
        status="healthy" if connected else "degraded",
        version=__version__,
        vector_store_connected=connected,
        chunk_count=chunk_count,
    )


@app.post("/context/pack", response_model=PackResponse)
async def pack_context(
    request: Request,
    body: PackRequest,
    service: SearchService = Depends(get_search_service),
    tokenizer: Tokenizer = Depends(get_default_tokenizer),
):
    """Pack mentioned items into the request's token budget."""
    request_id = getattr(request.state, "request_id", "unknown")

    try:
        composer = ContextComposer(service, SearchUser(uid=body.user_id), tokenizer=tokenizer)
        packed = await composer.compose(body.query, body.context.to_context(), body.max_tokens)

        return PackResponse(
            context=MentionedContextModel.from_context(packed),
            budgets=CategoryBudgetsModel(**asdict(composer.split(body.max_tokens))),
        )

    except (SearchServiceError, InvalidBudgetError):
        raise
    except Exception as e:
        logger.exception(f"[{request_id}] Context packing failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/context/workspace", response_model=WorkspaceSearchResponse)
async def workspace_context(
    request: Request,
    body: WorkspaceSearchRequest,
    service: SearchService = Depends(get_search_service),
    tokenizer: Tokenizer = Depends(get_default_tokenizer),
):
    """Build context from one search over the whole workspace."""
    request_id = getattr(request.state, "request_id", "unknown")

    try:
        composer = ContextComposer(service, SearchUser(uid=body.user_id), tokenizer=tokenizer)
        items = await composer.search_whole_space(body.query)

        return WorkspaceSearchResponse(
            resources=[asdict(i) for i in items if isinstance(i, ResourceItem)],
            documents=[asdict(i) for i in items if isinstance(i, DocumentItem)],
        )

    except SearchServiceError:
        raise
    except Exception as e:
        logger.exception(f"[{request_id}] Workspace search failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
