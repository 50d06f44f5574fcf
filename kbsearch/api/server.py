"""FastAPI application exposing knowledge base search."""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config.settings import Settings, get_settings
from kbsearch.api.schemas import ErrorResponse, SearchRequest, SearchResponse
from kbsearch.errors import QueryValidationError, RetrievalError
from kbsearch.retrieval.engine import SearchEngine

logger = logging.getLogger(__name__)

SERVICE_NAME = "kbsearch-api"
VERSION = "0.1.0"


def _error(status_code: int, error: str, details: str | None = None) -> JSONResponse:
    body = {"error": error}
    if details:
        body["details"] = details
    return JSONResponse(status_code=status_code, content=body)


def create_app(settings: Settings | None = None, engine: SearchEngine | None = None) -> FastAPI:
    """Create the API application.

    When engine is None, the lifespan builds the search engine from settings
    at startup and closes its document store at shutdown. A provided engine
    is used as is and left open.

    Blocking store and index calls run on a bounded worker pool owned by the
    app. A search that times out keeps its worker until it returns, so at
    most kb_search_workers such calls are in flight at once.
    """
    settings = settings or get_settings()
    executor = ThreadPoolExecutor(
        max_workers=settings.kb_search_workers, thread_name_prefix="kbsearch-search"
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = engine is None
        if owned:
            from kbsearch.factory import build_search_engine

            app.state.engine = build_search_engine(settings)
            logger.info("Search engine ready")
        else:
            app.state.engine = engine

        yield

        executor.shutdown(wait=False, cancel_futures=True)
        if owned:
            app.state.engine.document_store.close()
            logger.info("Document store closed")

    app = FastAPI(
        title="Knowledge Base Search API",
        description="Chunk-level semantic search over knowledge base articles",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.executor = executor

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'] if p != 'body')}: {err['msg']}"
            for err in exc.errors()
        )
        logger.info("Rejected request to %s: %s", request.url.path, details)
        return _error(400, "Invalid request", details)

    @app.get("/")
    async def root():
        return {"status": "ok", "service": SERVICE_NAME, "version": VERSION}

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    @app.post(
        "/api/search",
        response_model=SearchResponse,
        responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    )
    async def search(body: SearchRequest, request: Request):
        search_engine: SearchEngine = request.app.state.engine
        limit = body.limit or settings.kb_default_limit

        if len(body.query.strip()) < 2:
            return _error(400, "Query must be at least 2 characters")
        if limit > settings.kb_max_limit:
            return _error(400, f"limit must be at most {settings.kb_max_limit}")

        try:
            loop = asyncio.get_running_loop()
            results = await asyncio.wait_for(
                loop.run_in_executor(executor, search_engine.retrieve, body.query, limit),
                timeout=settings.kb_request_timeout,
            )
        except QueryValidationError as e:
            return _error(400, str(e))
        except RetrievalError as e:
            logger.error("Search error: %s", e.details)
            return _error(500, "Search failed", e.details)
        except asyncio.TimeoutError:
            logger.error("Search timed out after %ss", settings.kb_request_timeout)
            return _error(500, "Search failed", f"timed out after {settings.kb_request_timeout}s")

        return {
            "query": body.query,
            "results": [r.to_dict() for r in results],
            "total": len(results),
        }

    @app.get("/api/article/{article_id}")
    async def get_article(article_id: str, request: Request):
        search_engine: SearchEngine = request.app.state.engine
        try:
            loop = asyncio.get_running_loop()
            document = await loop.run_in_executor(
                executor, search_engine.document_store.get_document, article_id
            )
        except Exception as e:
            logger.error("Article lookup failed for %s: %s", article_id, e)
            return _error(500, "Internal server error", str(e))
        if document is None:
            return _error(404, "Article not found")
        return document.to_dict()

    return app
