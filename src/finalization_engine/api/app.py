"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError as RequestBodyError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from finalization_engine import __version__
from finalization_engine.api.routes import finalizations_router, health_router
from finalization_engine.config import get_settings
from finalization_engine.database import create_schema, dispose_db, init_db
from finalization_engine.errors import (
    CollectionError,
    CommitError,
    FinalizationNotFoundError,
    RequestValidationError,
    ScopeEmptyError,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    # Startup
    settings = get_settings()
    logger.info("Starting finalization engine %s", settings.engine_version)
    engine, _ = init_db()
    if settings.create_schema:
        logger.info("Creating database schema")
        await create_schema(engine)
    yield
    # Shutdown
    await dispose_db()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Finalization Engine API",
        description="Time and attendance period finalization",
        version=__version__,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, str(exc))

    @app.exception_handler(RequestBodyError)
    async def request_body_handler(request: Request, exc: RequestBodyError) -> JSONResponse:
        """Malformed ids or dates in the body or query string."""
        fields = [".".join(str(p) for p in err["loc"][1:]) for err in exc.errors()]
        return _error(
            status.HTTP_400_BAD_REQUEST,
            "Invalid request fields: " + ", ".join(f for f in fields if f),
        )

    @app.exception_handler(ScopeEmptyError)
    async def scope_empty_handler(request: Request, exc: ScopeEmptyError) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, str(exc))

    @app.exception_handler(FinalizationNotFoundError)
    async def not_found_handler(
        request: Request, exc: FinalizationNotFoundError
    ) -> JSONResponse:
        return _error(status.HTTP_404_NOT_FOUND, str(exc))

    @app.exception_handler(CollectionError)
    async def collection_handler(request: Request, exc: CollectionError) -> JSONResponse:
        logger.error("Data collection failed: %s", exc)
        return _error(status.HTTP_502_BAD_GATEWAY, str(exc))

    @app.exception_handler(CommitError)
    async def commit_handler(request: Request, exc: CommitError) -> JSONResponse:
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "An unexpected error occurred")

    # Include routers
    app.include_router(health_router)
    app.include_router(finalizations_router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
