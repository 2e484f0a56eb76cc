"""HTTP API: FastAPI application factory.

Usage::

    from options_journal.api.app import create_app

    app = create_app(settings)
    uvicorn.run(app, host=settings.host, port=settings.port)

The database engine, analytics caches and authenticator are created in
the lifespan handler and kept on ``app.state``.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from options_journal.core.config import Settings
from options_journal.core.errors import (
    AuthenticationError,
    DuplicateError,
    ImportFormatError,
    JournalError,
    NotFoundError,
    ValidationError,
)
from options_journal.observability import metrics
from options_journal.observability.logger import new_request_id, set_request_id
from options_journal.storage.cache import CacheSet
from options_journal.storage.db.connection import Database

from .auth import Authenticator
from .routers import auth, insights, trades
from .routers import metrics as metrics_router

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create the journal API application."""
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        db = Database.from_config(settings.database)
        if settings.database.create_tables:
            await db.create_all()
        app.state.db = db
        logger.info("Journal API started")
        try:
            yield
        finally:
            await db.dispose()

    app = FastAPI(title="Options Journal", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.caches = CacheSet.from_config(settings.cache)
    app.state.authenticator = Authenticator(settings.auth)

    prefix = settings.api_prefix
    app.include_router(auth.router, prefix=prefix)
    app.include_router(trades.router, prefix=prefix)
    app.include_router(metrics_router.router, prefix=prefix)
    app.include_router(insights.router, prefix=prefix)

    # ------------------------------------------------------------------
    # Request correlation
    # ------------------------------------------------------------------

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        incoming = request.headers.get("x-request-id")
        if incoming:
            set_request_id(incoming)
            rid = incoming
        else:
            rid = new_request_id()
        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response

    # ------------------------------------------------------------------
    # Health and metrics
    # ------------------------------------------------------------------

    @app.get(f"{prefix}/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    if settings.observability.metrics_enabled:
        @app.get("/metrics", include_in_schema=False)
        async def prometheus_metrics() -> Response:
            body, content_type = metrics.render_latest()
            return Response(content=body, media_type=content_type)

    # ------------------------------------------------------------------
    # Error mapping
    # ------------------------------------------------------------------

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse({"error": str(exc), "field": exc.field}, status_code=422)

    @app.exception_handler(ImportFormatError)
    async def import_error_handler(request: Request, exc: ImportFormatError) -> JSONResponse:
        return JSONResponse({"error": str(exc), "row": exc.row}, status_code=422)

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse({"error": str(exc)}, status_code=404)

    @app.exception_handler(DuplicateError)
    async def duplicate_handler(request: Request, exc: DuplicateError) -> JSONResponse:
        return JSONResponse({"error": str(exc)}, status_code=400)

    @app.exception_handler(AuthenticationError)
    async def auth_error_handler(request: Request, exc: AuthenticationError) -> JSONResponse:
        return JSONResponse(
            {"error": str(exc)},
            status_code=401,
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(JournalError)
    async def journal_error_handler(request: Request, exc: JournalError) -> JSONResponse:
        logger.exception("Journal error on %s", request.url.path)
        return JSONResponse({"error": "Request failed"}, status_code=500)

    return app
