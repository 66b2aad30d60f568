"""
FastAPI application factory for the SQL Trainer HTTP boundary.

Engine errors are mapped to responses by exception handlers:

- UnknownTask -> 404
- CompositionError (incl. ProvisionError) -> 503, retryable
- ReferenceQueryError -> 500, engine defect
- other VerificationError -> 503
"""
from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from sql_trainer.api.routes import router
from sql_trainer.config import Settings, get_settings
from sql_trainer.domain.errors import (
    CompositionError,
    ReferenceQueryError,
    UnknownTask,
    VerificationError,
)
from sql_trainer.service import TrainerService
from sql_trainer.utils.logging import get_logger

log = get_logger(__name__)


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(UnknownTask)
    async def _unknown_task(request: Request, exc: UnknownTask) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": "Task not found or expired."})

    @app.exception_handler(CompositionError)
    async def _composition(request: Request, exc: CompositionError) -> JSONResponse:
        log.error("[API] task composition failed", extra={"error": str(exc)})
        return JSONResponse(
            status_code=503,
            content={"detail": "Could not create a practice task, please retry."},
        )

    @app.exception_handler(ReferenceQueryError)
    async def _reference(request: Request, exc: ReferenceQueryError) -> JSONResponse:
        return JSONResponse(
            status_code=500,
            content={"detail": "The task's reference solution failed; please report this task."},
        )

    @app.exception_handler(VerificationError)
    async def _verification(request: Request, exc: VerificationError) -> JSONResponse:
        log.error("[API] verification unavailable", extra={"error": str(exc)})
        return JSONResponse(
            status_code=503,
            content={"detail": "Solution checking is temporarily unavailable, please retry."},
        )


def create_app(
    service: Optional[TrainerService] = None, settings: Optional[Settings] = None
) -> FastAPI:
    """
    Build the application.

    Parameters
    ----------
    service : TrainerService | None
        Pre-built (and already started) service; when omitted the lifespan builds
        one from settings, starts it and closes it on shutdown.
    settings : Settings | None
        Defaults to `get_settings()`.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if service is not None:
            app.state.service = service
            yield
            return
        owned = TrainerService.from_settings(settings).start()
        app.state.service = owned
        try:
            yield
        finally:
            owned.close()

    app = FastAPI(
        title="SQL Trainer API",
        version="1.0",
        description="Generate SQL practice tasks and check solutions.",
        lifespan=lifespan,
    )
    if service is not None:
        app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        log.info(
            f"{request.method} {request.url.path} -> {response.status_code}",
            extra={
                "method": request.method,
                "path": request.url.path,
                "client": request.client.host if request.client else None,
                "status": response.status_code,
                "duration_ms": round((time.perf_counter() - start) * 1000, 2),
            },
        )
        return response

    _register_error_handlers(app)
    app.include_router(router)
    return app


__all__ = ["create_app"]
