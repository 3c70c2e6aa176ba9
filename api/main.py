"""
Sales Reconciliation API - Main Application.

FastAPI application factory. The document store is built once at startup
from the environment (or injected, for tests and local tooling) and shared
by every request through `app.state`.
"""

import logging
import os
import time
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from api import __version__
from api.logging_config import setup_logging
from api.routers import assignments, reconciliation
from repositories.client import create_store, load_settings
from repositories.document_store import DocumentStore

logger = logging.getLogger(__name__)


def create_app(store: Optional[DocumentStore] = None) -> FastAPI:
    """
    Build the application.

    Without an injected store, settings are loaded at startup; missing
    credentials raise RuntimeError and the server never starts serving.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.store is None:
            app.state.store = create_store(load_settings())
        logger.info("Sales reconciliation API started | version=%s", __version__)
        yield
        logger.info("Sales reconciliation API stopped")

    app = FastAPI(
        title="Sales Reconciliation API",
        description="Reconciles point-of-sale records against daily seller inventory assignments",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.store = store

    # Device gateways and the review dashboard call from other origins.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_request(request: Request, call_next):
        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            logger.info(
                "request | method=%s path=%s status=%d duration_ms=%.1f",
                request.method,
                request.url.path,
                status_code,
                (time.perf_counter() - started) * 1000,
            )

    @app.get("/ping", response_class=PlainTextResponse, tags=["Health"])
    def ping():
        """Liveness check."""
        return "pong"

    app.include_router(reconciliation.router, tags=["Reconciliation"])
    app.include_router(assignments.router, tags=["Assignments"])

    return app


setup_logging()
app = create_app()


def run() -> None:
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "3000")))


if __name__ == "__main__":
    run()
