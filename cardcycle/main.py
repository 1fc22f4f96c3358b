"""
CardCycle - Main Application Entry Point

A credit card billing cycle service that derives statement periods,
spend, statement balances and due dates from provider account snapshots
and transactions.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse

from cardcycle import __version__
from cardcycle.core.config import settings
from cardcycle.core.logging import setup_logging
from cardcycle.core.metrics import get_metrics, get_metrics_content_type
from cardcycle.infrastructure.database import db_manager
from cardcycle.presentation.api import api_router
from cardcycle.presentation.middleware import (
    LoggingMiddleware,
    RequestContextMiddleware,
    error_handler_middleware,
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Handles startup and shutdown events:
    - Set up logging
    - Initialize database connection pool
    - Dispose of the pool on shutdown
    """
    setup_logging()
    db_manager.init()

    logger = structlog.get_logger(__name__)
    logger.info(
        "application_started",
        version=__version__,
        statement_provider_enabled=settings.statement_provider_enabled,
    )

    yield

    await db_manager.close()
    logger.info("application_stopped")


app = FastAPI(
    title="CardCycle",
    description="Credit Card Billing Cycle Service",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(LoggingMiddleware)
app.add_middleware(RequestContextMiddleware)

error_handler_middleware(app)

app.include_router(api_router)


@app.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    """Prometheus metrics endpoint."""
    if not settings.metrics_enabled:
        return Response(status_code=404)
    return Response(
        content=get_metrics(),
        media_type=get_metrics_content_type(),
    )


@app.get("/", include_in_schema=False)
async def root():
    """Redirect to API documentation."""

    return RedirectResponse(url="/docs")


def run() -> None:
    """Serve the app with uvicorn using configured host and port."""
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
