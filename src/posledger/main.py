"""FastAPI application factory."""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator

import uvicorn
from fastapi import FastAPI

from posledger.core.logging import configure_logging, get_logger

configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan context manager for startup and shutdown events."""
    start_time = datetime.now()
    logger.info("app.startup", message="posledger starting up", timestamp=start_time.isoformat())

    from posledger.api.health import set_app_start_time

    set_app_start_time(start_time)

    yield

    from posledger.core.db import engine

    await engine.dispose()
    logger.info("app.shutdown", message="posledger shutting down gracefully")


def _register_routers(app: FastAPI) -> None:
    """Register all API routers."""
    from posledger.api.financials import router as financials_router
    from posledger.api.health import router as health_router
    from posledger.api.purchases import router as purchases_router
    from posledger.api.shifts import router as shifts_router

    app.include_router(health_router)
    app.include_router(shifts_router)
    app.include_router(financials_router)
    app.include_router(purchases_router)


def create_app() -> FastAPI:
    """Application factory for posledger."""
    from posledger.core.sentry import init_sentry

    init_sentry()

    app = FastAPI(
        title="posledger API",
        description="Point-of-sale receivables, payables, purchasing and cash shift reconciliation",
        version="0.1.0",
        lifespan=lifespan,
    )

    from posledger.core.exception_handlers import register_exception_handlers

    register_exception_handlers(app)

    from posledger.middleware.logging import RequestIDMiddleware

    app.add_middleware(RequestIDMiddleware)

    _register_routers(app)

    logger.info("app.configured", message="FastAPI application created successfully")

    return app


def run() -> None:
    """Development server entrypoint."""
    uvicorn.run(
        "posledger.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
