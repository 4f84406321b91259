from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI

from docmarket.api.routes.documents import router as documents_router
from docmarket.api.routes.health import router as health_router
from docmarket.api.routes.monetization import router as monetization_router
from docmarket.api.routes.payments import router as payments_router
from docmarket.api.routes.withdrawals import router as withdrawals_router
from docmarket.core.config import get_settings
from docmarket.core.logging import configure_logging
from docmarket.db.session import Database
from docmarket.services.document_store import LocalDocumentStore
from docmarket.services.receipts_render import PillowReceiptRenderer

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logger.info("app_started")
    try:
        yield
    finally:
        await app.state.database.dispose()
        logger.info("app_stopped")


def create_app(*, database: Database | None = None) -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level, app_env=settings.app_env)

    app = FastAPI(
        title="Docmarket Monetization API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.database = database or Database.from_settings(settings)
    app.state.receipt_renderer = PillowReceiptRenderer()
    app.state.document_store = LocalDocumentStore(settings.document_storage_dir)

    app.include_router(health_router)
    app.include_router(payments_router)
    app.include_router(monetization_router)
    app.include_router(withdrawals_router)
    app.include_router(documents_router)
    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "docmarket.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.app_env == "dev",
    )


if __name__ == "__main__":
    run()
