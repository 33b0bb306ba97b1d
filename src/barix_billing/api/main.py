"""FastAPI application for Barix Billing.

Run with ``uvicorn --factory barix_billing.api.main:create_app``.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from barix_billing import __version__
from barix_billing.api.dependencies import get_services
from barix_billing.api.routes import health_router, router
from barix_billing.config import configure_logging

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logger.info("barix_api_starting", version=__version__)
    yield
    if get_services.cache_info().currsize:
        await get_services().aclose()
    logger.info("barix_api_stopped")


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(
        title="Barix Billing API",
        description="Invoice totals, reminder dispatch and delivery",
        version=__version__,
        lifespan=lifespan,
    )
    app.include_router(router, prefix="/api")
    app.include_router(health_router)
    return app
