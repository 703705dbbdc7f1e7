"""FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from bill_calculator.api.routes import bills, data, health, readings, settings as settings_routes
from bill_calculator.core.config import settings
from bill_calculator.core.database import Base, engine
from bill_calculator.core.logging_config import configure_logging

# Import models for Base.metadata.create_all
from bill_calculator.models import reading  # noqa: F401

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager."""
    # Startup: Create database tables
    Base.metadata.create_all(bind=engine)
    logger.info("%s %s started", settings.PROJECT_NAME, settings.VERSION)
    yield
    # Shutdown: cleanup if needed


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description="Split an electricity bill between a property and its sub-meters",
    lifespan=lifespan,
)

# Include API routers
app.include_router(health.router, prefix="/api", tags=["health"])
app.include_router(bills.router, prefix="/api")
app.include_router(readings.router, prefix="/api")
app.include_router(settings_routes.router, prefix="/api")
app.include_router(data.router, prefix="/api")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "bill_calculator.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )
