import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.core.config import get_settings
from src.core.logging_config.setup import configure_logging
from src.db.session import get_async_engine

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Configure logging on startup and release database connections on shutdown."""
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    logger.info(f"Starting webhook pipeline API: environment={settings.ENVIRONMENT}")

    yield

    await get_async_engine().dispose()
    logger.info("Webhook pipeline API stopped")
