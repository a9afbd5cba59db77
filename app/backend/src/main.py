import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text

from src.api import webhook_dead_letters, webhook_retries, zoom_webhook
from src.core.config import get_settings
from src.core.lifespan import lifespan
from src.core.logging_config.middleware import LoggingMiddleware
from src.core.rate_limit import limiter
from src.db.session import get_async_sessionmaker
from src.version import __version__

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Webhook Pipeline API",
    description="Reliable ingestion, retry and dead-letter handling for provider webhooks",
    version=__version__,
    debug=get_settings().LOG_LEVEL == "DEBUG",
    openapi_url="/api/v1/openapi.json",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(LoggingMiddleware)

app.include_router(zoom_webhook.router)
app.include_router(webhook_retries.router)
app.include_router(webhook_dead_letters.router)


@app.get("/health_check")
async def health_check(check_db: bool = False) -> dict[str, str | bool]:
    """Health check endpoint to verify API is running.

    Args:
        check_db: If True, also checks database connectivity
    """
    settings = get_settings()
    result: dict[str, str | bool] = {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
    }

    if check_db:
        session_factory = get_async_sessionmaker()

        try:
            async with session_factory() as session:
                await session.execute(text("SELECT 1"))
                result["database"] = "connected"
        except Exception as e:
            logger.error(f"Health check database query failed: {str(e)}")
            result["status"] = "unhealthy"
            result["database"] = "disconnected"
            result["error"] = str(e)

    return result
