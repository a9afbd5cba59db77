"""Scheduler-triggered webhook retry pass."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.clock import utc_now
from src.core.dependencies import verify_cron_secret
from src.db.session import get_db
from src.schemas.webhook_event import WebhookRetryRunResponse
from src.services.webhooks.retry_processor import WebhookRetryProcessor

router = APIRouter(
    prefix="/api/cron",
    tags=["cron"],
    dependencies=[Depends(verify_cron_secret)],
)

logger = logging.getLogger(__name__)


@router.api_route("/webhook-retries", methods=["GET", "POST"], response_model=WebhookRetryRunResponse)
async def run_webhook_retries(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> WebhookRetryRunResponse | JSONResponse:
    """Process one batch of failed webhook events that are due for retry.

    Invoked by an external scheduler at a fixed interval with
    ``Authorization: Bearer <CRON_SECRET>``.
    """
    logger.info("Starting webhook retry cron job")

    try:
        processor = WebhookRetryProcessor(db)
        result = await processor.process_due_retries()
    except Exception as e:
        logger.error(f"Webhook retry cron job failed: {str(e)}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "success": False,
                "error": str(e) or e.__class__.__name__,
                "timestamp": utc_now().isoformat(),
            },
        )

    logger.info(
        "Webhook retry cron job completed: processed=%s succeeded=%s failed=%s "
        "dead_letters=%s errors=%s",
        result.processed,
        result.succeeded,
        result.failed,
        result.dead_letters,
        result.errors,
    )

    return WebhookRetryRunResponse(
        processed=result.processed,
        succeeded=result.succeeded,
        failed=result.failed,
        dead_letters=result.dead_letters,
        errors=result.errors,
        timestamp=utc_now(),
    )
