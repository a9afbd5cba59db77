"""Dead letter queue administration for webhook events."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import get_settings
from src.core.dependencies import require_admin
from src.core.rate_limit import limiter
from src.db.session import get_db
from src.schemas.webhook_event import (
    DeadLetterList,
    ReclaimStaleResponse,
    RequeueRequest,
    RequeueResponse,
    WebhookEventRead,
)
from src.services.webhooks.dead_letter_service import (
    DeadLetterService,
    EventNotDeadLetteredError,
    WebhookEventNotFoundError,
)

router = APIRouter(
    prefix="/api/admin",
    tags=["webhook-admin"],
    dependencies=[Depends(require_admin)],
)

logger = logging.getLogger(__name__)


@router.get("/webhook-dead-letters", response_model=DeadLetterList)
@limiter.limit(get_settings().RATE_LIMIT_ADMIN_READ)
async def list_dead_letters(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, description="Page size, capped at 100"),
    provider: str | None = Query(None),
    event_type: str | None = Query(None, alias="eventType"),
) -> DeadLetterList:
    """List dead-lettered webhook events, newest first."""
    service = DeadLetterService(db)

    result = await service.list_dead_letters(
        page=page,
        limit=limit,
        provider=provider,
        event_type=event_type,
    )

    return DeadLetterList(
        dead_letters=[WebhookEventRead.model_validate(e) for e in result.items],
        total=result.total,
        page=result.page,
        total_pages=result.total_pages,
        limit=result.limit,
    )


@router.post("/webhook-dead-letters", response_model=RequeueResponse)
@limiter.limit(get_settings().RATE_LIMIT_ADMIN_WRITE)
async def requeue_dead_letter(
    request: Request,
    body: RequeueRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> RequeueResponse:
    """Manually move a dead-lettered event back into the retry path."""
    service = DeadLetterService(db)

    try:
        event = await service.requeue(body.webhook_event_id)
    except WebhookEventNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Webhook event not found",
        ) from e
    except EventNotDeadLetteredError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        ) from e

    logger.info(
        "Dead letter event requeued: webhook_event_id=%s next_retry_at=%s",
        event.id,
        event.next_retry_at,
    )

    return RequeueResponse(
        message="Event scheduled for retry",
        next_retry_at=event.next_retry_at,
    )


@router.post("/webhook-events/reclaim-stale", response_model=ReclaimStaleResponse)
@limiter.limit(get_settings().RATE_LIMIT_ADMIN_WRITE)
async def reclaim_stale_processing(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ReclaimStaleResponse:
    """Reset events stuck in processing past the staleness threshold back to failed."""
    service = DeadLetterService(db)
    reclaimed = await service.reclaim_stale_processing()
    return ReclaimStaleResponse(reclaimed=reclaimed)
