"""Service for dead letter triage and manual recovery of webhook events."""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.clock import Clock, utc_now
from src.core.config import get_settings
from src.db.models.webhook_event import WebhookEvent, WebhookEventStatus
from src.services.webhooks.event_store import WebhookEventStore

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


class WebhookEventNotFoundError(Exception):
    """Raised when a webhook event id does not exist."""

    pass


class EventNotDeadLetteredError(Exception):
    """Raised when requeue is requested for an event outside the dead letter queue."""

    pass


@dataclass
class DeadLetterPage:
    """One page of dead-lettered events plus pagination metadata."""

    items: list[WebhookEvent]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


class DeadLetterService:
    """Read and recovery operations over dead-lettered webhook events."""

    def __init__(self, db_session: AsyncSession, clock: Clock = utc_now):
        self.db = db_session
        self.clock = clock
        self.store = WebhookEventStore(db_session, clock=clock)

    async def list_dead_letters(
        self,
        page: int = 1,
        limit: int = 20,
        provider: str | None = None,
        event_type: str | None = None,
    ) -> DeadLetterPage:
        """List dead-lettered events, newest first.

        Args:
            page: 1-based page number
            limit: Page size, capped at MAX_PAGE_SIZE
            provider: Optional provider filter
            event_type: Optional event type filter

        Returns:
            DeadLetterPage with the requested slice and total count
        """
        page = max(page, 1)
        limit = min(max(limit, 1), MAX_PAGE_SIZE)

        conditions = [WebhookEvent.status == WebhookEventStatus.DEAD_LETTER]
        if provider:
            conditions.append(WebhookEvent.provider == provider)
        if event_type:
            conditions.append(WebhookEvent.event_type == event_type)

        count_result = await self.db.execute(
            select(func.count(WebhookEvent.id)).where(*conditions)
        )
        total = count_result.scalar_one()

        result = await self.db.execute(
            select(WebhookEvent)
            .where(*conditions)
            .order_by(WebhookEvent.created_at.desc(), WebhookEvent.id.desc())
            .limit(limit)
            .offset((page - 1) * limit)
            .execution_options(populate_existing=True)
        )
        items = list(result.scalars().all())

        logger.info(f"Retrieved dead letter events: count={len(items)} total={total} page={page}")

        return DeadLetterPage(items=items, total=total, page=page, limit=limit)

    async def requeue(self, event_id: UUID) -> WebhookEvent:
        """Move a dead-lettered event back into the retry path.

        Resets attempts to 0, clears the error and schedules the next attempt
        after a short fixed delay.

        Raises:
            WebhookEventNotFoundError: If the event doesn't exist
            EventNotDeadLetteredError: If the event is not in the dead letter queue
        """
        event = await self.store.get(event_id)
        if event is None:
            raise WebhookEventNotFoundError(f"Webhook event {event_id} not found")

        if event.status != WebhookEventStatus.DEAD_LETTER:
            raise EventNotDeadLetteredError(
                f"Event is not in dead letter queue (status: {event.status.value})"
            )

        delay = timedelta(minutes=get_settings().WEBHOOK_REQUEUE_DELAY_MINUTES)
        next_retry_at = self.clock() + delay

        result = await self.db.execute(
            update(WebhookEvent)
            .where(
                WebhookEvent.id == event_id,
                WebhookEvent.status == WebhookEventStatus.DEAD_LETTER,
            )
            .values(
                status=WebhookEventStatus.FAILED,
                attempts=0,
                next_retry_at=next_retry_at,
                error_message=None,
            )
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()

        if result.rowcount != 1:
            # Requeued concurrently by another operator
            raise EventNotDeadLetteredError("Event is not in dead letter queue")

        logger.info(
            f"Dead letter event reset for retry: webhook_event_id={event_id} "
            f"next_retry_at={next_retry_at.isoformat()}"
        )

        await self.db.refresh(event)
        return event

    async def reclaim_stale_processing(self, older_than: timedelta | None = None) -> int:
        """Return events stuck in processing (e.g. after a crash) to the retry path.

        Rows whose last attempt started before ``now - older_than`` are set back to
        failed and made due immediately. Attempts are left unchanged.

        Returns:
            Number of reclaimed events
        """
        if older_than is None:
            older_than = timedelta(minutes=get_settings().WEBHOOK_STALE_PROCESSING_MINUTES)

        now = self.clock()
        cutoff: datetime = now - older_than

        result = await self.db.execute(
            update(WebhookEvent)
            .where(
                WebhookEvent.status == WebhookEventStatus.PROCESSING,
                WebhookEvent.last_attempt_at < cutoff,
            )
            .values(
                status=WebhookEventStatus.FAILED,
                next_retry_at=now,
                error_message="Reclaimed after being stuck in processing",
            )
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()

        reclaimed = result.rowcount
        if reclaimed:
            logger.warning(f"Reclaimed stale processing webhook events: count={reclaimed}")
        return reclaimed
