"""Persistence helpers for webhook event bookkeeping.

Every mark_* call is a single-row UPDATE keyed by event id and committed on its own;
no transaction spans more than one event.
"""

from collections.abc import Sequence
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.clock import Clock, utc_now
from src.db.models.webhook_event import WebhookEvent, WebhookEventStatus

CLAIMABLE_STATUSES = (WebhookEventStatus.PENDING, WebhookEventStatus.FAILED)


class WebhookEventStore:
    """Reads and status transitions for the webhook_events table."""

    def __init__(self, db_session: AsyncSession, clock: Clock = utc_now):
        self.db = db_session
        self.clock = clock

    async def get(self, event_id: UUID) -> WebhookEvent | None:
        """Load a webhook event by id, refreshing any copy already in the session."""
        result = await self.db.execute(
            select(WebhookEvent)
            .where(WebhookEvent.id == event_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def fetch_due_retries(self, limit: int) -> Sequence[WebhookEvent]:
        """Return up to ``limit`` failed events whose retry time has come.

        Ordered by creation time, then id, so repeated polls see a stable order.
        """
        now = self.clock()
        result = await self.db.execute(
            select(WebhookEvent)
            .where(
                WebhookEvent.status == WebhookEventStatus.FAILED,
                WebhookEvent.next_retry_at <= now,
                WebhookEvent.attempts < WebhookEvent.max_attempts,
            )
            .order_by(WebhookEvent.created_at, WebhookEvent.id)
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        return result.scalars().all()

    async def mark_processing(self, event_id: UUID) -> bool:
        """Claim an event for processing.

        Only pending or failed events can be claimed. Returns False when another
        pass already claimed the row or it reached a terminal status.
        """
        now = self.clock()
        return await self._update(
            event_id,
            CLAIMABLE_STATUSES,
            status=WebhookEventStatus.PROCESSING,
            last_attempt_at=now,
            next_retry_at=None,
        )

    async def mark_completed(self, event_id: UUID) -> bool:
        """Record a successful attempt. The row is frozen afterwards."""
        now = self.clock()
        return await self._update(
            event_id,
            (WebhookEventStatus.PROCESSING,),
            status=WebhookEventStatus.COMPLETED,
            processed_at=now,
            next_retry_at=None,
            attempts=WebhookEvent.attempts + 1,
        )

    async def mark_failed(
        self,
        event_id: UUID,
        attempts: int,
        next_retry_at: datetime,
        error_message: str,
    ) -> bool:
        """Schedule another attempt at ``next_retry_at``."""
        return await self._update(
            event_id,
            (WebhookEventStatus.PROCESSING,),
            status=WebhookEventStatus.FAILED,
            attempts=attempts,
            next_retry_at=next_retry_at,
            error_message=error_message,
        )

    async def mark_dead_letter(self, event_id: UUID, attempts: int, error_message: str) -> bool:
        """Stop retrying; the event now needs manual requeue."""
        return await self._update(
            event_id,
            (WebhookEventStatus.PROCESSING,),
            status=WebhookEventStatus.DEAD_LETTER,
            attempts=attempts,
            next_retry_at=None,
            error_message=error_message,
        )

    async def _update(
        self,
        event_id: UUID,
        expected_statuses: Sequence[WebhookEventStatus],
        **values: Any,
    ) -> bool:
        result = await self.db.execute(
            update(WebhookEvent)
            .where(WebhookEvent.id == event_id, WebhookEvent.status.in_(expected_statuses))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return result.rowcount == 1
