"""Ingestion of provider webhooks into the webhook event log."""

import enum
import logging
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.clock import Clock, utc_now
from src.core.config import get_settings
from src.db.models.webhook_event import WebhookEvent, WebhookEventStatus
from src.services.webhooks.event_store import WebhookEventStore
from src.services.webhooks.resolver import (
    InterviewNotFoundError,
    InterviewResolver,
    MissingCorrelationKeyError,
)
from src.services.webhooks.retry_processor import EventOutcome, WebhookRetryProcessor

logger = logging.getLogger(__name__)


class IngestionStatus(str, enum.Enum):
    """What happened to an inbound webhook delivery."""

    DUPLICATE = "duplicate"
    UNTRACKED = "untracked"
    PROCESSED = "processed"
    RETRY_SCHEDULED = "retry_scheduled"
    DEAD_LETTERED = "dead_lettered"
    IN_PROGRESS = "in_progress"


_OUTCOME_STATUS = {
    EventOutcome.SUCCEEDED: IngestionStatus.PROCESSED,
    EventOutcome.RESCHEDULED: IngestionStatus.RETRY_SCHEDULED,
    EventOutcome.DEAD_LETTERED: IngestionStatus.DEAD_LETTERED,
    EventOutcome.SKIPPED: IngestionStatus.IN_PROGRESS,
}


@dataclass
class IngestionResult:
    status: IngestionStatus
    webhook_event_id: UUID | None = None


class WebhookIngestionService:
    """Records inbound webhooks and runs their first processing attempt inline."""

    def __init__(self, db_session: AsyncSession, clock: Clock = utc_now):
        self.db = db_session
        self.clock = clock
        self.store = WebhookEventStore(db_session, clock=clock)
        self.resolver = InterviewResolver(db_session)
        self.processor = WebhookRetryProcessor(db_session, clock=clock)

    async def ingest(
        self,
        provider: str,
        event_type: str,
        event_id: str,
        correlation_key: str | None,
        payload: dict[str, Any],
    ) -> IngestionResult:
        """Store a provider event once and attempt to apply it.

        Args:
            provider: Provider name (e.g. "zoom")
            event_type: Provider event type
            event_id: Provider event identifier, unique per provider
            correlation_key: Identifier of the target record (Zoom meeting id)
            payload: Full provider body

        Returns:
            IngestionResult describing the outcome
        """
        existing = await self.db.execute(
            select(WebhookEvent.id, WebhookEvent.status).where(
                WebhookEvent.provider == provider,
                WebhookEvent.event_id == event_id,
            )
        )
        row = existing.first()
        if row is not None:
            logger.info(
                f"Webhook event already received (idempotent): provider={provider} "
                f"event_id={event_id} webhook_event_id={row.id} status={row.status.value}"
            )
            return IngestionResult(status=IngestionStatus.DUPLICATE, webhook_event_id=row.id)

        event = WebhookEvent(
            provider=provider,
            event_type=event_type,
            event_id=event_id,
            correlation_key=correlation_key,
            payload=payload,
            status=WebhookEventStatus.PENDING,
            attempts=0,
            max_attempts=get_settings().WEBHOOK_MAX_ATTEMPTS,
        )
        try:
            self.db.add(event)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.info(f"Webhook event already exists (race): provider={provider} event_id={event_id}")
            return IngestionResult(status=IngestionStatus.DUPLICATE)

        webhook_event_id = event.id

        try:
            await self.resolver.resolve(provider, correlation_key)
        except (InterviewNotFoundError, MissingCorrelationKeyError) as e:
            # Meetings the product does not own are acknowledged, not retried.
            logger.warning(
                f"Webhook for untracked record: provider={provider} event_type={event_type} "
                f"webhook_event_id={webhook_event_id} reason={e}"
            )
            if await self.store.mark_processing(webhook_event_id):
                await self.store.mark_completed(webhook_event_id)
            return IngestionResult(status=IngestionStatus.UNTRACKED, webhook_event_id=webhook_event_id)

        outcome = await self.processor.process_event(event)
        return IngestionResult(status=_OUTCOME_STATUS[outcome], webhook_event_id=webhook_event_id)
