"""Webhook retry processor.

Polls the webhook event store for failed events that are due, re-applies them to the
target interview, and records the outcome: completed, rescheduled with backoff, or
moved to the dead letter queue once attempts are exhausted.
"""

import asyncio
import enum
import logging
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.clock import Clock, utc_now
from src.core.config import get_settings
from src.db.models.interview import Interview
from src.db.models.webhook_event import WebhookEvent
from src.services.webhooks.appliers import FieldMutations, InterviewState, apply_event
from src.services.webhooks.event_store import WebhookEventStore
from src.services.webhooks.resolver import CorrelationError, InterviewResolver
from src.services.webhooks.retry_policy import compute_next_retry_at, should_dead_letter

logger = logging.getLogger(__name__)


class EventOutcome(enum.Enum):
    """Result of one processing attempt."""

    SUCCEEDED = "succeeded"
    RESCHEDULED = "rescheduled"
    DEAD_LETTERED = "dead_lettered"
    SKIPPED = "skipped"  # claimed by another pass or no longer claimable
    ERRORED = "errored"  # bookkeeping failed; row keeps its last committed status


@dataclass
class RetryBatchResult:
    """Aggregate counts for one retry pass."""

    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    dead_letters: int = 0
    errors: int = 0

    def record(self, outcome: EventOutcome) -> None:
        if outcome is EventOutcome.SKIPPED:
            return
        self.processed += 1
        if outcome is EventOutcome.SUCCEEDED:
            self.succeeded += 1
        elif outcome is EventOutcome.RESCHEDULED:
            self.failed += 1
        elif outcome is EventOutcome.DEAD_LETTERED:
            self.dead_letters += 1
        elif outcome is EventOutcome.ERRORED:
            self.errors += 1


class WebhookRetryProcessor:
    """Drives resolve -> apply -> persist for webhook events, with retry bookkeeping."""

    def __init__(
        self,
        db_session: AsyncSession,
        batch_size: int | None = None,
        timeout_seconds: float | None = None,
        clock: Clock = utc_now,
    ):
        settings = get_settings()
        self.db = db_session
        self.batch_size = batch_size or settings.WEBHOOK_RETRY_BATCH_SIZE
        self.timeout_seconds = timeout_seconds or settings.WEBHOOK_PROCESSING_TIMEOUT_SECONDS
        self.clock = clock
        self.store = WebhookEventStore(db_session, clock=clock)
        self.resolver = InterviewResolver(db_session)

    async def process_due_retries(self) -> RetryBatchResult:
        """Process one batch of due retries.

        Each event is handled independently; a failure on one never aborts the batch.
        """
        result = RetryBatchResult()

        events = await self.store.fetch_due_retries(self.batch_size)
        logger.info(f"Processing webhook retries: count={len(events)}")

        # A rollback expires every instance in the session; keep the batch readable.
        for event in events:
            self.db.expunge(event)

        for event in events:
            event_id = event.id
            try:
                outcome = await self.process_event(event)
            except Exception as e:
                # Bookkeeping itself failed; the row keeps its last committed state.
                logger.error(
                    f"Webhook retry bookkeeping failed: webhook_event_id={event_id} error={e}",
                    exc_info=True,
                )
                await self.db.rollback()
                outcome = EventOutcome.ERRORED
            result.record(outcome)

        logger.info(
            "Webhook retry processing complete: processed=%s succeeded=%s failed=%s "
            "dead_letters=%s errors=%s",
            result.processed,
            result.succeeded,
            result.failed,
            result.dead_letters,
            result.errors,
        )
        return result

    async def process_event(self, event: WebhookEvent) -> EventOutcome:
        """Run one processing attempt for an event and record its outcome."""
        # Captured up front: a rollback expires the ORM instance.
        event_id = event.id
        provider = event.provider
        event_type = event.event_type
        correlation_key = event.correlation_key
        payload = event.payload
        attempts = event.attempts
        max_attempts = event.max_attempts

        if not await self.store.mark_processing(event_id):
            logger.info(f"Webhook event already claimed, skipping: webhook_event_id={event_id}")
            return EventOutcome.SKIPPED

        logger.info(
            f"Processing webhook event: webhook_event_id={event_id} provider={provider} "
            f"event_type={event_type} correlation_key={correlation_key} attempt={attempts + 1}"
        )

        try:
            async with asyncio.timeout(self.timeout_seconds):
                interview_id = await self._apply(
                    provider, event_type, correlation_key, payload, self.clock()
                )
        except Exception as e:
            await self.db.rollback()
            return await self._record_failure(event_id, event_type, attempts, max_attempts, e)

        await self.store.mark_completed(event_id)
        logger.info(
            f"Webhook event processed: webhook_event_id={event_id} event_type={event_type} "
            f"interview_id={interview_id}"
        )
        return EventOutcome.SUCCEEDED

    async def _apply(
        self,
        provider: str,
        event_type: str,
        correlation_key: str | None,
        payload: dict | None,
        now: datetime,
    ) -> UUID:
        interview = await self.resolver.resolve(provider, correlation_key)

        mutations = apply_event(
            provider,
            event_type,
            payload,
            InterviewState(status=interview.status),
            now,
        )
        await self._persist(interview.id, mutations, now)
        return interview.id

    async def _persist(self, interview_id: UUID, mutations: FieldMutations, now: datetime) -> None:
        if not mutations:
            return

        await self.db.execute(
            update(Interview)
            .where(Interview.id == interview_id)
            .values(**mutations, updated_at=now)
            .execution_options(synchronize_session=False)
        )

    async def _record_failure(
        self,
        event_id: UUID,
        event_type: str,
        attempts: int,
        max_attempts: int,
        error: Exception,
    ) -> EventOutcome:
        new_attempts = attempts + 1
        error_message = self._describe_error(error)

        if isinstance(error, CorrelationError):
            logger.warning(
                f"Webhook correlation failure: webhook_event_id={event_id} "
                f"event_type={event_type} attempts={new_attempts} error={error_message}"
            )
        else:
            logger.error(
                f"Webhook processing failed: webhook_event_id={event_id} "
                f"event_type={event_type} attempts={new_attempts} error={error_message}"
            )

        if should_dead_letter(new_attempts, max_attempts):
            await self.store.mark_dead_letter(event_id, new_attempts, error_message)
            logger.warning(
                f"Webhook moved to dead letter queue: webhook_event_id={event_id} "
                f"event_type={event_type} attempts={new_attempts}"
            )
            return EventOutcome.DEAD_LETTERED

        next_retry_at = compute_next_retry_at(new_attempts, self.clock())
        await self.store.mark_failed(event_id, new_attempts, next_retry_at, error_message)
        logger.info(
            f"Webhook retry scheduled: webhook_event_id={event_id} attempts={new_attempts} "
            f"max_attempts={max_attempts} next_retry_at={next_retry_at.isoformat()}"
        )
        return EventOutcome.RESCHEDULED

    def _describe_error(self, error: Exception) -> str:
        if isinstance(error, TimeoutError):
            return f"Processing timed out after {self.timeout_seconds}s"
        return str(error) or error.__class__.__name__
