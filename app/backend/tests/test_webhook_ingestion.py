"""Tests for webhook ingestion (dedupe, untracked records, inline first attempt)."""

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.models.interview import Interview, InterviewStatus
from src.db.models.webhook_event import WebhookEvent, WebhookEventStatus
from src.services.webhooks.ingestion import IngestionStatus, WebhookIngestionService
from tests.fixtures.webhooks import NOW, TEST_MEETING_ID, FrozenClock, as_utc, reload, zoom_payload


async def _ingest(service: WebhookIngestionService, event_type: str, meeting_id: str = TEST_MEETING_ID):
    return await service.ingest(
        provider="zoom",
        event_type=event_type,
        event_id=f"{event_type}-1772460000000-{meeting_id}",
        correlation_key=meeting_id,
        payload=zoom_payload(event_type, meeting_id),
    )


@pytest.mark.asyncio
async def test_ingest_applies_event_inline(
    db_session: AsyncSession, test_interview: Interview, clock: FrozenClock
):
    service = WebhookIngestionService(db_session, clock=clock)

    result = await _ingest(service, "meeting.started")

    assert result.status == IngestionStatus.PROCESSED

    event = await reload(db_session, WebhookEvent, result.webhook_event_id)
    assert event.status == WebhookEventStatus.COMPLETED
    assert event.attempts == 1
    assert event.max_attempts == 3

    interview = await reload(db_session, Interview, test_interview.id)
    assert interview.status == InterviewStatus.IN_PROGRESS


@pytest.mark.asyncio
async def test_ingest_duplicate_event_writes_nothing(
    db_session: AsyncSession, test_interview: Interview, clock: FrozenClock
):
    service = WebhookIngestionService(db_session, clock=clock)

    first = await _ingest(service, "meeting.started")
    second = await _ingest(service, "meeting.started")

    assert second.status == IngestionStatus.DUPLICATE
    assert second.webhook_event_id == first.webhook_event_id

    count = await db_session.execute(select(func.count(WebhookEvent.id)))
    assert count.scalar_one() == 1


@pytest.mark.asyncio
async def test_ingest_untracked_meeting_is_completed(db_session: AsyncSession, clock: FrozenClock):
    service = WebhookIngestionService(db_session, clock=clock)

    result = await _ingest(service, "recording.completed", meeting_id="11111111111")

    assert result.status == IngestionStatus.UNTRACKED

    event = await reload(db_session, WebhookEvent, result.webhook_event_id)
    assert event.status == WebhookEventStatus.COMPLETED
    assert event.next_retry_at is None


@pytest.mark.asyncio
async def test_ingest_failure_schedules_retry(
    db_session: AsyncSession, test_interview: Interview, clock: FrozenClock, mocker
):
    service = WebhookIngestionService(db_session, clock=clock)
    mocker.patch(
        "src.services.webhooks.retry_processor.apply_event",
        side_effect=ValueError("unexpected payload shape"),
    )

    result = await _ingest(service, "recording.completed")

    assert result.status == IngestionStatus.RETRY_SCHEDULED

    event = await reload(db_session, WebhookEvent, result.webhook_event_id)
    assert event.status == WebhookEventStatus.FAILED
    assert event.attempts == 1
    assert event.error_message == "unexpected payload shape"
    assert as_utc(event.next_retry_at) == NOW.replace(minute=5)
