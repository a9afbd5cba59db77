"""Tests for WebhookEvent and Interview models."""

import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.models.interview import Interview, InterviewStatus
from src.db.models.webhook_event import WebhookEvent, WebhookEventStatus


@pytest.mark.asyncio
async def test_webhook_event_defaults(db_session: AsyncSession):
    event = WebhookEvent(
        provider="zoom",
        event_type="recording.started",
        event_id="recording.started-1772460000000-85746352910",
        correlation_key="85746352910",
        payload={"event": "recording.started", "payload": {"object": {"id": "85746352910"}}},
    )
    db_session.add(event)
    await db_session.commit()
    await db_session.refresh(event)

    assert event.id is not None
    assert event.status == WebhookEventStatus.PENDING
    assert event.attempts == 0
    assert event.max_attempts == 3
    assert event.next_retry_at is None
    assert event.created_at is not None
    assert event.payload["payload"]["object"]["id"] == "85746352910"


@pytest.mark.asyncio
async def test_webhook_event_unique_per_provider(db_session: AsyncSession):
    db_session.add(WebhookEvent(provider="zoom", event_type="meeting.ended", event_id="evt-1"))
    await db_session.commit()

    db_session.add(WebhookEvent(provider="zoom", event_type="meeting.ended", event_id="evt-1"))
    with pytest.raises(IntegrityError):
        await db_session.commit()
    await db_session.rollback()


@pytest.mark.asyncio
async def test_same_event_id_allowed_across_providers(db_session: AsyncSession):
    db_session.add(WebhookEvent(provider="zoom", event_type="meeting.ended", event_id="evt-1"))
    db_session.add(WebhookEvent(provider="teams", event_type="meeting.ended", event_id="evt-1"))

    await db_session.commit()


@pytest.mark.asyncio
async def test_status_stored_as_lowercase_value(db_session: AsyncSession):
    event = WebhookEvent(
        provider="zoom",
        event_type="meeting.ended",
        event_id="evt-2",
        status=WebhookEventStatus.DEAD_LETTER,
    )
    db_session.add(event)
    await db_session.commit()

    result = await db_session.execute(text("SELECT status FROM webhook_events"))
    assert result.scalar_one() == "dead_letter"


@pytest.mark.asyncio
async def test_interview_defaults(db_session: AsyncSession):
    interview = Interview(zoom_meeting_id="85746352910")
    db_session.add(interview)
    await db_session.commit()
    await db_session.refresh(interview)

    assert interview.status == InterviewStatus.SCHEDULED
    assert interview.recording_status is None
    assert interview.webhook_last_received_at is None
    assert interview.updated_at is not None
