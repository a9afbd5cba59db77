"""Pydantic schemas for webhook retry and dead letter endpoints."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.db.models.webhook_event import WebhookEventStatus


class CamelModel(BaseModel):
    """Base schema serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class WebhookRetryRunResponse(CamelModel):
    """Summary of one scheduler-triggered retry pass."""

    success: bool = True
    processed: int
    succeeded: int
    failed: int
    dead_letters: int
    errors: int = 0
    timestamp: datetime


class WebhookEventRead(CamelModel):
    """Schema for reading a webhook event."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: UUID
    provider: str
    event_type: str
    event_id: str
    correlation_key: str | None
    payload: dict[str, Any] | None
    status: WebhookEventStatus
    attempts: int
    max_attempts: int
    last_attempt_at: datetime | None
    next_retry_at: datetime | None
    error_message: str | None
    created_at: datetime


class DeadLetterList(CamelModel):
    """Schema for a page of dead-lettered events."""

    dead_letters: list[WebhookEventRead]
    total: int
    page: int
    total_pages: int
    limit: int


class RequeueRequest(CamelModel):
    """Schema for requeueing a dead-lettered event."""

    webhook_event_id: UUID = Field(..., description="Id of the dead-lettered webhook event")


class RequeueResponse(CamelModel):
    """Schema returned after a successful requeue."""

    success: bool = True
    message: str
    next_retry_at: datetime


class ReclaimStaleResponse(CamelModel):
    """Schema returned after reclaiming events stuck in processing."""

    reclaimed: int


class WebhookAck(BaseModel):
    """Acknowledgement returned to webhook providers."""

    received: bool = True
    status: str | None = None
    error: str | None = None
