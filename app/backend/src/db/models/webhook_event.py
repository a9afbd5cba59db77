"""WebhookEvent model: durable log of inbound provider callbacks and their retry state."""

import enum
from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import JSON, DateTime, Index, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from src.core.clock import utc_now
from src.db.session import Base


class WebhookProvider(str, enum.Enum):
    """Providers that deliver webhooks to the pipeline."""

    ZOOM = "zoom"


class WebhookEventStatus(str, enum.Enum):
    """Lifecycle of a webhook event.

    pending -> processing -> completed
    pending|failed -> processing -> failed (loops back through retries)
    processing -> dead_letter (attempts exhausted; manual requeue returns it to failed)
    """

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    DEAD_LETTER = "dead_letter"


class WebhookEvent(Base):
    """One row per inbound provider callback. Never deleted by the pipeline."""

    __tablename__ = "webhook_events"
    __table_args__ = (
        UniqueConstraint("provider", "event_id", name="uq_webhook_events_provider_event_id"),
        Index("ix_webhook_events_status_next_retry_at", "status", "next_retry_at"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    provider: Mapped[str] = mapped_column(String(50), nullable=False)
    event_type: Mapped[str] = mapped_column(String(100), nullable=False)
    event_id: Mapped[str] = mapped_column(String(255), nullable=False)

    # Provider identifier of the target record (Zoom meeting id)
    correlation_key: Mapped[str | None] = mapped_column(String(255), nullable=True)

    payload: Mapped[dict[str, Any] | None] = mapped_column(
        JSONB(astext_type=Text()).with_variant(JSON(), "sqlite"), nullable=True
    )

    status: Mapped[WebhookEventStatus] = mapped_column(
        SQLEnum(
            WebhookEventStatus,
            native_enum=False,
            length=20,
            values_callable=lambda statuses: [s.value for s in statuses],
        ),
        nullable=False,
        default=WebhookEventStatus.PENDING,
    )
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=3)

    last_attempt_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    next_retry_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )

    def __repr__(self) -> str:
        return (
            f"<WebhookEvent(id={self.id}, provider={self.provider}, "
            f"event_type={self.event_type}, status={self.status.value}, attempts={self.attempts})>"
        )
