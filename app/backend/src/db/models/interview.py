"""Interview model.

Interviews are owned by the recruiting product; only the columns written by the
webhook pipeline (lifecycle, recording and webhook observability fields) are mapped here.
"""

import enum
from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import BigInteger, DateTime, Integer, String, Text, Uuid
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from src.core.clock import utc_now
from src.db.session import Base


class InterviewStatus(str, enum.Enum):
    """Interview lifecycle status."""

    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class RecordingStatus(str, enum.Enum):
    """Recording status as reported by the meeting provider."""

    IN_PROGRESS = "in_progress"
    PROCESSING = "processing"
    COMPLETED = "completed"


class Interview(Base):
    """Interview scheduled on an external meeting provider."""

    __tablename__ = "interviews"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    # Correlation key for Zoom webhooks
    zoom_meeting_id: Mapped[str | None] = mapped_column(
        String(64), unique=True, index=True, nullable=True
    )

    status: Mapped[InterviewStatus] = mapped_column(
        SQLEnum(
            InterviewStatus,
            native_enum=False,
            length=20,
            values_callable=lambda statuses: [s.value for s in statuses],
        ),
        nullable=False,
        default=InterviewStatus.SCHEDULED,
    )

    recording_status: Mapped[RecordingStatus | None] = mapped_column(
        SQLEnum(
            RecordingStatus,
            native_enum=False,
            length=20,
            values_callable=lambda statuses: [s.value for s in statuses],
        ),
        nullable=True,
    )
    recording_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    recording_duration: Mapped[int | None] = mapped_column(Integer, nullable=True)  # seconds
    recording_file_size: Mapped[int | None] = mapped_column(BigInteger, nullable=True)  # bytes
    recording_processed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Last processed webhook (last write wins, including duplicates)
    webhook_last_received_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    webhook_event_type: Mapped[str | None] = mapped_column(String(100), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    def __repr__(self) -> str:
        return (
            f"<Interview(id={self.id}, status={self.status.value}, "
            f"zoom_meeting_id={self.zoom_meeting_id})>"
        )
