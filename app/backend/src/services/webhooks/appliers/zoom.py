"""Zoom meeting and recording lifecycle transitions."""

import enum
import logging
from collections.abc import Mapping
from datetime import UTC, datetime, timedelta
from typing import Any

from src.db.models.interview import InterviewStatus, RecordingStatus
from src.db.models.webhook_event import WebhookProvider
from src.services.webhooks.appliers.base import (
    BaseEventApplier,
    EventHandler,
    FieldMutations,
    InterviewState,
)

logger = logging.getLogger(__name__)

PRIMARY_RECORDING_TYPES = frozenset({"shared_screen_with_speaker_view", "active_speaker"})


class ZoomEventType(str, enum.Enum):
    """Zoom webhook events handled by the pipeline."""

    URL_VALIDATION = "endpoint.url_validation"
    RECORDING_STARTED = "recording.started"
    RECORDING_STOPPED = "recording.stopped"
    RECORDING_PAUSED = "recording.paused"
    RECORDING_RESUMED = "recording.resumed"
    RECORDING_COMPLETED = "recording.completed"
    MEETING_STARTED = "meeting.started"
    MEETING_ENDED = "meeting.ended"


def select_primary_recording(recording_files: Any) -> dict[str, Any] | None:
    """Pick the recording file to attach to the interview.

    Prefers the combined speaker view, then the active speaker view, in list order;
    falls back to the first file. Returns None when there are no files.
    """
    if not isinstance(recording_files, list) or not recording_files:
        return None

    for recording_file in recording_files:
        if not isinstance(recording_file, dict):
            continue
        recording_type = recording_file.get("recording_type")
        if isinstance(recording_type, str) and recording_type in PRIMARY_RECORDING_TYPES:
            return recording_file

    first = recording_files[0]
    return first if isinstance(first, dict) else None


def _parse_zoom_datetime(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def recording_duration_seconds(recording_file: Mapping[str, Any] | None) -> int | None:
    """Whole seconds between recording_start and recording_end, or None if either is missing."""
    if not recording_file:
        return None

    start = _parse_zoom_datetime(recording_file.get("recording_start"))
    end = _parse_zoom_datetime(recording_file.get("recording_end"))
    if start is None or end is None:
        return None

    try:
        return (end - start) // timedelta(seconds=1)
    except TypeError:
        # one timestamp carried an offset and the other did not
        return None


def _recording_started(
    payload: Mapping[str, Any], current: InterviewState, now: datetime
) -> FieldMutations:
    return {"recording_status": RecordingStatus.IN_PROGRESS}


def _recording_stopped(
    payload: Mapping[str, Any], current: InterviewState, now: datetime
) -> FieldMutations:
    return {"recording_status": RecordingStatus.PROCESSING}


def _recording_paused_or_resumed(
    payload: Mapping[str, Any], current: InterviewState, now: datetime
) -> FieldMutations:
    return {}


def _recording_completed(
    payload: Mapping[str, Any], current: InterviewState, now: datetime
) -> FieldMutations:
    event_payload = payload.get("payload")
    event_object = event_payload.get("object") if isinstance(event_payload, dict) else None
    if not isinstance(event_object, dict):
        event_object = {}
    primary = select_primary_recording(event_object.get("recording_files"))

    return {
        "recording_status": RecordingStatus.COMPLETED,
        "recording_url": (primary or {}).get("download_url") or None,
        "recording_duration": recording_duration_seconds(primary),
        "recording_file_size": (primary or {}).get("file_size") or None,
        "recording_processed_at": now,
    }


def _meeting_started(
    payload: Mapping[str, Any], current: InterviewState, now: datetime
) -> FieldMutations:
    return {"status": InterviewStatus.IN_PROGRESS}


def _meeting_ended(
    payload: Mapping[str, Any], current: InterviewState, now: datetime
) -> FieldMutations:
    # A record already completed or cancelled must not be moved backwards.
    if current.status != InterviewStatus.IN_PROGRESS:
        logger.info(
            "Meeting ended but interview not in progress, skipping status update: status=%s",
            current.status.value,
        )
        return {}
    return {"status": InterviewStatus.COMPLETED}


class ZoomEventApplier(BaseEventApplier):
    """Applies Zoom recording and meeting events to interviews."""

    provider = WebhookProvider.ZOOM.value

    _handlers: dict[str, EventHandler] = {
        ZoomEventType.RECORDING_STARTED.value: _recording_started,
        ZoomEventType.RECORDING_STOPPED.value: _recording_stopped,
        ZoomEventType.RECORDING_PAUSED.value: _recording_paused_or_resumed,
        ZoomEventType.RECORDING_RESUMED.value: _recording_paused_or_resumed,
        ZoomEventType.RECORDING_COMPLETED.value: _recording_completed,
        ZoomEventType.MEETING_STARTED.value: _meeting_started,
        ZoomEventType.MEETING_ENDED.value: _meeting_ended,
    }

    @property
    def handlers(self) -> Mapping[str, EventHandler]:
        return self._handlers

    def event_timestamp(self, payload: Mapping[str, Any], now: datetime) -> datetime:
        """Zoom sends ``event_ts`` as epoch milliseconds."""
        event_ts = payload.get("event_ts")
        if isinstance(event_ts, bool) or not isinstance(event_ts, int | float) or event_ts <= 0:
            return now
        try:
            return datetime.fromtimestamp(event_ts / 1000, tz=UTC)
        except (OverflowError, OSError, ValueError):
            return now
