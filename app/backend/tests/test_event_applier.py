"""Tests for provider event appliers (pure interview transitions)."""

from datetime import UTC, datetime

import pytest

from src.db.models.interview import InterviewStatus, RecordingStatus
from src.services.webhooks.appliers import (
    InterviewState,
    UnknownProviderError,
    apply_event,
    get_event_applier,
)
from src.services.webhooks.appliers.zoom import (
    recording_duration_seconds,
    select_primary_recording,
)
from tests.fixtures.webhooks import zoom_payload

NOW = datetime(2026, 3, 2, 14, 0, tzinfo=UTC)
EVENT_TS = datetime.fromtimestamp(1772460000, tz=UTC)

SCHEDULED = InterviewState(status=InterviewStatus.SCHEDULED)
IN_PROGRESS = InterviewState(status=InterviewStatus.IN_PROGRESS)


def _recording_file(recording_type: str, **fields) -> dict:
    return {
        "id": f"file-{recording_type}",
        "recording_type": recording_type,
        "file_type": "MP4",
        "download_url": f"https://zoom.us/rec/download/{recording_type}",
        "file_size": 1024,
        "recording_start": "2026-03-02T13:00:00Z",
        "recording_end": "2026-03-02T13:45:30Z",
        **fields,
    }


def test_recording_started_sets_in_progress():
    mutations = apply_event("zoom", "recording.started", zoom_payload("recording.started"), SCHEDULED, NOW)

    assert mutations["recording_status"] == RecordingStatus.IN_PROGRESS
    assert mutations["webhook_event_type"] == "recording.started"
    assert mutations["webhook_last_received_at"] == EVENT_TS


def test_recording_stopped_sets_processing():
    mutations = apply_event("zoom", "recording.stopped", zoom_payload("recording.stopped"), SCHEDULED, NOW)

    assert mutations["recording_status"] == RecordingStatus.PROCESSING


@pytest.mark.parametrize("event_type", ["recording.paused", "recording.resumed"])
def test_recording_paused_and_resumed_only_touch_observability(event_type: str):
    mutations = apply_event("zoom", event_type, zoom_payload(event_type), IN_PROGRESS, NOW)

    assert mutations == {
        "webhook_last_received_at": EVENT_TS,
        "webhook_event_type": event_type,
    }


def test_recording_completed_uses_primary_recording():
    payload = zoom_payload(
        "recording.completed",
        recording_files=[
            _recording_file("audio_only", file_size=10),
            _recording_file("shared_screen_with_speaker_view", file_size=52428800),
        ],
    )

    mutations = apply_event("zoom", "recording.completed", payload, IN_PROGRESS, NOW)

    assert mutations["recording_status"] == RecordingStatus.COMPLETED
    assert mutations["recording_url"] == "https://zoom.us/rec/download/shared_screen_with_speaker_view"
    assert mutations["recording_duration"] == 2730
    assert mutations["recording_file_size"] == 52428800
    assert mutations["recording_processed_at"] == NOW


def test_recording_completed_without_files_clears_recording_fields():
    payload = zoom_payload("recording.completed", recording_files=[])

    mutations = apply_event("zoom", "recording.completed", payload, IN_PROGRESS, NOW)

    assert mutations["recording_status"] == RecordingStatus.COMPLETED
    assert mutations["recording_url"] is None
    assert mutations["recording_duration"] is None
    assert mutations["recording_file_size"] is None
    assert mutations["recording_processed_at"] == NOW


def test_meeting_started_sets_interview_in_progress():
    mutations = apply_event("zoom", "meeting.started", zoom_payload("meeting.started"), SCHEDULED, NOW)

    assert mutations["status"] == InterviewStatus.IN_PROGRESS


def test_meeting_ended_completes_in_progress_interview():
    mutations = apply_event("zoom", "meeting.ended", zoom_payload("meeting.ended"), IN_PROGRESS, NOW)

    assert mutations["status"] == InterviewStatus.COMPLETED


@pytest.mark.parametrize(
    "status",
    [InterviewStatus.SCHEDULED, InterviewStatus.COMPLETED, InterviewStatus.CANCELLED],
)
def test_meeting_ended_never_moves_other_statuses(status: InterviewStatus):
    mutations = apply_event(
        "zoom", "meeting.ended", zoom_payload("meeting.ended"), InterviewState(status=status), NOW
    )

    assert "status" not in mutations
    assert mutations["webhook_event_type"] == "meeting.ended"


def test_unknown_event_type_is_noop():
    mutations = apply_event(
        "zoom", "meeting.participant_joined", zoom_payload("meeting.participant_joined"), IN_PROGRESS, NOW
    )

    assert mutations == {}


def test_unknown_provider_raises():
    with pytest.raises(UnknownProviderError):
        apply_event("teams", "meeting.ended", {}, IN_PROGRESS, NOW)


def test_missing_event_ts_defaults_to_now():
    payload = zoom_payload("meeting.started")
    del payload["event_ts"]

    mutations = apply_event("zoom", "meeting.started", payload, SCHEDULED, NOW)

    assert mutations["webhook_last_received_at"] == NOW


@pytest.mark.parametrize("event_ts", ["1772460000000", True, -5, None])
def test_invalid_event_ts_defaults_to_now(event_ts):
    applier = get_event_applier("zoom")

    assert applier.event_timestamp({"event_ts": event_ts}, NOW) == NOW


def test_apply_does_not_mutate_payload():
    payload = zoom_payload("recording.completed", recording_files=[_recording_file("active_speaker")])
    snapshot = repr(payload)

    apply_event("zoom", "recording.completed", payload, IN_PROGRESS, NOW)

    assert repr(payload) == snapshot


def test_select_primary_recording_prefers_speaker_views_in_list_order():
    files = [
        _recording_file("audio_only"),
        _recording_file("active_speaker"),
        _recording_file("shared_screen_with_speaker_view"),
    ]

    assert select_primary_recording(files)["recording_type"] == "active_speaker"


def test_select_primary_recording_falls_back_to_first_file():
    files = [_recording_file("audio_only"), _recording_file("chat_file")]

    assert select_primary_recording(files)["recording_type"] == "audio_only"


@pytest.mark.parametrize("files", [None, [], "not-a-list"])
def test_select_primary_recording_without_files(files):
    assert select_primary_recording(files) is None


def test_recording_duration_requires_both_timestamps():
    assert recording_duration_seconds({"recording_start": "2026-03-02T13:00:00Z"}) is None
    assert recording_duration_seconds(None) is None


@pytest.mark.parametrize(
    ("event_type", "state"),
    [
        ("recording.started", SCHEDULED),
        ("recording.stopped", IN_PROGRESS),
        ("recording.paused", IN_PROGRESS),
        ("recording.resumed", IN_PROGRESS),
        ("recording.completed", IN_PROGRESS),
        ("meeting.started", SCHEDULED),
        ("meeting.ended", IN_PROGRESS),
        ("meeting.ended", SCHEDULED),
        ("meeting.participant_joined", IN_PROGRESS),
    ],
)
def test_apply_is_deterministic(event_type: str, state: InterviewState):
    """Identical (payload, state, now) always yields identical mutations."""
    payload = zoom_payload(
        event_type,
        recording_files=[_recording_file("audio_only"), _recording_file("active_speaker")],
    )

    first = apply_event("zoom", event_type, payload, state, NOW)
    second = apply_event("zoom", event_type, payload, state, NOW)

    assert first == second


def test_select_primary_recording_ignores_non_string_recording_type():
    files = [
        {**_recording_file("audio_only"), "recording_type": ["shared_screen_with_speaker_view"]},
        _recording_file("chat_file"),
    ]

    assert select_primary_recording(files)["id"] == "file-audio_only"


def test_recording_completed_with_unhashable_recording_type_falls_back_to_first_file():
    payload = zoom_payload(
        "recording.completed",
        recording_files=[{**_recording_file("audio_only", file_size=2048), "recording_type": ["x"]}],
    )

    mutations = apply_event("zoom", "recording.completed", payload, IN_PROGRESS, NOW)

    assert mutations["recording_url"] == "https://zoom.us/rec/download/audio_only"
    assert mutations["recording_file_size"] == 2048


def test_recording_completed_with_malformed_payload_object():
    payload = {"event": "recording.completed", "payload": {"object": "oops"}}

    mutations = apply_event("zoom", "recording.completed", payload, IN_PROGRESS, NOW)

    assert mutations["recording_status"] == RecordingStatus.COMPLETED
    assert mutations["recording_url"] is None
