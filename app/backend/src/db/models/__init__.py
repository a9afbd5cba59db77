from src.db.models.interview import Interview, InterviewStatus, RecordingStatus
from src.db.models.webhook_event import WebhookEvent, WebhookEventStatus, WebhookProvider

__all__ = [
    "Interview",
    "InterviewStatus",
    "RecordingStatus",
    "WebhookEvent",
    "WebhookEventStatus",
    "WebhookProvider",
]
