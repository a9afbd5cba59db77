from src.schemas.webhook_event import (
    DeadLetterList,
    ReclaimStaleResponse,
    RequeueRequest,
    RequeueResponse,
    WebhookAck,
    WebhookEventRead,
    WebhookRetryRunResponse,
)

__all__ = [
    "DeadLetterList",
    "ReclaimStaleResponse",
    "RequeueRequest",
    "RequeueResponse",
    "WebhookAck",
    "WebhookEventRead",
    "WebhookRetryRunResponse",
]
