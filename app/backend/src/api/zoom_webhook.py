"""Zoom webhook endpoint for meeting and recording lifecycle events."""

import json
import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.clock import utc_now
from src.core.config import get_settings
from src.core.rate_limit import limiter
from src.db.models.webhook_event import WebhookProvider
from src.db.session import get_db
from src.schemas.webhook_event import WebhookAck
from src.services.webhooks.appliers import ZoomEventType
from src.services.webhooks.ingestion import WebhookIngestionService
from src.services.webhooks.zoom_signature import (
    build_url_validation_response,
    verify_zoom_signature,
)

router = APIRouter(prefix="/api/webhooks/zoom", tags=["zoom-webhooks"])
logger = logging.getLogger(__name__)


def build_event_id(event: str, event_ts: Any, meeting_id: str) -> str:
    """Derive the idempotency key for a Zoom delivery (event + timestamp + meeting)."""
    timestamp = event_ts or int(utc_now().timestamp() * 1000)
    return f"{event}-{timestamp}-{meeting_id}"


def _signature_is_valid(body: str, request: Request) -> bool:
    settings = get_settings()
    secret = settings.ZOOM_WEBHOOK_SECRET

    if secret is None or not secret.get_secret_value():
        logger.warning("ZOOM_WEBHOOK_SECRET not set, skipping signature validation")
        return not settings.is_production

    return verify_zoom_signature(
        body=body,
        signature=request.headers.get("x-zm-signature"),
        timestamp=request.headers.get("x-zm-request-timestamp"),
        secret=secret.get_secret_value(),
        now_epoch_seconds=int(utc_now().timestamp()),
        tolerance_seconds=settings.ZOOM_SIGNATURE_TOLERANCE_SECONDS,
    )


@router.post("", response_model=None)
@limiter.limit(get_settings().RATE_LIMIT_WEBHOOK)
async def receive_zoom_webhook(
    request: Request,
    db_session: AsyncSession = Depends(get_db),
) -> WebhookAck | dict[str, str]:
    """
    Receive Zoom webhook events.

    Handles the endpoint URL validation challenge, then records and applies
    recording/meeting lifecycle events. Rejected deliveries are still answered
    with 200 so Zoom does not retry; retries are owned by the webhook pipeline.
    """
    request.state.actor = "zoom"
    body = (await request.body()).decode("utf-8", errors="replace")

    try:
        payload = json.loads(body)
    except json.JSONDecodeError:
        logger.error("Zoom webhook with invalid JSON")
        return WebhookAck(received=False, error="Invalid JSON")

    if not isinstance(payload, dict):
        logger.error("Zoom webhook body is not a JSON object")
        return WebhookAck(received=False, error="Invalid payload")

    event = payload.get("event")
    event_payload = payload.get("payload") or {}
    if not isinstance(event_payload, dict):
        logger.error(f"Zoom webhook payload is not an object: event={event}")
        return WebhookAck(received=False, error="Invalid payload")

    if event == ZoomEventType.URL_VALIDATION.value:
        secret = get_settings().ZOOM_WEBHOOK_SECRET
        if secret is None or not secret.get_secret_value():
            logger.error("ZOOM_WEBHOOK_SECRET not set for URL validation")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Webhook secret not configured",
            )

        plain_token = event_payload.get("plainToken")
        if not plain_token:
            logger.error("Missing plainToken in Zoom URL validation payload")
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing plainToken")

        logger.info("Zoom webhook URL validation successful")
        return build_url_validation_response(plain_token, secret.get_secret_value())

    if not _signature_is_valid(body, request):
        logger.error("Invalid Zoom webhook signature")
        return WebhookAck(received=False, error="Invalid webhook signature")

    event_object = event_payload.get("object") or {}
    if not isinstance(event_object, dict):
        logger.error(f"Zoom webhook payload.object is not an object: event={event}")
        return WebhookAck(received=False, error="Invalid payload")

    meeting_id = event_object.get("id")
    if not event or meeting_id is None or meeting_id == "":
        logger.error(f"Zoom webhook missing event or object.id: event={event}")
        return WebhookAck(received=False, error="Missing required fields")

    meeting_id = str(meeting_id)
    event_id = build_event_id(event, payload.get("event_ts"), meeting_id)

    service = WebhookIngestionService(db_session)
    result = await service.ingest(
        provider=WebhookProvider.ZOOM.value,
        event_type=event,
        event_id=event_id,
        correlation_key=meeting_id,
        payload=payload,
    )

    logger.info(
        f"Zoom webhook handled: event={event} event_id={event_id} "
        f"status={result.status.value} webhook_event_id={result.webhook_event_id}"
    )
    return WebhookAck(status=result.status.value)
