"""Provider event applier registry."""

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from src.services.webhooks.appliers.base import (
    BaseEventApplier,
    FieldMutations,
    InterviewState,
    UnknownProviderError,
)
from src.services.webhooks.appliers.zoom import ZoomEventApplier, ZoomEventType

_APPLIERS: dict[str, BaseEventApplier] = {
    applier.provider: applier for applier in (ZoomEventApplier(),)
}


def get_event_applier(provider: str) -> BaseEventApplier:
    """Return the applier registered for a provider.

    Raises:
        UnknownProviderError: If no applier handles this provider
    """
    applier = _APPLIERS.get(provider)
    if applier is None:
        raise UnknownProviderError(f"No event applier registered for provider: {provider}")
    return applier


def apply_event(
    provider: str,
    event_type: str,
    payload: Mapping[str, Any] | None,
    current: InterviewState,
    now: datetime,
) -> FieldMutations:
    """Compute the interview field mutations for a provider event (pure, no I/O)."""
    return get_event_applier(provider).apply(event_type, payload, current, now)


__all__ = [
    "BaseEventApplier",
    "FieldMutations",
    "InterviewState",
    "UnknownProviderError",
    "ZoomEventApplier",
    "ZoomEventType",
    "apply_event",
    "get_event_applier",
]
