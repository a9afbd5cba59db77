"""Abstract base class for provider event appliers."""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from src.db.models.interview import InterviewStatus

logger = logging.getLogger(__name__)

FieldMutations = dict[str, Any]


class UnknownProviderError(Exception):
    """Raised when an event names a provider with no registered applier or resolver."""

    pass


@dataclass(frozen=True)
class InterviewState:
    """Snapshot of the interview fields a transition may depend on."""

    status: InterviewStatus


EventHandler = Callable[[Mapping[str, Any], InterviewState, datetime], FieldMutations]


class BaseEventApplier(ABC):
    """Maps (event_type, payload, current interview state) to interview field mutations.

    Subclasses declare their event vocabulary through ``handlers``. Appliers are pure:
    they never perform I/O, and ``now`` is passed in so results are deterministic.
    """

    provider: str

    @property
    @abstractmethod
    def handlers(self) -> Mapping[str, EventHandler]:
        """Handlers keyed by provider event type."""
        raise NotImplementedError

    @abstractmethod
    def event_timestamp(self, payload: Mapping[str, Any], now: datetime) -> datetime:
        """Best-known time the provider emitted the event, defaulting to ``now``."""
        raise NotImplementedError

    def apply(
        self,
        event_type: str,
        payload: Mapping[str, Any] | None,
        current: InterviewState,
        now: datetime,
    ) -> FieldMutations:
        """Compute the interview mutation for one event.

        Unknown event types are a no-op: providers add event types over time and an
        unrecognised one must not be retried or dead-lettered.
        """
        handler = self.handlers.get(event_type)
        if handler is None:
            logger.warning(
                "Unhandled webhook event type: provider=%s event_type=%s",
                self.provider,
                event_type,
            )
            return {}

        payload = payload or {}
        received_at = self.event_timestamp(payload, now)

        mutations = handler(payload, current, now)
        mutations["webhook_last_received_at"] = received_at
        mutations["webhook_event_type"] = event_type
        return mutations
