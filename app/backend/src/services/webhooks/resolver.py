"""Correlation of provider webhook events to interview records."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute

from src.db.models.interview import Interview
from src.db.models.webhook_event import WebhookProvider
from src.services.webhooks.appliers import UnknownProviderError


class CorrelationError(Exception):
    """Raised when a webhook event cannot be matched to an interview."""

    pass


class MissingCorrelationKeyError(CorrelationError):
    """Raised when the event carries no correlation key."""

    pass


class InterviewNotFoundError(CorrelationError):
    """Raised when no interview matches the correlation key."""

    pass


_CORRELATION_COLUMNS: dict[str, InstrumentedAttribute[str | None]] = {
    WebhookProvider.ZOOM.value: Interview.zoom_meeting_id,
}


class InterviewResolver:
    """Looks up the interview a provider event refers to. Never mutates."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    async def resolve(self, provider: str, correlation_key: str | None) -> Interview:
        """Resolve a provider correlation key to an interview.

        Args:
            provider: Provider name (e.g. "zoom")
            correlation_key: Provider identifier of the target record (Zoom meeting id)

        Returns:
            Matching Interview

        Raises:
            UnknownProviderError: If the provider has no correlation column
            MissingCorrelationKeyError: If correlation_key is empty
            InterviewNotFoundError: If no interview matches
        """
        column = _CORRELATION_COLUMNS.get(provider)
        if column is None:
            raise UnknownProviderError(f"No correlation mapping for provider: {provider}")

        if not correlation_key or not correlation_key.strip():
            raise MissingCorrelationKeyError(f"Missing correlation key in {provider} webhook payload")

        result = await self.db.execute(select(Interview).where(column == correlation_key).limit(1))
        interview = result.scalar_one_or_none()

        if interview is None:
            raise InterviewNotFoundError(
                f"No interview found for {provider} correlation key: {correlation_key}"
            )

        return interview
