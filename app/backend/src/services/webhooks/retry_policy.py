"""Backoff schedule and dead-letter decision for failed webhook events."""

from datetime import datetime, timedelta

# Delay before attempt n+1, indexed by the number of attempts already made.
# The last entry is a flat ceiling, not a step in an exponential curve.
RETRY_DELAYS = (
    timedelta(minutes=5),
    timedelta(minutes=15),
    timedelta(minutes=60),
)


def next_retry_delay(attempt: int) -> timedelta:
    """Return how long to wait after the given (1-based) failed attempt.

    Attempt 1 waits 5 minutes, attempt 2 waits 15 minutes, attempt 3 and beyond
    wait 60 minutes. Attempt numbers below 1 are treated as 1.
    """
    index = min(max(attempt, 1), len(RETRY_DELAYS)) - 1
    return RETRY_DELAYS[index]


def should_dead_letter(attempts: int, max_attempts: int) -> bool:
    """Return True when an event with this many failed attempts has exhausted its budget."""
    return attempts >= max_attempts


def compute_next_retry_at(attempt: int, now: datetime) -> datetime:
    """Return the earliest time the event may be reprocessed after a failed attempt."""
    return now + next_retry_delay(attempt)
