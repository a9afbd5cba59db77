"""Centralized test fixtures.

This module re-exports all fixtures from fixture modules to enable
direct imports like: `from fixtures import test_interview`
"""

from .client import admin_headers, client, cron_headers
from .database import db_session, test_engine
from .mocks import avoid_external_requests, reset_rate_limits
from .webhooks import clock, make_webhook_event, test_interview

__all__ = [
    "test_engine",
    "db_session",
    "client",
    "cron_headers",
    "admin_headers",
    "avoid_external_requests",
    "reset_rate_limits",
    "clock",
    "test_interview",
    "make_webhook_event",
]
