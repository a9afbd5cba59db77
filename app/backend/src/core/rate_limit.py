"""Rate limiter shared by all routers.

Counters live in Redis when REDIS_URL is configured so limits hold across instances;
otherwise they are kept in process memory (single-instance deployments and tests).
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from src.core.config import get_settings

limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=get_settings().rate_limit_storage_uri,
)
