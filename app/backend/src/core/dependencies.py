import logging
import secrets
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import SecretStr

from src.core.config import get_settings

http_bearer_scheme = HTTPBearer(auto_error=False)

logger = logging.getLogger(__name__)


def _verify_bearer_secret(
    credentials: HTTPAuthorizationCredentials | None,
    expected: SecretStr | None,
    scope: str,
) -> None:
    """Compare a bearer token against a configured shared secret in constant time."""
    if expected is None or not expected.get_secret_value():
        logger.error(f"Shared secret not configured: scope={scope}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"{scope.capitalize()} authentication not configured",
        )

    if credentials is None or not secrets.compare_digest(
        credentials.credentials.encode(), expected.get_secret_value().encode()
    ):
        logger.warning(f"Unauthorized request: scope={scope}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )


async def verify_cron_secret(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(http_bearer_scheme)],
) -> None:
    """Dependency authenticating the external scheduler via CRON_SECRET."""
    _verify_bearer_secret(credentials, get_settings().CRON_SECRET, scope="cron")

    # Store actor in request state for middleware logging
    request.state.actor = "cron"


async def require_admin(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(http_bearer_scheme)],
) -> None:
    """Dependency authenticating dead letter administration via ADMIN_API_KEY."""
    _verify_bearer_secret(credentials, get_settings().ADMIN_API_KEY, scope="admin")

    request.state.actor = "admin"
