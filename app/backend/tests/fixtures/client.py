"""HTTP client-related test fixtures."""

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.session import get_db
from src.main import app


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database session override."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)  # type: ignore
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def cron_headers() -> dict[str, str]:
    """Authorization headers for the scheduler trigger."""
    return {"Authorization": "Bearer test_cron_secret"}


@pytest.fixture
def admin_headers() -> dict[str, str]:
    """Authorization headers for dead letter administration."""
    return {"Authorization": "Bearer test_admin_api_key"}
