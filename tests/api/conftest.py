"""Fixtures for API tests."""

import pytest
from httpx import ASGITransport, AsyncClient

from invoicekit.api.dependencies import get_app_settings
from invoicekit.api.main import app


@pytest.fixture
async def api():
    """Async client against the app; overrides are dropped afterwards."""
    get_app_settings.cache_clear()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
    get_app_settings.cache_clear()
