from __future__ import annotations

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from bizvalue.core.cache import cache, rate_cache
from bizvalue.data.progress_store import MemoryStore
from bizvalue.main import create_app
from bizvalue.services.wizard import drop_sessions


@pytest.fixture(autouse=True)
def clean_state():
    cache.clear()
    rate_cache.clear()
    MemoryStore.reset()
    drop_sessions()
    yield
    cache.clear()
    rate_cache.clear()
    MemoryStore.reset()
    drop_sessions()


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    app = create_app()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def gas_station() -> dict:
    return {
        "category": "Gas Station",
        "location": "Austin, TX",
        "revenue": 500_000,
        "gross_margin": 40,
        "opex": 150_000,
        "addbacks": 20_000,
        "inventory_included": False,
        "real_estate_included": False,
        "risk_flags": ["Lease expiry"],
    }
