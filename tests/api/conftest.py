"""Fixtures for API tests: the app wired to an in-memory ledger."""

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from stockledger.api.dependencies import get_ledger
from stockledger.api.main import app
from stockledger.application.ledger import InventoryLedger
from stockledger.infrastructure.storage.memory import MemoryLedgerStore


@pytest.fixture
async def api_ledger() -> AsyncGenerator[InventoryLedger, None]:
    ledger = InventoryLedger(MemoryLedgerStore())
    await ledger.open()
    yield ledger
    await ledger.close()


@pytest.fixture
async def client(api_ledger: InventoryLedger) -> AsyncGenerator[AsyncClient, None]:
    app.dependency_overrides[get_ledger] = lambda: api_ledger
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.pop(get_ledger, None)


@pytest.fixture
async def cable_id(client: AsyncClient) -> str:
    response = await client.post(
        "/api/materials",
        json={"name": "Copper cable", "unit": "m", "category": "Electrical", "stock": 100},
    )
    return response.json()["id"]
