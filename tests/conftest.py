"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator, Generator

import pytest

from stockledger.application.ledger import InventoryLedger
from stockledger.config import reset_settings
from stockledger.core.entities import Material, Project, ProjectMaterial
from stockledger.core.services import LedgerState
from stockledger.infrastructure.storage.memory import MemoryLedgerStore


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Isolate tests from the developer's environment and .env."""
    monkeypatch.setenv("STORAGE_BACKEND", "memory")
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def cable() -> Material:
    return Material(id="mat-cable", name="Copper cable", unit="m", category="Electrical", stock=100)


@pytest.fixture
def pipe() -> Material:
    return Material(id="mat-pipe", name="PVC pipe", unit="pcs", category="Plumbing", stock=40)


@pytest.fixture
def state(cable: Material, pipe: Material) -> LedgerState:
    """Draft state with two unreserved materials."""
    return LedgerState.from_entities([cable, pipe], [])


@pytest.fixture
def pending_project() -> Project:
    return Project(
        id="prj-1",
        description="B-100",
        client="ACME",
        materials=[
            ProjectMaterial(
                material_id="mat-cable",
                material_name="Copper cable",
                material_unit="m",
                budgeted_quantity=30,
                actual_quantity=30,
            )
        ],
    )


@pytest.fixture
def memory_store() -> MemoryLedgerStore:
    return MemoryLedgerStore()


@pytest.fixture
async def ledger(memory_store: MemoryLedgerStore) -> AsyncGenerator[InventoryLedger, None]:
    """Opened ledger on an empty in-memory store."""
    ledger = InventoryLedger(memory_store)
    await ledger.open()
    yield ledger
    await ledger.close()
