"""In-memory storage implementations."""

from stockledger.infrastructure.storage.memory.ledger_store import MemoryLedgerStore

__all__ = ["MemoryLedgerStore"]
