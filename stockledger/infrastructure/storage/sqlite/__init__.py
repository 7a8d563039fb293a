"""SQLite storage implementations."""

from stockledger.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    close_pool,
    get_pool,
)
from stockledger.infrastructure.storage.sqlite.ledger_store import SQLiteLedgerStore

__all__ = [
    "ConnectionPool",
    "get_pool",
    "close_pool",
    "SQLiteLedgerStore",
]
