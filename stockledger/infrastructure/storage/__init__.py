"""Storage adapters for the ledger."""

from stockledger.config import Settings, get_logger, get_settings
from stockledger.core.exceptions import ConfigurationError
from stockledger.core.interfaces import ILedgerStore

logger = get_logger(__name__)


def create_ledger_store(settings: Settings | None = None) -> ILedgerStore:
    """Build the store selected by ``STORAGE_BACKEND``."""
    settings = settings or get_settings()
    backend = settings.storage.backend

    if backend == "memory":
        from stockledger.infrastructure.storage.memory import MemoryLedgerStore

        logger.info("ledger_store_selected", backend=backend)
        return MemoryLedgerStore()

    if backend == "sqlite":
        from stockledger.infrastructure.storage.sqlite import ConnectionPool, SQLiteLedgerStore

        pool = ConnectionPool(
            db_path=settings.storage.db_path,
            pool_size=settings.storage.pool_size,
            busy_timeout=settings.storage.busy_timeout,
        )
        logger.info("ledger_store_selected", backend=backend, db_path=str(pool.db_path))
        return SQLiteLedgerStore(pool)

    raise ConfigurationError(f"Unknown storage backend: {backend}")


__all__ = ["create_ledger_store"]
