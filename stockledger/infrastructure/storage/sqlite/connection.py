"""
SQLite connections for the ledger.

SQLite admits one writer at a time, and the ledger already serialises its
writes, so the pool keeps a single writer connection behind a lock plus a
queue of read-only connections. Every write transaction starts with
``BEGIN IMMEDIATE`` so a competing process (a migration run from the CLI,
say) is detected when the transaction opens, not halfway through it.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from contextvars import ContextVar
from pathlib import Path

import aiosqlite

from stockledger.config import get_logger, get_settings

logger = get_logger(__name__)


class ConnectionPool:
    """
    One writer and ``pool_size - 1`` readers (at least one) over a WAL database.

    ``transaction()`` opened while another is active in the same task context
    joins it; ``acquire()`` inside a transaction hands out the writer so reads
    see the pending writes.
    """

    def __init__(
        self,
        db_path: Path,
        pool_size: int = 5,
        busy_timeout: int = 30000,
    ):
        self.db_path = db_path
        self.busy_timeout = busy_timeout
        self.reader_count = max(1, pool_size - 1)

        self._writer: aiosqlite.Connection | None = None
        self._write_lock = asyncio.Lock()
        self._readers: asyncio.Queue[aiosqlite.Connection] = asyncio.Queue()
        self._connections: list[aiosqlite.Connection] = []
        self._open_lock = asyncio.Lock()
        self._active: ContextVar[aiosqlite.Connection | None] = ContextVar(
            f"sqlite_tx_{id(self)}", default=None
        )

    @property
    def is_open(self) -> bool:
        return self._writer is not None

    @property
    def in_transaction(self) -> bool:
        return self._active.get() is not None

    async def initialize(self) -> None:
        async with self._open_lock:
            if self._writer is not None:
                return

            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            writer = await self._connect(read_only=False)
            self._connections.append(writer)
            for _ in range(self.reader_count):
                reader = await self._connect(read_only=True)
                self._connections.append(reader)
                self._readers.put_nowait(reader)
            self._writer = writer

            logger.info(
                "connection_pool_initialized",
                db_path=str(self.db_path),
                readers=self.reader_count,
            )

    async def _connect(self, read_only: bool) -> aiosqlite.Connection:
        # Autocommit mode: transactions are opened explicitly in transaction()
        conn = await aiosqlite.connect(self.db_path, isolation_level=None)
        await conn.execute("PRAGMA journal_mode=WAL")
        await conn.execute("PRAGMA synchronous=NORMAL")
        await conn.execute(f"PRAGMA busy_timeout={int(self.busy_timeout)}")
        await conn.execute("PRAGMA foreign_keys=ON")
        if read_only:
            await conn.execute("PRAGMA query_only=ON")
        conn.row_factory = aiosqlite.Row
        return conn

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[aiosqlite.Connection]:
        """A read-only connection, or the writer when a transaction is active."""
        active = self._active.get()
        if active is not None:
            yield active
            return

        await self.initialize()
        conn = await self._readers.get()
        try:
            yield conn
        finally:
            self._readers.put_nowait(conn)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Write transaction on the writer connection.

        Commits when the block exits normally and rolls back when it raises.
        Nested blocks share the outermost transaction.
        """
        active = self._active.get()
        if active is not None:
            yield active
            return

        await self.initialize()
        async with self._write_lock:
            conn = self._writer
            assert conn is not None
            await conn.execute("BEGIN IMMEDIATE")
            token = self._active.set(conn)
            try:
                yield conn
            except BaseException as e:
                await self._rollback(conn)
                logger.debug("sqlite_transaction_rolled_back", error=repr(e))
                raise
            else:
                try:
                    await conn.execute("COMMIT")
                except aiosqlite.Error:
                    await self._rollback(conn)
                    raise
            finally:
                self._active.reset(token)

    @staticmethod
    async def _rollback(conn: aiosqlite.Connection) -> None:
        # A failed statement may already have ended the transaction
        if conn.in_transaction:
            await conn.execute("ROLLBACK")

    async def close(self) -> None:
        """Close every connection; the pool reopens on next use."""
        async with self._open_lock:
            if self._writer is None:
                return
            async with self._write_lock:
                for conn in self._connections:
                    await conn.close()
                self._connections.clear()
                self._readers = asyncio.Queue()
                self._writer = None
            logger.info("connection_pool_closed", db_path=str(self.db_path))


_pool: ConnectionPool | None = None


async def get_pool() -> ConnectionPool:
    """Shared pool for the database named by the ``STORAGE_*`` settings."""
    global _pool
    if _pool is None:
        storage = get_settings().storage
        _pool = ConnectionPool(storage.db_path, storage.pool_size, storage.busy_timeout)
        await _pool.initialize()
    return _pool


async def close_pool() -> None:
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None
