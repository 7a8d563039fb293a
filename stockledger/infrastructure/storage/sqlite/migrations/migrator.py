"""
Versioned schema migrations for the ledger database.

Migrations are ``vNNN_name.sql`` files in this package. Each file runs in
its own transaction together with its ``schema_migrations`` row, so a
failing migration leaves the schema at the previous version. An existing
database is copied with SQLite's online backup API before migrating, which
also captures pages still sitting in the WAL file.
"""

import asyncio
import hashlib
import re
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import aiosqlite

from stockledger.config import get_logger, get_settings

logger = get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent
MIGRATION_FILE_RE = re.compile(r"v(\d+)_(.+)\.sql")

TRACKING_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS schema_migrations (
    version TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    checksum TEXT NOT NULL,
    applied_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
)
"""


@dataclass
class MigrationInfo:
    version: str
    name: str
    path: Path
    checksum: str

    @classmethod
    def from_file(cls, path: Path) -> "MigrationInfo":
        match = MIGRATION_FILE_RE.fullmatch(path.name)
        if not match:
            raise ValueError(f"Invalid migration filename: {path.name}")
        checksum = hashlib.sha256(path.read_bytes()).hexdigest()[:16]
        return cls(version=match.group(1), name=match.group(2), path=path, checksum=checksum)

    def script(self) -> str:
        """The migration SQL wrapped in a transaction that also records it."""
        return (
            "BEGIN IMMEDIATE;\n"
            f"{self.path.read_text(encoding='utf-8')}\n;\n"
            "INSERT OR REPLACE INTO schema_migrations (version, name, checksum) VALUES "
            f"({_literal(self.version)}, {_literal(self.name)}, {_literal(self.checksum)});\n"
            "COMMIT;\n"
        )


@dataclass
class MigrationResult:
    version: str
    name: str
    success: bool
    execution_time_ms: int
    error: str | None = None


def _literal(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


async def get_applied_migrations(conn: aiosqlite.Connection) -> dict[str, str]:
    """Applied version -> recorded checksum; empty before the first run."""
    try:
        cursor = await conn.execute(
            "SELECT version, checksum FROM schema_migrations ORDER BY version"
        )
    except aiosqlite.OperationalError:
        return {}
    return {row[0]: row[1] for row in await cursor.fetchall()}


def discover_migrations(directory: Path = MIGRATIONS_DIR) -> list[MigrationInfo]:
    migrations = []
    for path in sorted(directory.glob("v*.sql")):
        try:
            migrations.append(MigrationInfo.from_file(path))
        except ValueError as e:
            logger.warning("skipping_invalid_migration", path=str(path), error=str(e))
    return migrations


async def apply_migration(
    conn: aiosqlite.Connection,
    migration: MigrationInfo,
) -> MigrationResult:
    """Run one migration atomically; failures are reported, not raised."""
    start = time.perf_counter()
    error: str | None = None
    try:
        await conn.executescript(migration.script())
    except aiosqlite.Error as e:
        if conn.in_transaction:
            await conn.execute("ROLLBACK")
        error = str(e)

    elapsed_ms = int((time.perf_counter() - start) * 1000)
    if error is None:
        logger.info(
            "migration_applied",
            version=migration.version,
            name=migration.name,
            execution_time_ms=elapsed_ms,
        )
    else:
        logger.error("migration_failed", version=migration.version, error=error)
    return MigrationResult(
        version=migration.version,
        name=migration.name,
        success=error is None,
        execution_time_ms=elapsed_ms,
        error=error,
    )


async def _copy_database(source: Path, target: Path) -> None:
    async with aiosqlite.connect(source) as src:
        async with aiosqlite.connect(target, check_same_thread=False) as dst:
            await src.backup(dst)


async def create_backup(db_path: Path) -> Path:
    """Snapshot the database next to itself as ``<stem>.backup_<timestamp><suffix>``."""
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    backup_path = db_path.with_name(f"{db_path.stem}.backup_{stamp}{db_path.suffix}")
    await _copy_database(db_path, backup_path)
    logger.info("database_backup_created", backup_path=str(backup_path))
    return backup_path


async def restore_backup(db_path: Path, backup_path: Path) -> None:
    await _copy_database(backup_path, db_path)
    logger.warning("database_restored_from_backup", backup_path=str(backup_path))


async def initialize_database(
    db_path: Path | None = None,
    create_backup_before: bool = True,
    migrations_dir: Path = MIGRATIONS_DIR,
) -> list[MigrationResult]:
    """
    Apply every pending migration, stopping at the first failure.

    Args:
        db_path: Database file (default from ``STORAGE_*`` settings)
        create_backup_before: Snapshot an existing database first
        migrations_dir: Directory holding the ``v*.sql`` files

    Returns:
        Results for the migrations attempted in this run
    """
    db_path = db_path or get_settings().storage.db_path
    db_path.parent.mkdir(parents=True, exist_ok=True)

    pending_backup = create_backup_before and db_path.exists()
    backup_path = await create_backup(db_path) if pending_backup else None
    results: list[MigrationResult] = []

    try:
        async with aiosqlite.connect(db_path, isolation_level=None) as conn:
            await conn.execute("PRAGMA journal_mode=WAL")
            await conn.execute("PRAGMA foreign_keys=ON")
            await conn.execute(TRACKING_TABLE_SQL)
            applied = await get_applied_migrations(conn)

            for migration in discover_migrations(migrations_dir):
                recorded = applied.get(migration.version)
                if recorded is not None:
                    if recorded != migration.checksum:
                        logger.warning("migration_checksum_changed", version=migration.version)
                    continue
                result = await apply_migration(conn, migration)
                results.append(result)
                if not result.success:
                    break
    except Exception as e:
        logger.error("database_initialization_failed", db_path=str(db_path), error=str(e))
        if backup_path is not None:
            await restore_backup(db_path, backup_path)
        raise

    if backup_path is not None:
        if all(r.success for r in results):
            backup_path.unlink()
        else:
            logger.warning("database_backup_kept", backup_path=str(backup_path))

    logger.info("database_initialized", db_path=str(db_path), applied=len(results))
    return results


run_migrations = initialize_database


async def get_migration_status(db_path: Path | None = None) -> dict:
    """Applied, pending and locally modified migration versions."""
    db_path = db_path or get_settings().storage.db_path
    discovered = discover_migrations()

    applied: dict[str, str] = {}
    if db_path.exists():
        async with aiosqlite.connect(db_path) as conn:
            applied = await get_applied_migrations(conn)

    return {
        "exists": db_path.exists(),
        "applied_migrations": list(applied),
        "pending_migrations": [m.version for m in discovered if m.version not in applied],
        "modified_migrations": [
            m.version
            for m in discovered
            if m.version in applied and applied[m.version] != m.checksum
        ],
    }


def main() -> None:
    """``stockledger-migrate`` entry point: apply pending migrations."""
    import argparse

    parser = argparse.ArgumentParser(description="Apply stock ledger schema migrations")
    parser.add_argument("--db-path", type=Path, help="Database path (default from settings)")
    parser.add_argument("--no-backup", action="store_true", help="Skip the pre-migration backup")
    args = parser.parse_args()

    results = asyncio.run(
        initialize_database(args.db_path, create_backup_before=not args.no_backup)
    )
    raise SystemExit(0 if all(r.success for r in results) else 1)


if __name__ == "__main__":
    main()
