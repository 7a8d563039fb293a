#!/usr/bin/env python3
"""
Stock ledger management CLI.

Usage:
    python manage.py serve       Start the API server
    python manage.py migrate     Apply SQLite migrations (--status to inspect)
    python manage.py summary     Print stock totals and per-material availability
"""

import argparse
import asyncio
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parent


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the API with uvicorn."""
    import uvicorn

    from stockledger.config import get_settings

    settings = get_settings()
    uvicorn.run(
        "stockledger.api.main:app",
        host=args.host or settings.api.host,
        port=args.port or settings.api.port,
        reload=args.reload or settings.api.debug,
    )
    return 0


def cmd_migrate(args: argparse.Namespace) -> int:
    """Bring the SQLite schema up to date."""
    from stockledger.config import configure_logging
    from stockledger.infrastructure.storage.sqlite.migrations.migrator import (
        get_migration_status,
        initialize_database,
    )

    configure_logging()

    if args.status:
        status = asyncio.run(get_migration_status(args.db_path))
        print(f"Database exists:    {status['exists']}")
        print(f"Applied migrations: {', '.join(status['applied_migrations']) or '-'}")
        print(f"Pending migrations: {', '.join(status['pending_migrations']) or '-'}")
        if status["modified_migrations"]:
            print(f"Modified since applied: {', '.join(status['modified_migrations'])}")
        return 0

    results = asyncio.run(
        initialize_database(args.db_path, create_backup_before=not args.no_backup)
    )
    if not results:
        print("Schema is up to date")
    for result in results:
        mark = "OK" if result.success else f"FAILED: {result.error}"
        print(f"v{result.version}_{result.name}  {mark}")
    return 0 if all(r.success for r in results) else 1


async def _print_summary(category: str | None) -> None:
    from stockledger.application.services import build_inventory_ledger

    ledger = build_inventory_ledger()
    await ledger.open()
    try:
        materials = ledger.list_materials(category=category)
        summary = ledger.summary()
    finally:
        await ledger.close()

    if materials:
        print(f"{'CATEGORY':<16} {'MATERIAL':<32} {'STOCK':>8} {'RESERVED':>9} {'AVAIL':>8}")
        for m in materials:
            print(
                f"{m.category[:16]:<16} {f'{m.name} ({m.unit})'[:32]:<32} "
                f"{m.stock:>8} {m.reserved:>9} {m.available:>8}"
            )
        print()
    print(f"Materials:       {summary.material_count}")
    print(f"Total stock:     {summary.total_stock}")
    print(f"Total reserved:  {summary.total_reserved}")
    print(f"Total available: {summary.total_available}")


def cmd_summary(args: argparse.Namespace) -> int:
    """Print the stock summary from the configured store."""
    from stockledger.config import configure_logging

    configure_logging()
    asyncio.run(_print_summary(args.category))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="manage.py",
        description="Stock ledger management CLI",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Start the API server")
    serve.add_argument("--host", help="Bind address (default from API_HOST)")
    serve.add_argument("--port", type=int, help="Port (default from API_PORT)")
    serve.add_argument("--reload", action="store_true", help="Auto-reload on code changes")
    serve.set_defaults(func=cmd_serve)

    migrate = sub.add_parser("migrate", help="Apply SQLite migrations")
    migrate.add_argument("--db-path", type=Path, help="Database path (default from settings)")
    migrate.add_argument("--status", action="store_true", help="Show migration status only")
    migrate.add_argument("--no-backup", action="store_true", help="Skip the pre-migration backup")
    migrate.set_defaults(func=cmd_migrate)

    summary = sub.add_parser("summary", help="Print stock totals")
    summary.add_argument("--category", help="Only list materials in this category")
    summary.set_defaults(func=cmd_summary)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.path.insert(0, str(ROOT_DIR))
    sys.exit(main())
