#!/usr/bin/env python3
"""Migration script to normalize legacy lending counterparties.

Older lendings reference a person only through the ``person_id`` column.
This migration:
- adds the ``counterparty_type`` and ``counterparty_id`` columns if missing
- rewrites every lending with ``person_id`` set and no ``counterparty_type``
  to ``counterparty_type='person'``, ``counterparty_id=person_id``

``person_id`` itself is left in place. The migration is idempotent.

Usage:
    python migrations/migrate_normalize_legacy_counterparty.py [--db-path PATH]
"""

import argparse
import sys

from sqlalchemy import inspect, text

from ledgerbook.database.factories import create_sqlite_database


def column_exists(engine, table_name: str, column_name: str) -> bool:
    """Check if a column exists in a table."""
    inspector = inspect(engine)
    return column_name in [col["name"] for col in inspector.get_columns(table_name)]


def migrate_database(database_path: str | None = None) -> int:
    """Normalize legacy counterparty columns of the lendings table.

    Args:
        database_path: Path to database file. If None, uses default location.

    Returns:
        Number of lendings rewritten

    Raises:
        RuntimeError: If the lendings table does not exist
    """
    db = create_sqlite_database(database_path=database_path)
    db.connect()

    try:
        session = db.session_factory()
        try:
            engine = session.bind
        finally:
            session.close()

        if "lendings" not in inspect(engine).get_table_names():
            raise RuntimeError(
                "Table 'lendings' does not exist. Please initialize the database schema first."
            )

        with engine.begin() as conn:
            for column, ddl in (
                ("counterparty_type", "VARCHAR"),
                ("counterparty_id", "INTEGER"),
                ("person_id", "INTEGER"),
            ):
                if not column_exists(engine, "lendings", column):
                    conn.execute(text(f"ALTER TABLE lendings ADD COLUMN {column} {ddl}"))
                    print(f"  Added column: {column}")

            result = conn.execute(
                text(
                    "UPDATE lendings "
                    "SET counterparty_type = 'person', counterparty_id = person_id "
                    "WHERE counterparty_type IS NULL AND person_id IS NOT NULL"
                )
            )
            rewritten = result.rowcount or 0

        if rewritten:
            print(f"Normalized {rewritten} legacy lending(s) to person counterparties")
        else:
            print("Migration already applied: no legacy lendings found")
        return rewritten
    finally:
        db.disconnect()


def main():
    """Main entry point for migration script."""
    parser = argparse.ArgumentParser(
        description="Normalize legacy person_id lendings to counterparty columns"
    )
    parser.add_argument(
        "--db-path",
        type=str,
        help="Path to database file (overrides LEDGERBOOK_DB_PATH environment variable)",
    )
    args = parser.parse_args()

    try:
        migrate_database(database_path=args.db_path)
        return 0
    except Exception as e:
        print(f"\nMigration failed: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
