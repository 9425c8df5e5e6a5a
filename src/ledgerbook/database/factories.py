"""Database factory functions for creating database instances."""

import os
from pathlib import Path
from typing import Optional

from ledgerbook.database.base import Database
from ledgerbook.database.memory import InMemoryDatabase
from ledgerbook.database.sqlalchemy_db import SQLAlchemyDatabase


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    Args:
        database_path: Path to SQLite database file. If None, checks LEDGERBOOK_DB_PATH
            environment variable, then defaults to ~/.ledgerbook/ledgerbook.db

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    if database_path is None:
        # Check environment variable
        database_path = os.environ.get("LEDGERBOOK_DB_PATH")

    if database_path is None:
        # Default to ~/.ledgerbook/ledgerbook.db
        home = Path.home()
        db_dir = home / ".ledgerbook"
        db_dir.mkdir(exist_ok=True)
        database_path = str(db_dir / "ledgerbook.db")

    database_url = f"sqlite:///{database_path}"
    return SQLAlchemyDatabase(database_url)


def create_database(database_path: Optional[str] = None) -> Database:
    """Create the configured database.

    LEDGERBOOK_DB_URL (a full SQLAlchemy URL for a hosted database) is used
    when neither ``database_path`` nor LEDGERBOOK_DB_PATH is set; otherwise
    a SQLite file is used.

    Args:
        database_path: Optional path to a SQLite database file

    Returns:
        Database instance
    """
    database_url = os.environ.get("LEDGERBOOK_DB_URL")
    if database_path is None:
        database_path = os.environ.get("LEDGERBOOK_DB_PATH")
    if database_url and database_path is None:
        return SQLAlchemyDatabase(database_url)
    return create_sqlite_database(database_path=database_path)


def create_memory_database() -> InMemoryDatabase:
    """Create an empty in-memory database."""
    return InMemoryDatabase()
