"""Database layer for ledgerbook."""

from ledgerbook.database.base import Database
from ledgerbook.database.factories import (
    create_database,
    create_memory_database,
    create_sqlite_database,
)
from ledgerbook.database.memory import InMemoryDatabase

__all__ = [
    "Database",
    "InMemoryDatabase",
    "create_database",
    "create_memory_database",
    "create_sqlite_database",
]
