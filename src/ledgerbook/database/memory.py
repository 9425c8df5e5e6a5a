"""In-memory collection store.

Local fallback used when no database is configured, and in tests. Records
live only in the snapshots held by the base class.
"""

import logging
from typing import Any, Mapping, Optional, Sequence

from ledgerbook.database.base import Database

log = logging.getLogger(__name__)


class InMemoryDatabase(Database):
    """Database implementation that keeps every collection in memory."""

    def __init__(self, initial: Optional[Mapping[str, Sequence[Any]]] = None):
        """Initialize the store.

        Args:
            initial: Optional records per collection key to start from
        """
        super().__init__()
        self._initial = {key: list(items) for key, items in (initial or {}).items()}
        for key in self._initial:
            self._check_key(key)

    def connect(self) -> None:
        pass

    def disconnect(self) -> None:
        pass

    def initialize_schema(self) -> None:
        pass

    def load_collection(self, key: str) -> list[Any]:
        return list(self._initial.get(key, []))

    def persist_changes(
        self, key: str, added: list[Any], removed: list[Any], changed: list[Any]
    ) -> None:
        # Snapshots are the only storage; nothing to write.
        log.debug("In-memory store: %s updated without persistence", key)
