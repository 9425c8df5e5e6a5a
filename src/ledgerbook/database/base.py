"""Abstract collection store."""

import logging
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Iterator, Sequence

from ledgerbook.domain.collections import COLLECTION_KEYS, HasId, Updater, gen_id

log = logging.getLogger(__name__)


def diff_collection(
    current: Sequence[Any], updated: Sequence[Any]
) -> tuple[list[Any], list[Any], list[Any]]:
    """Compare two snapshots of a collection by record id.

    Returns:
        Tuple of (added, removed, changed) records; removed records are taken
        from ``current``, added and changed ones from ``updated``
    """
    before = {item.id: item for item in current}
    after = {item.id: item for item in updated}
    added = [item for item_id, item in after.items() if item_id not in before]
    removed = [item for item_id, item in before.items() if item_id not in after]
    changed = [
        item
        for item_id, item in after.items()
        if item_id in before and before[item_id] != item
    ]
    return added, removed, changed


class Database(ABC):
    """Abstract collection store for ledgerbook.

    Each named collection is held as an in-memory snapshot. ``update_collection``
    replaces a whole collection with the result of an updater and persists
    the diff through ``persist_changes``. Calls are serialized by a lock so
    concurrent writers cannot interleave within one collection update, and
    ``atomic()`` extends that to a whole multi-collection operation.
    """

    def __init__(self) -> None:
        self._collections: dict[str, list[Any]] = {}
        self._lock = threading.RLock()
        self._atomic_depth = 0

    @abstractmethod
    def connect(self) -> None:
        """Connect to the backing store."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the backing store."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize storage schema (create tables)."""
        pass

    @abstractmethod
    def load_collection(self, key: str) -> list[Any]:
        """Load every record of a collection from the backing store."""
        pass

    @abstractmethod
    def persist_changes(
        self, key: str, added: list[Any], removed: list[Any], changed: list[Any]
    ) -> None:
        """Write a collection diff to the backing store."""
        pass

    def _check_key(self, key: str) -> None:
        if key not in COLLECTION_KEYS:
            raise ValueError(f"Unknown collection '{key}'")

    def get_collection(self, key: str) -> list[Any]:
        """Return a copy of the current snapshot of a collection."""
        self._check_key(key)
        with self._lock:
            if key not in self._collections:
                self._collections[key] = self.load_collection(key)
            return list(self._collections[key])

    def update_collection(self, key: str, updater: Updater) -> list[Any]:
        """Replace a collection with ``updater(snapshot)`` and persist the diff.

        The snapshot is only swapped after persistence succeeds; a failing
        write propagates and leaves the snapshot unchanged.

        Args:
            key: Collection name
            updater: Function returning the new list of records

        Returns:
            The new snapshot
        """
        with self._lock:
            current = self.get_collection(key)
            updated = list(updater(list(current)))
            added, removed, changed = diff_collection(current, updated)
            if added or removed or changed:
                self.persist_changes(key, added, removed, changed)
                log.debug(
                    "Persisted %s: %d added, %d removed, %d changed",
                    key,
                    len(added),
                    len(removed),
                    len(changed),
                )
            self._collections[key] = updated
            return list(updated)

    def gen_id(self, items: Sequence[HasId]) -> int:
        """Return the next id for ``items``."""
        return gen_id(items)

    def reload(self) -> None:
        """Drop cached snapshots so the next read goes to the backing store."""
        with self._lock:
            self._collections.clear()

    @property
    def in_atomic(self) -> bool:
        """True while inside an ``atomic()`` block."""
        return self._atomic_depth > 0

    def commit_atomic(self) -> None:
        """Commit writes persisted during an ``atomic()`` block."""
        pass

    def rollback_atomic(self) -> None:
        """Discard writes persisted during an ``atomic()`` block."""
        pass

    @contextmanager
    def atomic(self) -> Iterator["Database"]:
        """Run several collection updates as one unit.

        The lock is held for the whole block. On an exception the backing
        store is rolled back, every snapshot is restored and the exception
        propagates. Nested blocks join the outermost one.
        """
        with self._lock:
            if self._atomic_depth:
                self._atomic_depth += 1
                try:
                    yield self
                finally:
                    self._atomic_depth -= 1
                return

            saved = dict(self._collections)
            self._atomic_depth = 1
            try:
                yield self
                self.commit_atomic()
            except BaseException as exc:
                self._collections = saved
                self.rollback_atomic()
                log.warning("Rolled back atomic operation after %s", type(exc).__name__)
                raise
            finally:
                self._atomic_depth = 0
