"""
Key-Value Store Interface.

The engine persists records through an opaque, asynchronous key-value
store organised in named collections.  Records are plain ``dict``s keyed
by their ``"id"`` entry.  Implementations signal any failure by raising
``StorageError``; the engine turns that into a ``SYSTEM_STORAGE_FAILURE``
result and never retries.

``InMemoryKeyValueStore`` is the reference adapter used by the tests and
the demo.  It copies records on the way in and out, so callers never share
mutable state with the store, and it enforces per-collection index
declarations the way an IndexedDB object store does.

Each call is atomic per key.  There is no cross-call locking: concurrent
writers to the same id get last-writer-wins.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Optional, Protocol

from careguard.models import ErrorKind
from careguard.result import Err

logger = logging.getLogger(__name__)


class Collections:
    """Collection names and the secondary indexes each one declares."""

    CARE_EVENTS = "care_events"
    RESTRAINTS = "restraints"
    RISK_ALERTS = "risk_alerts"
    FALL_INCIDENTS = "fall_incidents"
    RISK_CHECKLISTS = "risk_checklists"

    INDEXES: dict[str, tuple[str, ...]] = {
        CARE_EVENTS: ("patient_id", "event_type", "timestamp", "sync_status"),
        RESTRAINTS: ("patient_id", "status"),
        RISK_ALERTS: ("patient_id", "risk_type"),
        FALL_INCIDENTS: ("patient_id", "occurred_at"),
        RISK_CHECKLISTS: ("patient_id", "check_date"),
    }


class StorageError(Exception):
    """Raised by store implementations when an operation cannot complete."""

    def __init__(self, message: str, *, collection: str = "", operation: str = "") -> None:
        super().__init__(message)
        self.collection = collection
        self.operation = operation


class KeyValueStore(Protocol):
    """Asynchronous collection-scoped key-value store."""

    async def put(self, collection: str, record: dict[str, Any]) -> None: ...

    async def get_by_id(self, collection: str, record_id: str) -> Optional[dict[str, Any]]: ...

    async def get_by_index(
        self, collection: str, index_name: str, value: Any
    ) -> list[dict[str, Any]]: ...

    async def get_all(self, collection: str) -> list[dict[str, Any]]: ...

    async def delete_by_id(self, collection: str, record_id: str) -> None: ...

    async def clear(self, collection: str) -> None: ...


class InMemoryKeyValueStore:
    """Dict-backed ``KeyValueStore`` with declared indexes.

    Args:
        indexes: Mapping of collection name to its index names.  Defaults
            to ``Collections.INDEXES``.
    """

    def __init__(self, indexes: Optional[dict[str, tuple[str, ...]]] = None) -> None:
        self._indexes = dict(indexes if indexes is not None else Collections.INDEXES)
        self._data: dict[str, dict[str, dict[str, Any]]] = {
            name: {} for name in self._indexes
        }

    def _collection(self, collection: str, operation: str) -> dict[str, dict[str, Any]]:
        if collection not in self._data:
            raise StorageError(
                f"Unknown collection '{collection}'",
                collection=collection,
                operation=operation,
            )
        return self._data[collection]

    async def put(self, collection: str, record: dict[str, Any]) -> None:
        records = self._collection(collection, "put")
        record_id = record.get("id")
        if not record_id:
            raise StorageError(
                "Record has no 'id' key", collection=collection, operation="put"
            )
        records[record_id] = copy.deepcopy(record)
        logger.debug("put %s/%s", collection, record_id)

    async def get_by_id(self, collection: str, record_id: str) -> Optional[dict[str, Any]]:
        record = self._collection(collection, "get_by_id").get(record_id)
        return copy.deepcopy(record) if record is not None else None

    async def get_by_index(
        self, collection: str, index_name: str, value: Any
    ) -> list[dict[str, Any]]:
        records = self._collection(collection, "get_by_index")
        if index_name not in self._indexes[collection]:
            raise StorageError(
                f"Collection '{collection}' has no index '{index_name}'",
                collection=collection,
                operation="get_by_index",
            )
        return [
            copy.deepcopy(r) for r in records.values() if r.get(index_name) == value
        ]

    async def get_all(self, collection: str) -> list[dict[str, Any]]:
        return [copy.deepcopy(r) for r in self._collection(collection, "get_all").values()]

    async def delete_by_id(self, collection: str, record_id: str) -> None:
        self._collection(collection, "delete_by_id").pop(record_id, None)
        logger.debug("delete %s/%s", collection, record_id)

    async def clear(self, collection: str) -> None:
        self._collection(collection, "clear").clear()

    async def count(self, collection: str) -> int:
        """Number of records in ``collection``.  Not part of ``KeyValueStore``."""
        return len(self._collection(collection, "count"))


# Exceptions a store call may surface that the engine reports as results.
STORAGE_EXCEPTIONS: tuple[type[Exception], ...] = (StorageError, OSError)


def storage_failure(
    exc: Exception, *, operation: str, collection: str, message: str
) -> Err:
    """Build the ``SYSTEM_STORAGE_FAILURE`` result for a failed store call."""
    logger.error("%s on %s failed: %s", operation, collection, exc)
    return Err.of(
        ErrorKind.SYSTEM_STORAGE_FAILURE,
        message,
        details={"operation": operation, "collection": collection, "error": str(exc)},
    )
