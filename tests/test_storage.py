"""
Tests for careguard.storage -- in-memory key-value store and failure mapping.

Covers: put/get round trip, copy isolation, index lookups, undeclared
indexes and unknown collections, delete/clear/count, and the storage
failure result.
"""

import asyncio

import pytest

from careguard.models import ErrorKind
from careguard.storage import (
    Collections,
    InMemoryKeyValueStore,
    StorageError,
    storage_failure,
)


def _make_record(record_id: str = "evt-1", patient_id: str = "patient-1") -> dict:
    return {
        "id": record_id,
        "patient_id": patient_id,
        "event_type": "MEDICATION",
        "metadata": {"dose": "5mg"},
    }


class TestInMemoryStore:
    def test_put_and_get(self, store):
        asyncio.run(store.put(Collections.CARE_EVENTS, _make_record()))
        assert asyncio.run(store.get_by_id(Collections.CARE_EVENTS, "evt-1")) == _make_record()

    def test_missing_record_is_none(self, store):
        assert asyncio.run(store.get_by_id(Collections.CARE_EVENTS, "nope")) is None

    def test_put_copies_input(self, store):
        record = _make_record()
        asyncio.run(store.put(Collections.CARE_EVENTS, record))
        record["metadata"]["dose"] = "changed"
        stored = asyncio.run(store.get_by_id(Collections.CARE_EVENTS, "evt-1"))
        assert stored["metadata"]["dose"] == "5mg"

    def test_get_returns_copy(self, store):
        asyncio.run(store.put(Collections.CARE_EVENTS, _make_record()))
        first = asyncio.run(store.get_by_id(Collections.CARE_EVENTS, "evt-1"))
        first["metadata"]["dose"] = "changed"
        second = asyncio.run(store.get_by_id(Collections.CARE_EVENTS, "evt-1"))
        assert second["metadata"]["dose"] == "5mg"

    def test_put_overwrites_same_id(self, store):
        asyncio.run(store.put(Collections.CARE_EVENTS, _make_record()))
        asyncio.run(store.put(Collections.CARE_EVENTS, _make_record(patient_id="patient-2")))
        assert asyncio.run(store.count(Collections.CARE_EVENTS)) == 1

    def test_get_by_index(self, store):
        asyncio.run(store.put(Collections.CARE_EVENTS, _make_record("a", "patient-1")))
        asyncio.run(store.put(Collections.CARE_EVENTS, _make_record("b", "patient-2")))
        asyncio.run(store.put(Collections.CARE_EVENTS, _make_record("c", "patient-1")))
        found = asyncio.run(store.get_by_index(Collections.CARE_EVENTS, "patient_id", "patient-1"))
        assert sorted(r["id"] for r in found) == ["a", "c"]

    def test_undeclared_index_rejected(self, store):
        with pytest.raises(StorageError, match="no index"):
            asyncio.run(store.get_by_index(Collections.CARE_EVENTS, "performed_by", "x"))

    def test_unknown_collection_rejected(self, store):
        with pytest.raises(StorageError) as excinfo:
            asyncio.run(store.get_all("nurses"))
        assert excinfo.value.collection == "nurses"
        assert excinfo.value.operation == "get_all"

    def test_record_without_id_rejected(self, store):
        with pytest.raises(StorageError):
            asyncio.run(store.put(Collections.CARE_EVENTS, {"patient_id": "p"}))

    def test_delete_clear_count(self, store):
        for record_id in ("a", "b", "c"):
            asyncio.run(store.put(Collections.RISK_ALERTS, {"id": record_id}))
        asyncio.run(store.delete_by_id(Collections.RISK_ALERTS, "a"))
        assert asyncio.run(store.count(Collections.RISK_ALERTS)) == 2
        asyncio.run(store.clear(Collections.RISK_ALERTS))
        assert asyncio.run(store.get_all(Collections.RISK_ALERTS)) == []

    def test_collections_are_isolated(self, store):
        asyncio.run(store.put(Collections.RESTRAINTS, {"id": "x"}))
        assert asyncio.run(store.get_by_id(Collections.CARE_EVENTS, "x")) is None

    def test_custom_indexes(self):
        store = InMemoryKeyValueStore(indexes={"notes": ("author",)})
        asyncio.run(store.put("notes", {"id": "n1", "author": "ana"}))
        assert len(asyncio.run(store.get_by_index("notes", "author", "ana"))) == 1
        with pytest.raises(StorageError):
            asyncio.run(store.get_all(Collections.CARE_EVENTS))


class TestStorageFailure:
    def test_failure_result(self):
        result = storage_failure(
            StorageError("disk full"),
            operation="put",
            collection=Collections.CARE_EVENTS,
            message="Failed to record the care event",
        )
        assert result.error.code == ErrorKind.SYSTEM_STORAGE_FAILURE
        assert result.error.message == "Failed to record the care event"
        assert result.error.details == {
            "operation": "put",
            "collection": "care_events",
            "error": "disk full",
        }
