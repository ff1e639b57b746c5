"""Unit tests for the mock document store implementation."""

from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest

from app.schemas import FarmerProfile, SensorDocument
from datastore.documents import MockDocumentCollection, MockDocumentStore


def _sample_reading(document_id: str = "reading-1") -> SensorDocument:
    return SensorDocument(
        id=document_id,
        soil_moisture=32.5,
        temperature=27.0,
        humidity=68.0,
        timestamp=datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc),
    )


def test_put_and_get_round_trip_returns_deep_copy() -> None:
    collection = MockDocumentCollection(name="dataCollectionSensor", model=SensorDocument)
    original = _sample_reading()

    collection.put_item(original)
    fetched = collection.get_item(original.id)

    assert fetched is not None
    assert fetched == original
    assert fetched is not original

    # Mutating the fetched instance should not affect stored data
    fetched.soil_moisture = 1.0
    fetched_again = collection.get_item(original.id)
    assert fetched_again is not None
    assert fetched_again.soil_moisture == 32.5


def test_get_item_returns_none_when_missing() -> None:
    collection = MockDocumentCollection(name="dataCollectionSensor", model=SensorDocument)

    assert collection.get_item("missing-id") is None


def test_put_item_persists_to_disk_and_reloads(tmp_path) -> None:
    path = tmp_path / "readings.json"
    collection = MockDocumentCollection(name="dataCollectionSensor", model=SensorDocument, persistence_path=path)
    reading = _sample_reading()

    collection.put_item(reading)

    assert path.exists()
    on_disk = json.loads(path.read_text())
    assert on_disk[reading.id]["soil_moisture"] == 32.5

    reloaded = MockDocumentCollection(name="dataCollectionSensor", model=SensorDocument, persistence_path=path)
    assert reloaded.get_item(reading.id) == reading
    assert len(reloaded) == 1


def test_unreadable_file_starts_empty(tmp_path) -> None:
    path = tmp_path / "readings.json"
    path.write_text("{broken")

    collection = MockDocumentCollection(name="dataCollectionSensor", model=SensorDocument, persistence_path=path)

    assert collection.scan() == []


def test_update_item_applies_mutation() -> None:
    collection = MockDocumentCollection(name="dataCollectionSensor", model=SensorDocument)
    collection.put_item(_sample_reading())

    updated = collection.update_item(
        "reading-1",
        lambda document: document.model_copy(update={"humidity": 75.0}),
    )

    assert updated.humidity == 75.0
    assert collection.get_item("reading-1").humidity == 75.0


def test_update_and_delete_missing_raise_key_error() -> None:
    collection = MockDocumentCollection(name="dataCollectionSensor", model=SensorDocument)

    with pytest.raises(KeyError):
        collection.update_item("missing", lambda document: document)
    with pytest.raises(KeyError):
        collection.delete_item("missing")


def test_delete_item_removes_document(tmp_path) -> None:
    path = tmp_path / "readings.json"
    collection = MockDocumentCollection(name="dataCollectionSensor", model=SensorDocument, persistence_path=path)
    collection.put_item(_sample_reading("a"))
    collection.put_item(_sample_reading("b"))

    collection.delete_item("a")

    assert [document.id for document in collection.scan()] == ["b"]
    assert set(json.loads(path.read_text())) == {"b"}


def test_store_reuses_collections_by_name(tmp_path) -> None:
    store = MockDocumentStore(root_path=tmp_path)

    first = store.collection("dataCollectionSensor", SensorDocument)
    second = store.collection("dataCollectionSensor", SensorDocument)

    assert first is second
    assert first.persistence_path == tmp_path / "dataCollectionSensor.json"


def test_store_rejects_conflicting_models(tmp_path) -> None:
    store = MockDocumentStore(root_path=tmp_path)
    store.collection("users", FarmerProfile)

    with pytest.raises(ValueError):
        store.collection("users", SensorDocument)


def test_store_without_root_keeps_documents_in_memory() -> None:
    store = MockDocumentStore()

    collection = store.collection("users", FarmerProfile)

    assert collection.persistence_path is None
