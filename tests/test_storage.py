from __future__ import annotations

import json
import logging

import pytest

from app.models import Recipe
from app.storage import (
    STORAGE_KEY,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    RecipeStorage,
    StorageError,
    StorageQuotaExceeded,
)


def make_recipes() -> list[Recipe]:
    return [
        Recipe(
            id=1710419400001,
            name="Caprese",
            ingredients=["tomato", "basil", "mozzarella"],
            steps=["slice", "layer", "drizzle"],
            image="data:image/png;base64,AAAA",
            date_added="03/14/24",
        ),
        Recipe(
            id=1710419400000,
            name="Soup",
            ingredients=["water"],
            steps=["boil"],
            image="data:image/svg+xml;base64,BBBB",
            date_added="03/14/24",
        ),
    ]


def test_save_then_load_returns_equal_collection():
    storage = RecipeStorage(InMemoryKeyValueStore())
    recipes = make_recipes()

    assert storage.save(recipes) is True
    assert storage.load() == recipes


def test_saved_blob_uses_persisted_field_names():
    store = InMemoryKeyValueStore()
    RecipeStorage(store).save(make_recipes()[:1])

    (record,) = json.loads(store.get_item(STORAGE_KEY))
    assert set(record) == {"id", "name", "ingredients", "steps", "image", "dateAdded"}
    assert record["dateAdded"] == "03/14/24"


def test_load_without_stored_blob_is_empty():
    assert RecipeStorage(InMemoryKeyValueStore()).load() == []


@pytest.mark.parametrize(
    "blob",
    (
        "{not json",
        json.dumps({"id": 1}),
        json.dumps([{"name": "no id"}]),
        json.dumps([{"id": 1, "name": "Soup", "ingredients": "water", "steps": []}]),
        '[{"id": Infinity, "name": "x"}]',
        json.dumps([{"id": 1.5, "name": "Half"}]),
    ),
)
def test_load_recovers_from_malformed_blob(blob, caplog):
    storage = RecipeStorage(InMemoryKeyValueStore({STORAGE_KEY: blob}))

    with caplog.at_level(logging.ERROR, logger="app.storage"):
        assert storage.load() == []

    assert "Error loading recipes" in caplog.text


def test_save_reports_quota_exceeded(caplog):
    storage = RecipeStorage(InMemoryKeyValueStore(quota=64))

    with caplog.at_level(logging.ERROR, logger="app.storage"):
        assert storage.save(make_recipes()) is False

    assert "Error saving recipes" in caplog.text
    assert storage.load() == []


def test_in_memory_store_enforces_quota():
    store = InMemoryKeyValueStore(quota=20)
    store.set_item("k", "small")

    with pytest.raises(StorageQuotaExceeded):
        store.set_item("k", "x" * 50)

    assert store.get_item("k") == "small"


def test_json_file_store_persists_across_instances(tmp_path):
    path = tmp_path / "book.json"
    recipes = make_recipes()

    assert RecipeStorage(JsonFileKeyValueStore(path)).save(recipes)

    assert RecipeStorage(JsonFileKeyValueStore(path)).load() == recipes
    assert STORAGE_KEY in json.loads(path.read_text(encoding="utf-8"))


def test_json_file_store_missing_file_reads_as_absent(tmp_path):
    assert JsonFileKeyValueStore(tmp_path / "missing.json").get_item(STORAGE_KEY) is None


def test_json_file_store_keeps_other_keys(tmp_path):
    store = JsonFileKeyValueStore(tmp_path / "book.json")
    store.set_item("theme", "dark")
    store.set_item(STORAGE_KEY, "[]")

    assert store.get_item("theme") == "dark"


def test_json_file_store_rejects_corrupt_file(tmp_path):
    path = tmp_path / "book.json"
    path.write_text("garbage", encoding="utf-8")

    with pytest.raises(StorageError):
        JsonFileKeyValueStore(path).get_item(STORAGE_KEY)

    assert RecipeStorage(JsonFileKeyValueStore(path)).load() == []


def test_json_file_store_quota(tmp_path):
    storage = RecipeStorage(JsonFileKeyValueStore(tmp_path / "book.json", quota=32))

    assert storage.save(make_recipes()) is False
    assert not (tmp_path / "book.json").exists()


def test_json_file_store_rejects_undecodable_bytes(tmp_path):
    path = tmp_path / "book.json"
    path.write_bytes(b'{"recipeBook": "\xff\xfe"}')

    with pytest.raises(StorageError):
        JsonFileKeyValueStore(path).get_item(STORAGE_KEY)

    assert RecipeStorage(JsonFileKeyValueStore(path)).load() == []


def test_whole_float_ids_are_accepted():
    blob = json.dumps([{"id": 1710419400000.0, "name": "Soup", "ingredients": ["water"], "steps": ["boil"]}])

    (recipe,) = RecipeStorage(InMemoryKeyValueStore({STORAGE_KEY: blob})).load()

    assert recipe.id == 1710419400000
    assert isinstance(recipe.id, int)
