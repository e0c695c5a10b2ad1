from __future__ import annotations

import pytest

pytest.importorskip("google.cloud.firestore")

from google.api_core import exceptions as gcloud_exceptions  # noqa: E402

from app.gcp_storage import MAX_DOCUMENT_BYTES, FirestoreKeyValueStore  # noqa: E402
from app.models import Recipe  # noqa: E402
from app.storage import RecipeStorage, StorageError, StorageQuotaExceeded  # noqa: E402


class FakeSnapshot:
    def __init__(self, data):
        self._data = data
        self.exists = data is not None

    def to_dict(self):
        return dict(self._data) if self._data is not None else None


class FakeDocument:
    def __init__(self, collection, key):
        self._collection = collection
        self._key = key

    def get(self):
        if self._collection.fail_with:
            raise self._collection.fail_with
        return FakeSnapshot(self._collection.docs.get(self._key))

    def set(self, data):
        if self._collection.fail_with:
            raise self._collection.fail_with
        self._collection.docs[self._key] = dict(data)


class FakeCollection:
    def __init__(self):
        self.docs = {}
        self.fail_with = None

    def document(self, key):
        return FakeDocument(self, key)


class FakeClient:
    def __init__(self):
        self.collections = {}

    def collection(self, name):
        return self.collections.setdefault(name, FakeCollection())


@pytest.fixture
def client():
    return FakeClient()


@pytest.fixture
def store(client):
    return FirestoreKeyValueStore(collection_name="recipe_book", client=client)


def test_missing_document_reads_as_absent(store):
    assert store.get_item("recipeBook") is None


def test_value_is_written_to_one_document_per_key(store, client):
    store.set_item("recipeBook", "[]")

    assert client.collections["recipe_book"].docs == {"recipeBook": {"value": "[]"}}
    assert store.get_item("recipeBook") == "[]"


def test_recipe_storage_round_trip(store):
    storage = RecipeStorage(store)
    recipes = [Recipe(id=1, name="Soup", ingredients=["water"], steps=["boil"], image="img", date_added="1/1/2024")]

    assert storage.save(recipes)
    assert storage.load() == recipes


def test_oversized_value_exceeds_quota(store, client):
    with pytest.raises(StorageQuotaExceeded):
        store.set_item("recipeBook", "x" * (MAX_DOCUMENT_BYTES + 1))

    assert client.collections["recipe_book"].docs == {}


def test_invalid_argument_is_treated_as_quota(store, client):
    client.collections["recipe_book"].fail_with = gcloud_exceptions.InvalidArgument("too big")

    with pytest.raises(StorageQuotaExceeded):
        store.set_item("recipeBook", "[]")


def test_api_errors_become_storage_errors(store, client):
    client.collections["recipe_book"].fail_with = gcloud_exceptions.ServiceUnavailable("down")

    with pytest.raises(StorageError):
        store.get_item("recipeBook")
    with pytest.raises(StorageError):
        store.set_item("recipeBook", "[]")

    assert RecipeStorage(store).load() == []
    assert RecipeStorage(store).save([]) is False
