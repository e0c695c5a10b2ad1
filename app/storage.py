from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol

from .models import Recipe


logger = logging.getLogger(__name__)

STORAGE_KEY = "recipeBook"


class StorageError(Exception):
    """Raised by key-value stores when an item cannot be read or written."""


class StorageQuotaExceeded(StorageError):
    """Raised when a write would grow the store beyond its quota."""


class KeyValueStore(Protocol):
    """Protocol describing the persistent string store behind the recipe book."""

    def get_item(self, key: str) -> Optional[str]:
        """Return the value stored under ``key`` or ``None`` when absent."""

    def set_item(self, key: str, value: str) -> None:
        """Store ``value`` under ``key`` or raise :class:`StorageError`."""


def _size_of(items: Dict[str, str]) -> int:
    return sum(len(key.encode("utf-8")) + len(value.encode("utf-8")) for key, value in items.items())


class InMemoryKeyValueStore:
    """Process local store, optionally limited to ``quota`` bytes."""

    def __init__(self, items: Optional[Dict[str, str]] = None, *, quota: Optional[int] = None) -> None:
        self._items: Dict[str, str] = dict(items or {})
        self.quota = quota

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        candidate = {**self._items, key: value}
        if self.quota is not None and _size_of(candidate) > self.quota:
            raise StorageQuotaExceeded(
                f"Writing {key!r} needs {_size_of(candidate)} bytes, quota is {self.quota}."
            )
        self._items = candidate


class JsonFileKeyValueStore:
    """Store every key in a single JSON object on disk."""

    def __init__(self, path: str | os.PathLike[str], *, quota: Optional[int] = None) -> None:
        self.path = Path(path)
        self.quota = quota

    def get_item(self, key: str) -> Optional[str]:
        value = self._read_all().get(key)
        if value is not None and not isinstance(value, str):
            raise StorageError(f"Value stored under {key!r} in {self.path} is not a string.")
        return value

    def set_item(self, key: str, value: str) -> None:
        items = self._read_all()
        items[key] = value
        if self.quota is not None and _size_of(items) > self.quota:
            raise StorageQuotaExceeded(
                f"Writing {key!r} needs {_size_of(items)} bytes, quota is {self.quota}."
            )

        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(items), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as exc:
            raise StorageError(f"Could not write {self.path}: {exc}") from exc

    def _read_all(self) -> Dict[str, str]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as exc:
            raise StorageError(f"Could not read {self.path}: {exc}") from exc
        except UnicodeDecodeError as exc:
            raise StorageError(f"{self.path} is not valid UTF-8.") from exc

        try:
            items = json.loads(raw)
        except ValueError as exc:
            raise StorageError(f"{self.path} does not contain valid JSON.") from exc
        if not isinstance(items, dict):
            raise StorageError(f"{self.path} does not contain a JSON object.")
        return items


class RecipeStorage:
    """Serialize the recipe collection as one JSON blob under :data:`STORAGE_KEY`.

    Neither :meth:`load` nor :meth:`save` raises. A collection that cannot be
    read comes back empty, and a failed write is reported through the return
    value so the caller can tell the user.
    """

    def __init__(self, store: KeyValueStore, *, key: str = STORAGE_KEY) -> None:
        self.store = store
        self.key = key

    def load(self) -> List[Recipe]:
        try:
            raw = self.store.get_item(self.key)
        except StorageError:
            logger.exception("Error loading recipes from %r", self.key)
            return []

        if raw is None:
            return []

        try:
            records = json.loads(raw)
            if not isinstance(records, list):
                raise ValueError(f"Expected a list of recipes, got {type(records).__name__}.")
            return [Recipe.from_dict(record) for record in records]
        except ValueError:
            logger.exception("Error loading recipes from %r", self.key)
            return []

    def save(self, recipes: Iterable[Recipe]) -> bool:
        blob = json.dumps([recipe.to_dict() for recipe in recipes])
        try:
            self.store.set_item(self.key, blob)
        except StorageError:
            logger.exception("Error saving recipes to %r", self.key)
            return False
        return True


__all__ = [
    "STORAGE_KEY",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "KeyValueStore",
    "RecipeStorage",
    "StorageError",
    "StorageQuotaExceeded",
]
