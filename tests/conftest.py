from __future__ import annotations

from pathlib import Path
import sys
from datetime import datetime

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from app.repository import RecipeRepository  # noqa: E402
from app.storage import InMemoryKeyValueStore, RecipeStorage  # noqa: E402


FIXED_NOW = datetime(2024, 3, 14, 12, 30, 0)


class CountingStorage(RecipeStorage):
    """Recipe storage that records how often it was asked to save."""

    def __init__(self, store) -> None:
        super().__init__(store)
        self.saves = 0

    def save(self, recipes) -> bool:
        self.saves += 1
        return super().save(recipes)


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def storage(store) -> CountingStorage:
    return CountingStorage(store)


@pytest.fixture
def repository(storage) -> RecipeRepository:
    return RecipeRepository(storage, clock=lambda: FIXED_NOW)
