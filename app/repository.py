from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional

from .images import DEFAULT_IMAGE
from .models import Recipe
from .storage import RecipeStorage
from .validation import ValidationResult, validate


logger = logging.getLogger(__name__)

DATE_FORMAT = "%x"


@dataclass(frozen=True)
class AddResult:
    """Outcome of :meth:`RecipeRepository.add`.

    ``recipe`` is ``None`` when validation failed. ``saved`` is ``False`` when
    the recipe was valid but could not be persisted, in which case the
    collection is left as it was.
    """

    validation: ValidationResult
    recipe: Optional[Recipe] = None
    saved: bool = False


@dataclass(frozen=True)
class DeleteResult:
    removed: bool
    saved: bool


def _split_lines(text: str) -> List[str]:
    return text.strip().splitlines()


class RecipeRepository:
    """Own the recipe collection and keep it in sync with storage."""

    def __init__(
        self,
        storage: RecipeStorage,
        *,
        clock: Callable[[], datetime] = datetime.now,
        default_image: str = DEFAULT_IMAGE,
        date_format: str = DATE_FORMAT,
    ) -> None:
        self._storage = storage
        self._clock = clock
        self._default_image = default_image
        self._date_format = date_format
        self._recipes: List[Recipe] = storage.load()

    def __len__(self) -> int:
        return len(self._recipes)

    def recipes(self) -> List[Recipe]:
        """Return a copy of the collection, newest first."""

        return list(self._recipes)

    def find(self, recipe_id: int) -> Optional[Recipe]:
        return next((recipe for recipe in self._recipes if recipe.id == recipe_id), None)

    def search(self, keyword: str) -> List[Recipe]:
        keyword = (keyword or "").lower()
        if not keyword:
            return self.recipes()

        return [
            recipe
            for recipe in self._recipes
            if keyword in recipe.name.lower() or keyword in " ".join(recipe.ingredients).lower()
        ]

    def add(
        self,
        name: str,
        ingredients_text: str,
        steps_text: str,
        image: Optional[str] = None,
    ) -> AddResult:
        validation = validate(name, ingredients_text, steps_text)
        if not validation.all_valid:
            return AddResult(validation=validation)

        now = self._clock()
        recipe = Recipe(
            id=self._next_id(now),
            name=name.strip(),
            ingredients=_split_lines(ingredients_text),
            steps=_split_lines(steps_text),
            image=image or self._default_image,
            date_added=now.strftime(self._date_format),
        )

        self._recipes.insert(0, recipe)
        if not self._storage.save(self._recipes):
            self._recipes.pop(0)
            return AddResult(validation=validation, recipe=recipe, saved=False)

        logger.info("Added recipe %d (%s)", recipe.id, recipe.name)
        return AddResult(validation=validation, recipe=recipe, saved=True)

    def delete(self, recipe_id: int) -> DeleteResult:
        """Remove the recipe with ``recipe_id`` if present and persist.

        Persistence happens whether or not anything matched.
        """

        remaining = [recipe for recipe in self._recipes if recipe.id != recipe_id]
        removed = len(remaining) != len(self._recipes)
        self._recipes = remaining
        saved = self._storage.save(self._recipes)

        if removed:
            logger.info("Deleted recipe %d", recipe_id)
        return DeleteResult(removed=removed, saved=saved)

    def _next_id(self, now: datetime) -> int:
        candidate = int(now.timestamp() * 1000)
        highest = max((recipe.id for recipe in self._recipes), default=None)
        if highest is not None and candidate <= highest:
            candidate = highest + 1
        return candidate


__all__ = ["AddResult", "DeleteResult", "RecipeRepository"]
