import math
from dataclasses import dataclass, field
from typing import Any, Dict, List


def _is_integral(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and math.isfinite(value) and value.is_integer()


@dataclass
class Recipe:
    """Domain object representing a stored recipe."""

    id: int
    name: str
    ingredients: List[str] = field(default_factory=list)
    steps: List[str] = field(default_factory=list)
    image: str = ""
    date_added: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "ingredients": list(self.ingredients),
            "steps": list(self.steps),
            "image": self.image,
            "dateAdded": self.date_added,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "Recipe":
        """Build a recipe from its persisted form.

        Raises :class:`ValueError` when ``data`` is not a well formed record.
        """

        if not isinstance(data, dict):
            raise ValueError(f"Recipe record must be an object, got {type(data).__name__}.")

        recipe_id = data.get("id")
        if not _is_integral(recipe_id):
            raise ValueError(f"Recipe record has an invalid id: {recipe_id!r}.")

        name = data.get("name")
        if not isinstance(name, str):
            raise ValueError(f"Recipe {recipe_id} has an invalid name.")

        ingredients = data.get("ingredients", [])
        steps = data.get("steps", [])
        for label, lines in (("ingredients", ingredients), ("steps", steps)):
            if not isinstance(lines, list) or not all(isinstance(line, str) for line in lines):
                raise ValueError(f"Recipe {recipe_id} has invalid {label}.")

        return cls(
            id=int(recipe_id),
            name=name,
            ingredients=list(ingredients),
            steps=list(steps),
            image=str(data.get("image") or ""),
            date_added=str(data.get("dateAdded") or ""),
        )


__all__ = ["Recipe"]
