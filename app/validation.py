from dataclasses import dataclass
from typing import Dict


FIELD_MESSAGES = {
    "name": "Please enter a recipe name.",
    "ingredients": "Please enter at least one ingredient.",
    "steps": "Please enter the preparation steps.",
}


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of checking a recipe submission field by field."""

    name_valid: bool
    ingredients_valid: bool
    steps_valid: bool

    @property
    def all_valid(self) -> bool:
        return self.name_valid and self.ingredients_valid and self.steps_valid

    def errors(self) -> Dict[str, str]:
        """Return the message for each invalid field, keyed by field name."""

        flags = {
            "name": self.name_valid,
            "ingredients": self.ingredients_valid,
            "steps": self.steps_valid,
        }
        return {field: FIELD_MESSAGES[field] for field, valid in flags.items() if not valid}


def validate(name: str, ingredients_text: str, steps_text: str) -> ValidationResult:
    return ValidationResult(
        name_valid=bool((name or "").strip()),
        ingredients_valid=bool((ingredients_text or "").strip()),
        steps_valid=bool((steps_text or "").strip()),
    )


__all__ = ["FIELD_MESSAGES", "ValidationResult", "validate"]
