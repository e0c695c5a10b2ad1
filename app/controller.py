"""Command handlers behind every control of the recipe book page.

The controller keeps the page state (form, draft, detail overlay, search
keyword, pending notification) and turns repository contents into read-only
view objects. It knows nothing about HTTP; :func:`app.create_app` maps each
route onto one method here.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .images import ImageIngestor, IngestStatus
from .models import Recipe
from .repository import RecipeRepository
from .validation import validate


logger = logging.getLogger(__name__)

NOTIFICATION_SECONDS = 2.0
CARD_INGREDIENT_COUNT = 3

MSG_ADDED = "Recipe added successfully!"
MSG_SAVE_FAILED = "Error saving recipe. Storage might be full."
MSG_DELETED = "Recipe deleted."
MSG_IMAGE_TOO_LARGE = "Image size should be less than 5MB"


class FormState(enum.Enum):
    IDLE = "idle"
    EDITING = "editing"
    VALIDATING = "validating"
    PERSISTING = "persisting"
    PERSIST_FAILED = "persist_failed"


@dataclass(frozen=True)
class Notification:
    message: str
    category: str
    dismiss_after: float = NOTIFICATION_SECONDS


@dataclass
class Draft:
    """Unsaved form contents, kept until the recipe is added or the form cancelled."""

    image: Optional[str] = None
    name: str = ""
    ingredients_text: str = ""
    steps_text: str = ""


@dataclass(frozen=True)
class CardView:
    id: int
    name: str
    image: str
    summary: str
    date_added: str

    @classmethod
    def from_recipe(cls, recipe: Recipe) -> "CardView":
        return cls(
            id=recipe.id,
            name=recipe.name,
            image=recipe.image,
            summary=", ".join(recipe.ingredients[:CARD_INGREDIENT_COUNT]),
            date_added=recipe.date_added,
        )


@dataclass(frozen=True)
class DetailView:
    id: int
    name: str
    image: str
    ingredients: Tuple[str, ...]
    steps: Tuple[str, ...]

    @classmethod
    def from_recipe(cls, recipe: Recipe) -> "DetailView":
        return cls(
            id=recipe.id,
            name=recipe.name,
            image=recipe.image,
            ingredients=tuple(recipe.ingredients),
            steps=tuple(recipe.steps),
        )


@dataclass(frozen=True)
class FormView:
    open: bool
    state: FormState
    name: str = ""
    ingredients_text: str = ""
    steps_text: str = ""
    errors: Dict[str, str] = field(default_factory=dict)
    image_preview: Optional[str] = None


@dataclass(frozen=True)
class PageView:
    cards: List[CardView]
    form: FormView
    detail: Optional[DetailView] = None
    search: str = ""

    @property
    def empty(self) -> bool:
        return not self.cards


class RecipeBookController:
    def __init__(self, repository: RecipeRepository, ingestor: Optional[ImageIngestor] = None) -> None:
        self.repository = repository
        self.ingestor = ingestor or ImageIngestor()

        self.state = FormState.IDLE
        self.draft = Draft()
        self.errors: Dict[str, str] = {}
        self.detail_id: Optional[int] = None
        self.keyword = ""
        self._notification: Optional[Notification] = None

    @property
    def form_open(self) -> bool:
        return self.state is not FormState.IDLE

    def notify(self, message: str, category: str) -> None:
        self._notification = Notification(message, category)

    def take_notification(self) -> Optional[Notification]:
        """Return the pending notification and forget it."""

        notification, self._notification = self._notification, None
        return notification

    def show_form(self) -> None:
        self.state = FormState.EDITING

    def view_all(self) -> None:
        self.state = FormState.IDLE
        self.keyword = ""

    def cancel(self) -> None:
        self.ingestor.cancel()
        self.state = FormState.IDLE
        self.draft = Draft()
        self.errors = {}

    def keep_form(self, name: str, ingredients_text: str, steps_text: str) -> None:
        """Hold the typed form text in the draft and keep the form open."""

        self.draft.name = name
        self.draft.ingredients_text = ingredients_text
        self.draft.steps_text = steps_text
        if self.state is FormState.IDLE:
            self.state = FormState.EDITING

    def submit(self, name: str, ingredients_text: str, steps_text: str) -> Optional[Recipe]:
        self.keep_form(name, ingredients_text, steps_text)

        self.state = FormState.VALIDATING
        validation = validate(name, ingredients_text, steps_text)
        self.errors = validation.errors()
        if not validation.all_valid:
            self.state = FormState.EDITING
            return None

        self.state = FormState.PERSISTING
        result = self.repository.add(name, ingredients_text, steps_text, image=self.draft.image)
        if not result.saved:
            self.state = FormState.PERSIST_FAILED
            self.notify(MSG_SAVE_FAILED, "error")
            return None

        self.state = FormState.IDLE
        self.draft = Draft()
        self.keyword = ""
        self.notify(MSG_ADDED, "success")
        return result.recipe

    async def select_image(self, file: Any) -> IngestStatus:
        result = await self.ingestor.ingest(file)

        if result.status is IngestStatus.REJECTED_TOO_LARGE:
            self.draft.image = None
            self.notify(MSG_IMAGE_TOO_LARGE, "error")
        elif result.accepted:
            self.draft.image = result.data
        return result.status

    def search(self, keyword: str) -> List[Recipe]:
        self.keyword = keyword or ""
        return self.repository.search(self.keyword)

    def delete(self, recipe_id: int) -> None:
        result = self.repository.delete(recipe_id)
        if self.detail_id == recipe_id:
            self.detail_id = None
        self.keyword = ""

        if result.saved:
            self.notify(MSG_DELETED, "error")
        else:
            self.notify(MSG_SAVE_FAILED, "error")

    def open_detail(self, recipe_id: int) -> Optional[DetailView]:
        recipe = self.repository.find(recipe_id)
        if recipe is None:
            logger.debug("No recipe %d to show", recipe_id)
            self.detail_id = None
            return None
        self.detail_id = recipe_id
        return DetailView.from_recipe(recipe)

    def close_detail(self) -> None:
        self.detail_id = None

    def view(self) -> PageView:
        recipes = self.repository.search(self.keyword)

        detail = None
        if self.detail_id is not None:
            recipe = self.repository.find(self.detail_id)
            detail = DetailView.from_recipe(recipe) if recipe else None

        form = FormView(
            open=self.form_open,
            state=self.state,
            name=self.draft.name,
            ingredients_text=self.draft.ingredients_text,
            steps_text=self.draft.steps_text,
            errors=dict(self.errors),
            image_preview=self.draft.image,
        )

        return PageView(
            cards=[CardView.from_recipe(recipe) for recipe in recipes],
            form=form,
            detail=detail,
            search=self.keyword,
        )


__all__ = [
    "CardView",
    "DetailView",
    "Draft",
    "FormState",
    "FormView",
    "Notification",
    "PageView",
    "RecipeBookController",
]
