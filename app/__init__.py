import asyncio
import os
from typing import Any, Mapping, Optional, Tuple

from flask import Flask, flash, jsonify, redirect, render_template, request, url_for

from .controller import NOTIFICATION_SECONDS, RecipeBookController
from .images import ImageIngestor, IngestStatus
from .models import Recipe
from .repository import RecipeRepository
from .storage import InMemoryKeyValueStore, JsonFileKeyValueStore, KeyValueStore, RecipeStorage

try:
    from .gcp_storage import FirestoreKeyValueStore
except ImportError:  # pragma: no cover - allows running without the gcp extra
    FirestoreKeyValueStore = None  # type: ignore[assignment,misc]


def create_app(
    storage: Optional[KeyValueStore] = None,
    config: Optional[Mapping[str, Any]] = None,
) -> Flask:
    """Create and configure the Flask application.

    Parameters
    ----------
    storage:
        Optional key-value store holding the recipe book. When ``None`` the
        backend named by ``RECIPE_STORAGE_BACKEND`` is built from the
        configuration.
    config:
        Optional overrides applied on top of the environment defaults.
    """

    app = Flask(__name__)
    app.config.setdefault("MAX_CONTENT_LENGTH", 16 * 1024 * 1024)
    app.config.update(
        SECRET_KEY=os.environ.get("FLASK_SECRET_KEY", "development-secret-change-me"),
        RECIPE_STORAGE_BACKEND=os.environ.get("RECIPE_STORAGE_BACKEND", "file"),
        RECIPE_STORAGE_PATH=os.environ.get("RECIPE_STORAGE_PATH", "recipe_book.json"),
        RECIPE_STORAGE_QUOTA=_optional_int(os.environ.get("RECIPE_STORAGE_QUOTA")),
    )
    if config:
        app.config.update(config)

    if storage is None:
        storage = _storage_from_config(app.config)

    repository = RecipeRepository(RecipeStorage(storage))
    controller = RecipeBookController(repository, ImageIngestor())
    app.config["RECIPE_CONTROLLER"] = controller

    def _flash_pending() -> None:
        notification = controller.take_notification()
        if notification is not None:
            flash(notification.message, notification.category)

    def _back():
        _flash_pending()
        return redirect(url_for("index"))

    @app.get("/")
    def index() -> str:
        return render_template(
            "index.html",
            page=controller.view(),
            dismiss_after=NOTIFICATION_SECONDS,
            title="Recipe Book",
        )

    @app.get("/recipes/new")
    def new_recipe():
        controller.show_form()
        return _back()

    @app.get("/recipes")
    def view_all():
        controller.view_all()
        return _back()

    @app.post("/recipes/cancel")
    def cancel():
        controller.cancel()
        return _back()

    @app.post("/recipes")
    def submit_recipe():
        name, ingredients, steps = _form_text()
        image = request.files.get("image")
        if image and image.filename:
            status = asyncio.run(controller.select_image(image))
            if status is IngestStatus.REJECTED_TOO_LARGE:
                controller.keep_form(name, ingredients, steps)
                return _back()

        controller.submit(name, ingredients, steps)
        return _back()

    @app.post("/recipes/image")
    def select_image():
        controller.keep_form(*_form_text())
        asyncio.run(controller.select_image(request.files.get("image")))
        return _back()

    @app.get("/search")
    def search():
        controller.search(request.args.get("q", ""))
        return _back()

    @app.get("/recipes/close")
    def close_detail():
        controller.close_detail()
        return _back()

    @app.get("/recipes/<int:recipe_id>")
    def show_recipe(recipe_id: int):
        controller.open_detail(recipe_id)
        return _back()

    @app.post("/recipes/<int:recipe_id>/delete")
    def delete_recipe(recipe_id: int):
        controller.delete(recipe_id)
        return _back()

    @app.get("/api/recipes")
    def export_recipes():
        return jsonify([recipe.to_dict() for recipe in repository.recipes()])

    return app


def _storage_from_config(config: Mapping[str, Any]) -> KeyValueStore:
    backend = config["RECIPE_STORAGE_BACKEND"]
    quota = config.get("RECIPE_STORAGE_QUOTA")

    if backend == "memory":
        return InMemoryKeyValueStore(quota=quota)
    if backend == "file":
        return JsonFileKeyValueStore(config["RECIPE_STORAGE_PATH"], quota=quota)
    if backend == "firestore":
        if FirestoreKeyValueStore is None:
            raise RuntimeError(
                "google-cloud-firestore is not installed. Install the 'gcp' extra "
                "or pass an explicit storage backend to create_app."
            )
        return FirestoreKeyValueStore.from_env()

    raise RuntimeError(f"Unknown RECIPE_STORAGE_BACKEND {backend!r}.")


def _form_text() -> Tuple[str, str, str]:
    return (
        request.form.get("name", ""),
        request.form.get("ingredients", ""),
        request.form.get("steps", ""),
    )


def _optional_int(value: Optional[str]) -> Optional[int]:
    if value is None or not value.strip():
        return None
    return int(value)


__all__ = ["create_app", "Recipe"]
