from __future__ import annotations

import os
from typing import Any, Optional

from google.api_core import exceptions as gcloud_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import firestore

from .storage import StorageError, StorageQuotaExceeded


# Firestore rejects documents larger than 1 MiB.
MAX_DOCUMENT_BYTES = 1_048_576
VALUE_FIELD = "value"


class FirestoreKeyValueStore:
    """Key-value store keeping one Firestore document per key."""

    def __init__(
        self,
        *,
        project: Optional[str] = None,
        collection_name: str = "recipe_book",
        client: Any = None,
    ) -> None:
        self._project = project
        self._collection_name = collection_name

        self._firestore_client = client if client is not None else firestore.Client(project=project)
        self._collection = self._firestore_client.collection(collection_name)

    @classmethod
    def from_env(cls) -> "FirestoreKeyValueStore":
        """Build a store from environment variables."""

        project = os.environ.get("GCP_PROJECT")
        collection_name = os.environ.get("RECIPES_COLLECTION", "recipe_book")
        return cls(project=project, collection_name=collection_name)

    def get_item(self, key: str) -> Optional[str]:
        try:
            snapshot = self._collection.document(key).get()
        except (gcloud_exceptions.GoogleAPICallError, auth_exceptions.GoogleAuthError) as exc:
            raise StorageError(f"Could not read {key!r} from Firestore: {exc}") from exc

        if not snapshot.exists:
            return None

        data = snapshot.to_dict() or {}
        value = data.get(VALUE_FIELD)
        if value is not None and not isinstance(value, str):
            raise StorageError(f"Firestore document {key!r} does not hold a string value.")
        return value

    def set_item(self, key: str, value: str) -> None:
        size = len(value.encode("utf-8"))
        if size > MAX_DOCUMENT_BYTES:
            raise StorageQuotaExceeded(
                f"Value for {key!r} is {size} bytes, Firestore documents are limited to "
                f"{MAX_DOCUMENT_BYTES}."
            )

        try:
            self._collection.document(key).set({VALUE_FIELD: value})
        except gcloud_exceptions.InvalidArgument as exc:
            # Raised for documents that exceed the size limit once indexed.
            raise StorageQuotaExceeded(f"Firestore rejected {key!r}: {exc}") from exc
        except (gcloud_exceptions.GoogleAPICallError, auth_exceptions.GoogleAuthError) as exc:
            raise StorageError(f"Could not write {key!r} to Firestore: {exc}") from exc


__all__ = ["FirestoreKeyValueStore"]
