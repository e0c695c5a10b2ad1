"""Turn uploaded image files into data URIs that can be stored with a recipe.

Reads happen off the event loop. Every call to :meth:`ImageIngestor.ingest`
is numbered, and only the newest request may deliver its data: when the user
picks another file before an earlier read has finished, the earlier read
resolves as superseded regardless of which one completes first.
"""

from __future__ import annotations

import asyncio
import base64
import enum
import io
import logging
import mimetypes
from dataclasses import dataclass
from typing import Any, Optional


logger = logging.getLogger(__name__)

MAX_IMAGE_BYTES = 5_000_000

_PLACEHOLDER_SVG = (
    '<svg xmlns="http://www.w3.org/2000/svg" width="400" height="300" viewBox="0 0 400 300">'
    '<rect width="400" height="300" fill="#f3ede4"/>'
    '<text x="200" y="165" font-family="sans-serif" font-size="64" text-anchor="middle">'
    "&#127859;</text></svg>"
)
DEFAULT_IMAGE = "data:image/svg+xml;base64," + base64.b64encode(_PLACEHOLDER_SVG.encode("utf-8")).decode(
    "ascii"
)


class IngestStatus(enum.Enum):
    ACCEPTED = "accepted"
    REJECTED_TOO_LARGE = "rejected_too_large"
    SUPERSEDED = "superseded"
    EMPTY = "empty"


@dataclass(frozen=True)
class IngestResult:
    status: IngestStatus
    request_id: int
    data: Optional[str] = None

    @property
    def accepted(self) -> bool:
        return self.status is IngestStatus.ACCEPTED


def file_size(file: Any) -> int:
    """Return the size of an uploaded file without reading its contents."""

    declared = getattr(file, "content_length", None)
    if declared:
        return int(declared)

    stream = getattr(file, "stream", file)
    position = stream.tell()
    try:
        return stream.seek(0, io.SEEK_END)
    finally:
        stream.seek(position)


def to_data_uri(payload: bytes, mimetype: str) -> str:
    encoded = base64.b64encode(payload).decode("ascii")
    return f"data:{mimetype};base64,{encoded}"


class ImageIngestor:
    def __init__(self, *, max_bytes: int = MAX_IMAGE_BYTES, default_image: str = DEFAULT_IMAGE) -> None:
        self.max_bytes = max_bytes
        self._default_image = default_image
        self._latest_request = 0

    def default(self) -> str:
        return self._default_image

    def cancel(self) -> None:
        """Invalidate every read that is still in flight."""

        self._latest_request += 1

    async def ingest(self, file: Any) -> IngestResult:
        self._latest_request += 1
        request_id = self._latest_request

        filename = getattr(file, "filename", None) if file is not None else None
        if not filename:
            return IngestResult(IngestStatus.EMPTY, request_id)

        size = file_size(file)
        if size > self.max_bytes:
            logger.info("Rejected image %r: %d bytes exceeds %d", filename, size, self.max_bytes)
            return IngestResult(IngestStatus.REJECTED_TOO_LARGE, request_id)

        mimetype = getattr(file, "mimetype", None) or mimetypes.guess_type(filename)[0]
        payload = await asyncio.to_thread(file.read)

        if request_id != self._latest_request:
            logger.debug("Discarding image read %d, request %d is newer", request_id, self._latest_request)
            return IngestResult(IngestStatus.SUPERSEDED, request_id)

        return IngestResult(
            IngestStatus.ACCEPTED,
            request_id,
            to_data_uri(payload, mimetype or "application/octet-stream"),
        )


__all__ = [
    "DEFAULT_IMAGE",
    "MAX_IMAGE_BYTES",
    "ImageIngestor",
    "IngestResult",
    "IngestStatus",
    "file_size",
    "to_data_uri",
]
