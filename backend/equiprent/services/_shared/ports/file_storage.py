from __future__ import annotations

import uuid
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Protocol


@dataclass(frozen=True, slots=True)
class UploadedFile:
    """
    A file received from a client.

    :param data: Raw bytes.
    :param filename: Client-supplied name (only its extension is kept).
    :param content_type: Declared MIME type.
    """

    data: bytes
    filename: str
    content_type: str | None = None


def storage_name(filename: str) -> str:
    """Return a collision-free ``<uuid>.<ext>`` name for ``filename``."""
    suffix = PurePosixPath(filename or "").suffix.lower()
    return f"{uuid.uuid4().hex}{suffix}"


class FileStorage(Protocol):
    """Blob storage for user uploads."""

    def upload(self, file: UploadedFile, folder: str) -> str:
        """Persist ``file`` under ``folder`` and return its public URL path."""


class InMemoryFileStorage(FileStorage):
    """Keeps uploads in a dict keyed by URL path."""

    def __init__(self) -> None:
        self.files: dict[str, bytes] = {}

    def upload(self, file: UploadedFile, folder: str) -> str:
        path = f"/uploads/{folder}/{storage_name(file.filename)}"
        self.files[path] = file.data
        return path
