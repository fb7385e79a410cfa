# equiprent/infra/storage/local_file_storage.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from equiprent.services._shared.ports import FileStorage, UploadedFile
from equiprent.services._shared.ports.file_storage import storage_name

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LocalFileStorage(FileStorage):
    """
    Stores uploads on the local filesystem.

    :param root: Directory served under ``/uploads``.

    Files land in ``<root>/<folder>/<uuid>.<ext>`` and are addressed as
    ``/uploads/<folder>/<uuid>.<ext>``.
    """

    root: Path

    def upload(self, file: UploadedFile, folder: str) -> str:
        safe_folder = Path(folder).name
        target_dir = self.root / safe_folder
        target_dir.mkdir(parents=True, exist_ok=True)
        name = storage_name(file.filename)
        (target_dir / name).write_bytes(file.data)
        log.info("Stored upload %s/%s (%d bytes)", safe_folder, name, len(file.data))
        return f"/uploads/{safe_folder}/{name}"
