"""Blob persistence for client-side state.

Each store owns one serialized blob under a fixed key and rewrites it
whole on every change.
"""

from __future__ import annotations

import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Protocol

_logger = logging.getLogger(__name__)

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class BlobStorage(Protocol):
    """Key/value storage for text blobs."""

    def load(self, key: str) -> str | None:
        ...

    def save(self, key: str, blob: str) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


class MemoryBlobStorage:
    """In-process storage; contents vanish with the process."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._blobs: dict[str, str] = dict(initial or {})

    def load(self, key: str) -> str | None:
        return self._blobs.get(key)

    def save(self, key: str, blob: str) -> None:
        self._blobs[key] = blob

    def delete(self, key: str) -> None:
        self._blobs.pop(key, None)


class FileBlobStorage:
    """One ``<key>.json`` file per key inside *directory*.

    Writes go to a temporary file first and are moved into place, so a
    crash mid-write leaves the previous blob intact.
    """

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory).expanduser()

    def _path(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"invalid storage key: {key!r}")
        return self._directory / f"{key}.json"

    def load(self, key: str) -> str | None:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def save(self, key: str, blob: str) -> None:
        path = self._path(key)
        self._directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self._directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(blob)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        _logger.debug("saved %s (%d bytes)", path, len(blob))

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)
