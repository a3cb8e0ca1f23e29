"""Directory-of-files storage backend.

Each key maps to one file under the configured directory. Writes land in a
temporary sibling first and are moved into place with :func:`os.replace`, so a
reader never observes a half-written snapshot. Blocking filesystem calls run in
a worker thread to keep the event loop responsive.
"""

from __future__ import annotations

import asyncio
import os
import re
import tempfile
from hashlib import sha256
from pathlib import Path

from storefront.exceptions import StorageError

_SAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")
_SUFFIX = ".json"


def key_to_filename(key: str) -> str:
    """Turn an arbitrary storage key into a filesystem-safe file name.

    Keys such as ``@favoritos-loja`` keep a readable stem; a short digest of
    the raw key is appended so two keys that sanitize to the same stem never
    collide.
    """

    stem = _SAFE_CHARS.sub("_", key).strip("._") or "key"
    digest = sha256(key.encode("utf-8")).hexdigest()[:12]
    return f"{stem}-{digest}{_SUFFIX}"


class FileStorage:
    """:class:`~storefront.storage.base.StorageAdapter` backed by local files."""

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, key: str) -> Path:
        return self._directory / key_to_filename(key)

    async def get(self, key: str) -> bytes | None:
        return await asyncio.to_thread(self._read, key)

    async def set(self, key: str, value: bytes) -> None:
        await asyncio.to_thread(self._write, key, value)

    async def close(self) -> None:
        return None

    def _read(self, key: str) -> bytes | None:
        path = self.path_for(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageError(f"Unable to read {path}: {exc}", key=key) from exc

    def _write(self, key: str, value: bytes) -> None:
        path = self.path_for(key)
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._directory, prefix=f".{path.stem}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "wb") as handle:
                    handle.write(value)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise StorageError(f"Unable to write {path}: {exc}", key=key) from exc


__all__ = ["FileStorage", "key_to_filename"]
