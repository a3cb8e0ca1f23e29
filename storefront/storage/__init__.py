"""Persistence adapters behind the favorites store.

Services depend on the :class:`StorageAdapter` contract only; the backend is
picked once at start-up from configuration by :func:`build_storage`.
"""

from __future__ import annotations

from storefront.settings import AppSettings
from storefront.storage.base import StorageAdapter
from storefront.storage.file import FileStorage
from storefront.storage.memory import MemoryStorage
from storefront.storage.redis_storage import RedisStorage


def build_storage(settings: AppSettings) -> StorageAdapter:
    """Instantiate the adapter selected by ``FAVORITES_STORAGE_BACKEND``."""

    backend = settings.favorites_storage_backend
    if backend == "memory":
        return MemoryStorage()
    if backend == "file":
        return FileStorage(settings.storage_dir_path)
    if backend == "redis":
        return RedisStorage(settings.redis_url)
    raise ValueError(f"Unsupported favorites storage backend: {backend}")


__all__ = [
    "FileStorage",
    "MemoryStorage",
    "RedisStorage",
    "StorageAdapter",
    "build_storage",
]
