"""Contract shared by every durable key-value backend."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class StorageAdapter(Protocol):
    """Narrow async key-value contract the favorites store depends on.

    Implementations raise :class:`storefront.exceptions.StorageError` when a
    read or write cannot complete. A missing key is not an error: ``get``
    returns ``None``. Writes replace the whole value for the key.
    """

    async def get(self, key: str) -> bytes | None:
        """Return the bytes stored under ``key`` or ``None`` when absent."""
        ...

    async def set(self, key: str, value: bytes) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""
        ...

    async def close(self) -> None:
        """Release any underlying connection."""
        ...


__all__ = ["StorageAdapter"]
