"""In-process storage backend used for development and tests."""

from __future__ import annotations

import asyncio

from storefront.exceptions import StorageError


class MemoryStorage:
    """Dictionary-backed :class:`~storefront.storage.base.StorageAdapter`.

    ``fail_reads``/``fail_writes`` make the adapter raise
    :class:`StorageError`, which lets callers exercise the degraded paths of
    the favorites store without a broken disk or Redis instance. ``write_delay``
    holds each write open for the given number of seconds so overlapping
    writes can be observed.
    """

    def __init__(
        self,
        initial: dict[str, bytes] | None = None,
        *,
        fail_reads: bool = False,
        fail_writes: bool = False,
        write_delay: float = 0.0,
    ) -> None:
        self._data: dict[str, bytes] = dict(initial or {})
        self.fail_reads = fail_reads
        self.fail_writes = fail_writes
        self.write_delay = write_delay
        self.write_count = 0

    async def get(self, key: str) -> bytes | None:
        if self.fail_reads:
            raise StorageError("Simulated read failure", key=key)
        return self._data.get(key)

    async def set(self, key: str, value: bytes) -> None:
        if self.write_delay:
            await asyncio.sleep(self.write_delay)
        if self.fail_writes:
            raise StorageError("Simulated write failure", key=key)
        self._data[key] = bytes(value)
        self.write_count += 1

    async def close(self) -> None:
        return None

    def peek(self, key: str) -> bytes | None:
        """Synchronously inspect the stored value for ``key``."""

        return self._data.get(key)


__all__ = ["MemoryStorage"]
