"""Background write strategies for favorites snapshots.

Callers hand a snapshot to :meth:`submit` and return immediately; the write
happens on the event loop later. Failures are logged and never reach the
caller, and nothing is retried.

``ConcurrentSnapshotWriter`` starts one task per snapshot. Tasks are neither
cancelled nor ordered, so when two writes overlap the one that finishes last
decides what storage holds, which may be an older snapshot than the latest
in-memory state.

``SerializedSnapshotWriter`` keeps at most one write in flight. Snapshots
submitted meanwhile collapse into a single pending slot (newest wins) that is
written as soon as the current write finishes, so once drained storage always
matches the most recent snapshot.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from storefront.exceptions import StorageError
from storefront.services.favorites.persistence import FavoriteEntry, FavoritesPersistence
from storefront.settings import WriteMode

logger = logging.getLogger(__name__)


class SnapshotWriter(Protocol):
    """Dispatches snapshot writes without blocking the caller."""

    failures: int

    def submit(self, entries: list[FavoriteEntry]) -> None:
        ...

    async def drain(self) -> None:
        ...


async def _write_logged(
    persistence: FavoritesPersistence, entries: list[FavoriteEntry]
) -> bool:
    """Write ``entries``, logging instead of raising. Returns success."""

    try:
        await persistence.write(entries)
    except StorageError as exc:
        logger.warning(
            "Failed to persist %d favorites under %s: %s",
            len(entries),
            persistence.key,
            exc,
        )
        return False
    except Exception:  # noqa: BLE001
        logger.exception("Unexpected error persisting favorites under %s", persistence.key)
        return False
    logger.debug("Persisted %d favorites under %s", len(entries), persistence.key)
    return True


class ConcurrentSnapshotWriter:
    """Fire-and-forget writer: one independent task per submitted snapshot."""

    def __init__(self, persistence: FavoritesPersistence) -> None:
        self._persistence = persistence
        # Strong references keep in-flight tasks alive until they finish.
        self._tasks: set[asyncio.Task[None]] = set()
        self.failures = 0

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def submit(self, entries: list[FavoriteEntry]) -> None:
        task = asyncio.get_running_loop().create_task(self._run(list(entries)))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, entries: list[FavoriteEntry]) -> None:
        if not await _write_logged(self._persistence, entries):
            self.failures += 1

    async def drain(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


class SerializedSnapshotWriter:
    """Single-flight writer that always converges on the newest snapshot."""

    def __init__(self, persistence: FavoritesPersistence) -> None:
        self._persistence = persistence
        self._pending: list[FavoriteEntry] | None = None
        self._worker: asyncio.Task[None] | None = None
        self.failures = 0

    @property
    def in_flight(self) -> int:
        return 0 if self._worker is None or self._worker.done() else 1

    def submit(self, entries: list[FavoriteEntry]) -> None:
        self._pending = list(entries)
        if self._worker is None or self._worker.done():
            self._worker = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        while self._pending is not None:
            entries, self._pending = self._pending, None
            if not await _write_logged(self._persistence, entries):
                self.failures += 1

    async def drain(self) -> None:
        while self._worker is not None and not self._worker.done():
            await asyncio.gather(self._worker, return_exceptions=True)


def build_writer(mode: WriteMode, persistence: FavoritesPersistence) -> SnapshotWriter:
    """Return the writer configured by ``FAVORITES_WRITE_MODE``."""

    if mode == "serialized":
        return SerializedSnapshotWriter(persistence)
    if mode == "concurrent":
        return ConcurrentSnapshotWriter(persistence)
    raise ValueError(f"Unsupported favorites write mode: {mode}")


__all__ = [
    "ConcurrentSnapshotWriter",
    "SerializedSnapshotWriter",
    "SnapshotWriter",
    "build_writer",
]
