"""Client-side favorites store with optimistic, fire-and-forget persistence.

The store keeps the favorited product snapshots in memory, in the order they
were added, with an id index for constant-time membership checks. Every
mutation updates memory first, returns the new collection immediately and
hands the resulting snapshot to a :class:`SnapshotWriter`, which persists it
in the background. A failed write is logged and the in-memory state is kept
as is; favorites then simply behave as session-only.

Mutations issued before :meth:`FavoritesStore.load` finishes are queued: they
are applied to a provisional view right away and replayed over the loaded
snapshot once loading completes, followed by a single write.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from copy import deepcopy
from typing import Any, Literal

from pydantic import BaseModel

from storefront.schemas.product import Product
from storefront.services.favorites.persistence import (
    FavoriteEntry,
    FavoritesPersistence,
    normalize_product_id,
    to_entry,
)
from storefront.services.favorites.state import StoreState
from storefront.services.favorites.writers import (
    ConcurrentSnapshotWriter,
    SnapshotWriter,
    build_writer,
)
from storefront.settings import AppSettings
from storefront.storage.base import StorageAdapter

logger = logging.getLogger(__name__)

ProductLike = Product | BaseModel | Mapping[str, Any]
_QueuedOperation = tuple[Literal["toggle", "clear"], FavoriteEntry | None]


class FavoritesStore:
    """Ordered, id-unique favorites collection mirrored to durable storage."""

    def __init__(
        self,
        persistence: FavoritesPersistence,
        *,
        writer: SnapshotWriter | None = None,
    ) -> None:
        self._persistence = persistence
        self._writer = writer or ConcurrentSnapshotWriter(persistence)
        self._entries: list[FavoriteEntry] = []
        self._index: dict[str, FavoriteEntry] = {}
        self._state = StoreState.LOADING
        self._queued: list[_QueuedOperation] = []
        self._load_lock = asyncio.Lock()

    @classmethod
    def from_settings(
        cls, settings: AppSettings, storage: StorageAdapter
    ) -> "FavoritesStore":
        """Wire persistence and the configured write strategy around ``storage``."""

        persistence = FavoritesPersistence(storage, key=settings.favorites_storage_key)
        writer = build_writer(settings.favorites_write_mode, persistence)
        return cls(persistence, writer=writer)

    # ------------------------------------------------------------------ views
    @property
    def state(self) -> StoreState:
        return self._state

    @property
    def ready(self) -> bool:
        return self._state is StoreState.READY

    @property
    def favorites(self) -> list[FavoriteEntry]:
        """Deep copy of the collection in display order."""

        return [deepcopy(entry) for entry in self._entries]

    @property
    def total(self) -> int:
        return len(self._entries)

    @property
    def writer(self) -> SnapshotWriter:
        return self._writer

    def is_favorite(self, product_id: Any) -> bool:
        try:
            key = normalize_product_id(product_id)
        except ValueError:
            return False
        return key in self._index

    # -------------------------------------------------------------- lifecycle
    async def load(self) -> list[FavoriteEntry]:
        """Read the persisted snapshot and move the store to ``ready``.

        Never raises: storage and decoding failures have already been logged
        by the persistence layer and yield an empty collection. Calling it
        again after the store is ready returns the current collection.
        """

        async with self._load_lock:
            if self._state is StoreState.READY:
                return self.favorites

            loaded = await self._persistence.read()
            self._replace(loaded)

            queued, self._queued = self._queued, []
            for operation, entry in queued:
                if operation == "clear":
                    self._replace([])
                elif entry is not None:
                    self._apply_toggle(entry)

            self._state = StoreState.READY
            logger.info(
                "Favorites loaded from %s: %d item(s), %d queued change(s) replayed",
                self._persistence.key,
                len(loaded),
                len(queued),
            )
            if queued:
                self._schedule_write()
            return self.favorites

    async def drain(self) -> None:
        """Wait until every background write submitted so far has settled."""

        await self._writer.drain()

    # -------------------------------------------------------------- mutations
    def toggle(self, product: ProductLike) -> list[FavoriteEntry]:
        """Add ``product`` when absent, remove it when present.

        Returns the updated collection right away; persistence happens in the
        background and is not awaited.
        """

        entry = to_entry(product)
        added = self._apply_toggle(entry)
        logger.debug(
            "Favorite %s %s", entry["id"], "added" if added else "removed"
        )

        if self._state is StoreState.LOADING:
            self._queued.append(("toggle", entry))
        else:
            self._schedule_write()
        return self.favorites

    def clear(self) -> list[FavoriteEntry]:
        """Remove every favorite and persist the empty collection."""

        self._replace([])
        if self._state is StoreState.LOADING:
            self._queued.append(("clear", None))
        else:
            self._schedule_write()
        return self.favorites

    # ---------------------------------------------------------------- helpers
    def _apply_toggle(self, entry: FavoriteEntry) -> bool:
        product_id = entry["id"]
        if product_id in self._index:
            del self._index[product_id]
            self._entries = [item for item in self._entries if item["id"] != product_id]
            return False
        stored = deepcopy(entry)
        self._entries.append(stored)
        self._index[product_id] = stored
        return True

    def _replace(self, entries: list[FavoriteEntry]) -> None:
        self._entries = []
        self._index = {}
        for entry in entries:
            if entry["id"] in self._index:
                continue
            stored = deepcopy(entry)
            self._entries.append(stored)
            self._index[stored["id"]] = stored

    def _schedule_write(self) -> None:
        self._writer.submit(self.favorites)


__all__ = ["FavoritesStore", "ProductLike"]
