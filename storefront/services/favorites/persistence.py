"""Snapshot encoding and storage access for the favorites collection."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from copy import deepcopy
from typing import Any

from pydantic import BaseModel

from storefront.exceptions import InvalidProductError, SnapshotDecodeError, StorageError
from storefront.schemas.product import Product
from storefront.storage.base import StorageAdapter

logger = logging.getLogger(__name__)

FavoriteEntry = dict[str, Any]


def normalize_product_id(value: Any) -> str:
    """Return ``value`` as a trimmed identifier string.

    Numeric identifiers are accepted because catalog documents created by
    hand occasionally carry them; booleans, ``None`` and blank strings are not.
    """

    if value is None or isinstance(value, bool):
        raise InvalidProductError("Product is missing an 'id'")
    cleaned = str(value).strip()
    if not cleaned:
        raise InvalidProductError("Product 'id' must not be blank")
    return cleaned


def to_entry(product: Product | BaseModel | Mapping[str, Any]) -> FavoriteEntry:
    """Build the verbatim snapshot stored for ``product``.

    The entry shares no mutable state with ``product``, so later edits to the
    caller's object never leak into the favorites collection.
    """

    if isinstance(product, Product):
        entry = product.snapshot()
    elif isinstance(product, BaseModel):
        entry = product.model_dump(mode="json", by_alias=True)
    elif isinstance(product, Mapping):
        entry = deepcopy(dict(product))
    else:
        raise InvalidProductError(
            f"Unsupported product type: {type(product).__name__}"
        )
    entry["id"] = normalize_product_id(entry.get("id"))
    return entry


def encode_snapshot(entries: Iterable[FavoriteEntry]) -> bytes:
    """Serialize the collection as a UTF-8 JSON array in display order."""

    return json.dumps(list(entries), ensure_ascii=False, default=str).encode("utf-8")


def decode_snapshot(payload: bytes | str) -> list[FavoriteEntry]:
    """Parse a persisted snapshot into unique entries, preserving order.

    Both the bare array written by :func:`encode_snapshot` and the versioned
    ``{"version": 1, "items": [...]}`` envelope are accepted. Entries without a
    usable ``id`` are dropped; the first occurrence of a duplicated ``id`` wins.
    """

    try:
        raw = json.loads(payload)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise SnapshotDecodeError(f"Snapshot is not valid JSON: {exc}") from exc

    if isinstance(raw, dict):
        raw = raw.get("items")
    if not isinstance(raw, list):
        raise SnapshotDecodeError(
            f"Snapshot must be a list of products, got {type(raw).__name__}"
        )

    entries: list[FavoriteEntry] = []
    seen: set[str] = set()
    for index, item in enumerate(raw):
        if not isinstance(item, Mapping):
            logger.warning("Dropping favorites snapshot item %s: not an object", index)
            continue
        try:
            entry = to_entry(item)
        except InvalidProductError as exc:
            logger.warning("Dropping favorites snapshot item %s: %s", index, exc)
            continue
        if entry["id"] in seen:
            continue
        seen.add(entry["id"])
        entries.append(entry)
    return entries


class FavoritesPersistence:
    """Reads and writes the favorites snapshot through a storage adapter."""

    def __init__(self, storage: StorageAdapter, *, key: str) -> None:
        self._storage = storage
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    @property
    def storage(self) -> StorageAdapter:
        return self._storage

    async def read(self) -> list[FavoriteEntry]:
        """Return the persisted collection, or an empty one on any failure.

        Missing data is normal on first launch. Unreadable storage and corrupt
        payloads are logged and treated as "no favorites".
        """

        try:
            payload = await self._storage.get(self._key)
        except StorageError as exc:
            logger.warning("Unable to load favorites from %s: %s", self._key, exc)
            return []

        if payload is None:
            logger.debug("No favorites snapshot stored under %s", self._key)
            return []

        try:
            return decode_snapshot(payload)
        except SnapshotDecodeError as exc:
            logger.warning("Discarding corrupt favorites snapshot %s: %s", self._key, exc)
            return []

    async def write(self, entries: Iterable[FavoriteEntry]) -> None:
        """Persist ``entries``; raises :class:`StorageError` on failure."""

        await self._storage.set(self._key, encode_snapshot(entries))


__all__ = [
    "FavoriteEntry",
    "FavoritesPersistence",
    "decode_snapshot",
    "encode_snapshot",
    "normalize_product_id",
    "to_entry",
]
