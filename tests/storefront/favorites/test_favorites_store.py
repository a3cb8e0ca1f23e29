"""Behavioural tests for the optimistic favorites store."""

from __future__ import annotations

import asyncio
import json
import logging

import pytest

from storefront.exceptions import InvalidProductError, StorageError
from storefront.schemas.product import Product
from storefront.services.favorites import (
    ConcurrentSnapshotWriter,
    FavoritesPersistence,
    FavoritesStore,
    SerializedSnapshotWriter,
    StoreState,
)
from storefront.settings import AppSettings
from storefront.storage import MemoryStorage

KEY = "@favoritos-loja"


class ScriptedDelayStorage(MemoryStorage):
    """Memory adapter whose n-th write sleeps for ``delays[n]`` seconds."""

    def __init__(self, delays: list[float]) -> None:
        super().__init__()
        self._delays = list(delays)
        self.completed: list[bytes] = []

    async def set(self, key: str, value: bytes) -> None:
        delay = self._delays.pop(0) if self._delays else 0.0
        await asyncio.sleep(delay)
        await super().set(key, value)
        self.completed.append(value)


def _build_store(
    storage: MemoryStorage, *, serialized: bool = False
) -> FavoritesStore:
    persistence = FavoritesPersistence(storage, key=KEY)
    writer = (
        SerializedSnapshotWriter(persistence)
        if serialized
        else ConcurrentSnapshotWriter(persistence)
    )
    return FavoritesStore(persistence, writer=writer)


def _stored_ids(storage: MemoryStorage) -> list[str]:
    payload = storage.peek(KEY)
    assert payload is not None
    return [item["id"] for item in json.loads(payload)]


@pytest.mark.asyncio
async def test_toggle_scenario_preserves_order_and_membership() -> None:
    storage = MemoryStorage()
    store = _build_store(storage)
    await store.load()

    items = store.toggle({"id": "A"})
    assert store.is_favorite("A") is True
    assert len(items) == 1

    items = store.toggle({"id": "B"})
    assert [item["id"] for item in items] == ["A", "B"]

    items = store.toggle({"id": "A"})
    assert len(items) == 1
    assert store.is_favorite("A") is False
    assert store.is_favorite("B") is True

    await store.drain()
    assert _stored_ids(storage) == ["B"]


@pytest.mark.asyncio
async def test_toggle_twice_restores_membership() -> None:
    store = _build_store(MemoryStorage())
    await store.load()
    store.toggle({"id": "keep"})
    before = store.favorites

    store.toggle({"id": "p1", "nome": "Vestido"})
    store.toggle({"id": "p1"})

    assert store.favorites == before
    await store.drain()


@pytest.mark.asyncio
async def test_toggle_does_not_affect_other_products() -> None:
    store = _build_store(MemoryStorage())
    await store.load()
    store.toggle({"id": "p2"})

    store.toggle({"id": "p1"})
    assert store.is_favorite("p2") is True
    store.toggle({"id": "p1"})
    assert store.is_favorite("p2") is True
    await store.drain()


@pytest.mark.asyncio
async def test_membership_reflects_toggle_before_write_completes() -> None:
    storage = MemoryStorage(write_delay=0.05)
    store = _build_store(storage)
    await store.load()

    store.toggle({"id": "slow"})

    assert store.is_favorite("slow") is True
    assert storage.peek(KEY) is None
    await store.drain()
    assert _stored_ids(storage) == ["slow"]


@pytest.mark.asyncio
async def test_clear_empties_collection_and_persists_empty_snapshot() -> None:
    storage = MemoryStorage()
    store = _build_store(storage)
    await store.load()
    for product_id in ("a", "b", "c"):
        store.toggle({"id": product_id})

    assert store.clear() == []

    for product_id in ("a", "b", "c"):
        assert store.is_favorite(product_id) is False
    await store.drain()
    assert json.loads(storage.peek(KEY)) == []


@pytest.mark.asyncio
async def test_write_failure_is_logged_and_memory_is_kept(
    caplog: pytest.LogCaptureFixture,
) -> None:
    storage = MemoryStorage(fail_writes=True)
    store = _build_store(storage)
    await store.load()

    with caplog.at_level(logging.WARNING):
        items = store.toggle({"id": "A", "nome": "Blusa"})
        await store.drain()

    assert items == [{"id": "A", "nome": "Blusa"}]
    assert store.favorites == items
    assert store.writer.failures == 1
    assert "Failed to persist" in caplog.text


@pytest.mark.asyncio
async def test_unexpected_write_error_is_contained(
    caplog: pytest.LogCaptureFixture,
) -> None:
    class ExplodingStorage(MemoryStorage):
        async def set(self, key: str, value: bytes) -> None:
            raise RuntimeError("disk on fire")

    store = _build_store(ExplodingStorage())
    await store.load()

    with caplog.at_level(logging.ERROR):
        store.toggle({"id": "A"})
        await store.drain()

    assert store.is_favorite("A") is True
    assert "Unexpected error persisting favorites" in caplog.text


@pytest.mark.asyncio
async def test_load_restores_persisted_snapshot_in_order() -> None:
    payload = json.dumps(
        [
            {"id": "b", "nome": "Saia", "preco": 79.9},
            {"id": "a", "nome": "Calça"},
        ]
    ).encode("utf-8")
    store = _build_store(MemoryStorage({KEY: payload}))

    assert store.state is StoreState.LOADING
    items = await store.load()

    assert store.state is StoreState.READY
    assert store.ready is True
    assert [item["id"] for item in items] == ["b", "a"]
    assert items[0]["preco"] == 79.9


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "storage",
    [
        MemoryStorage(),
        MemoryStorage({KEY: b"{not json"}),
        MemoryStorage({KEY: b'"just a string"'}),
        MemoryStorage(fail_reads=True),
    ],
    ids=["missing", "corrupt", "wrong-shape", "unreadable"],
)
async def test_load_degrades_to_empty_collection(storage: MemoryStorage) -> None:
    store = _build_store(storage)

    assert await store.load() == []
    assert store.state is StoreState.READY


@pytest.mark.asyncio
async def test_load_is_idempotent() -> None:
    storage = MemoryStorage({KEY: b'[{"id": "x"}]'})
    store = _build_store(storage)
    await store.load()
    store.toggle({"id": "y"})
    await store.drain()

    again = await store.load()

    assert [item["id"] for item in again] == ["x", "y"]


@pytest.mark.asyncio
async def test_mutations_before_load_are_replayed_over_snapshot() -> None:
    storage = MemoryStorage({KEY: b'[{"id": "x"}, {"id": "y"}]'})
    store = _build_store(storage)

    provisional = store.toggle({"id": "z"})
    store.toggle({"id": "x"})

    assert [item["id"] for item in provisional] == ["z"]
    assert storage.write_count == 0

    items = await store.load()
    await store.drain()

    assert [item["id"] for item in items] == ["y", "z"]
    assert _stored_ids(storage) == ["y", "z"]
    assert storage.write_count == 1


@pytest.mark.asyncio
async def test_clear_before_load_discards_loaded_snapshot() -> None:
    storage = MemoryStorage({KEY: b'[{"id": "x"}]'})
    store = _build_store(storage)

    store.clear()
    store.toggle({"id": "new"})
    items = await store.load()
    await store.drain()

    assert [item["id"] for item in items] == ["new"]
    assert _stored_ids(storage) == ["new"]


@pytest.mark.asyncio
async def test_load_without_queued_changes_does_not_write() -> None:
    storage = MemoryStorage({KEY: b'[{"id": "x"}]'})
    store = _build_store(storage)

    await store.load()
    await store.drain()

    assert storage.write_count == 0


@pytest.mark.asyncio
async def test_concurrent_writer_last_completion_wins() -> None:
    """Overlapping writes are unordered: a slow early write may land last."""

    storage = ScriptedDelayStorage([0.05, 0.0])
    store = _build_store(storage)
    await store.load()

    store.toggle({"id": "A"})
    store.toggle({"id": "B"})
    await store.drain()

    assert [item["id"] for item in store.favorites] == ["A", "B"]
    assert _stored_ids(storage) == ["A"]


@pytest.mark.asyncio
async def test_serialized_writer_converges_on_latest_snapshot() -> None:
    storage = ScriptedDelayStorage([0.05, 0.0, 0.0])
    store = _build_store(storage, serialized=True)
    await store.load()

    store.toggle({"id": "A"})
    await asyncio.sleep(0)
    store.toggle({"id": "B"})
    store.toggle({"id": "C"})
    await store.drain()

    assert _stored_ids(storage) == ["A", "B", "C"]
    # The first write was in flight; the next two collapsed into one.
    assert len(storage.completed) == 2


def test_toggle_rejects_products_without_identifier() -> None:
    store = _build_store(MemoryStorage())

    with pytest.raises(InvalidProductError):
        store.toggle({"nome": "Sem id"})
    with pytest.raises(InvalidProductError):
        store.toggle({"id": "   "})
    with pytest.raises(InvalidProductError):
        store.toggle(object())  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_toggle_accepts_product_models_and_numeric_ids() -> None:
    store = _build_store(MemoryStorage())
    await store.load()

    items = store.toggle(
        Product(id="p9", nome="Bolsa", precoOriginal=120.0, emPromocao=True)
    )
    store.toggle({"id": 42})

    assert items[0] == {
        "id": "p9",
        "nome": "Bolsa",
        "precoOriginal": 120.0,
        "emPromocao": True,
    }
    assert store.is_favorite(42) is True
    assert store.is_favorite("42") is True
    assert store.is_favorite(None) is False
    await store.drain()


@pytest.mark.asyncio
async def test_favorites_returns_copies() -> None:
    store = _build_store(MemoryStorage())
    await store.load()
    store.toggle({"id": "A", "nome": "Original"})

    snapshot = store.favorites
    snapshot[0]["nome"] = "Changed"
    snapshot.append({"id": "B"})

    assert store.favorites == [{"id": "A", "nome": "Original"}]
    assert store.total == 1
    await store.drain()


@pytest.mark.asyncio
async def test_nested_fields_are_isolated_from_caller_and_views() -> None:
    storage = MemoryStorage()
    store = _build_store(storage)
    await store.load()
    product = {"id": "A", "imagens": ["a.jpg"], "tamanhos": {"P": 2}}

    store.toggle(product)
    product["imagens"].append("edited-after-favoriting.jpg")
    product["tamanhos"]["P"] = 0
    store.favorites[0]["imagens"].append("edited-through-view.jpg")

    assert store.favorites == [{"id": "A", "imagens": ["a.jpg"], "tamanhos": {"P": 2}}]
    await store.drain()
    assert json.loads(storage.peek(KEY))[0]["imagens"] == ["a.jpg"]


@pytest.mark.asyncio
async def test_from_settings_uses_configured_key_and_mode() -> None:
    storage = MemoryStorage()
    settings = AppSettings(
        FAVORITES_STORAGE_KEY="custom-key", FAVORITES_WRITE_MODE="serialized"
    )

    store = FavoritesStore.from_settings(settings, storage)
    await store.load()
    store.toggle({"id": "A"})
    await store.drain()

    assert isinstance(store.writer, SerializedSnapshotWriter)
    assert storage.peek("custom-key") is not None


@pytest.mark.asyncio
async def test_storage_error_carries_key() -> None:
    storage = MemoryStorage(fail_writes=True)

    with pytest.raises(StorageError) as excinfo:
        await storage.set(KEY, b"[]")

    assert excinfo.value.key == KEY
