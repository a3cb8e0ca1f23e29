"""FastAPI router exposing the favorites store."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from storefront.schemas.favorites import (
    FavoriteStatusResponse,
    FavoriteToggleResponse,
    FavoritesListResponse,
)
from storefront.schemas.product import Product
from storefront.services.dependencies import get_favorites_store
from storefront.services.favorites.store import FavoritesStore

router = APIRouter()


def _list_response(store: FavoritesStore) -> FavoritesListResponse:
    return FavoritesListResponse(
        state=store.state, total=store.total, items=store.favorites
    )


@router.get("", response_model=FavoritesListResponse)
async def list_favorites(
    store: FavoritesStore = Depends(get_favorites_store),
) -> FavoritesListResponse:
    """Return the favorited products in the order they were added."""

    return _list_response(store)


@router.get("/{product_id}", response_model=FavoriteStatusResponse)
async def favorite_status(
    product_id: str,
    store: FavoritesStore = Depends(get_favorites_store),
) -> FavoriteStatusResponse:
    """Report whether ``product_id`` is currently a favorite."""

    return FavoriteStatusResponse(
        product_id=product_id, is_favorite=store.is_favorite(product_id)
    )


@router.post("/toggle", response_model=FavoriteToggleResponse)
async def toggle_favorite(
    product: Product,
    store: FavoritesStore = Depends(get_favorites_store),
) -> FavoriteToggleResponse:
    """Add the product when absent, remove it when present.

    The response reflects the new collection immediately; the snapshot is
    persisted in the background.
    """

    items = store.toggle(product)
    return FavoriteToggleResponse(
        state=store.state,
        total=len(items),
        items=items,
        product_id=product.id,
        is_favorite=store.is_favorite(product.id),
    )


@router.delete("", response_model=FavoritesListResponse)
async def clear_favorites(
    store: FavoritesStore = Depends(get_favorites_store),
) -> FavoritesListResponse:
    """Remove every favorite."""

    store.clear()
    return _list_response(store)
