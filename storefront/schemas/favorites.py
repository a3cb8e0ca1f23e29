"""Pydantic schemas that power the favorites API surface."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from storefront.services.favorites.state import StoreState


class FavoritesListResponse(BaseModel):
    """Current favorites collection in display order."""

    state: StoreState = Field(..., description="Lifecycle state of the store")
    total: int = Field(..., ge=0)
    items: list[dict[str, Any]] = Field(
        default_factory=list,
        description="Product snapshots exactly as they were favorited.",
    )


class FavoriteToggleResponse(FavoritesListResponse):
    """Collection returned after a toggle, plus the toggled product's membership."""

    product_id: str
    is_favorite: bool


class FavoriteStatusResponse(BaseModel):
    """Membership check for a single product."""

    product_id: str
    is_favorite: bool


__all__ = [
    "FavoriteStatusResponse",
    "FavoriteToggleResponse",
    "FavoritesListResponse",
]
