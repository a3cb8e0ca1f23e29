"""FastAPI dependency wiring for storefront services.

The favorites store is a single instance per process, created by the
application lifespan and kept on ``app.state``. Routers receive it through
:func:`get_favorites_store` so tests can override the dependency with a store
built around an in-memory adapter.
"""

from __future__ import annotations

from fastapi import Request

from storefront.services.favorites.store import FavoritesStore


def get_favorites_store(request: Request) -> FavoritesStore:
    """Return the process-wide :class:`FavoritesStore`."""

    store: FavoritesStore | None = getattr(request.app.state, "favorites_store", None)
    if store is None:
        raise RuntimeError("Favorites store is not initialised; is the lifespan running?")
    return store


__all__ = ["get_favorites_store"]
