"""Favorites domain components split by responsibility.

``persistence`` owns the snapshot format and storage access, ``writers`` owns
background write dispatch and ``store`` owns the in-memory collection that the
rest of the application talks to.
"""

from .persistence import FavoritesPersistence
from .state import StoreState
from .store import FavoritesStore
from .writers import ConcurrentSnapshotWriter, SerializedSnapshotWriter

__all__ = [
    "ConcurrentSnapshotWriter",
    "FavoritesPersistence",
    "FavoritesStore",
    "SerializedSnapshotWriter",
    "StoreState",
]
