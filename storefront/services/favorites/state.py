"""Lifecycle states of the favorites store."""

from __future__ import annotations

from enum import Enum


class StoreState(str, Enum):
    """``loading`` until the persisted snapshot has been read, then ``ready``."""

    LOADING = "loading"
    READY = "ready"


__all__ = ["StoreState"]
