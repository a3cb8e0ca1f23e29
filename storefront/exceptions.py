"""Exception hierarchy shared by the storefront services and adapters."""

from __future__ import annotations


class StorefrontError(Exception):
    """Base class for every error raised by the storefront package."""


class StorageError(StorefrontError):
    """Raised by persistence adapters when a read or write cannot complete."""

    def __init__(self, message: str, *, key: str | None = None) -> None:
        super().__init__(message)
        self.key = key


class SnapshotDecodeError(StorefrontError):
    """Raised when a persisted favorites snapshot cannot be decoded."""


class InvalidProductError(StorefrontError, ValueError):
    """Raised when a product lacks the identifier the favorites store keys on."""


class InvalidImageTransition(StorefrontError, ValueError):
    """Raised when an image load state change is not allowed from the current state."""


__all__ = [
    "InvalidImageTransition",
    "InvalidProductError",
    "SnapshotDecodeError",
    "StorageError",
    "StorefrontError",
]
