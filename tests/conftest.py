"""Fixtures shared by the whole storefront suite."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from storefront.settings import get_settings

STOREFRONT_ENV_VARS = (
    "FAVORITES_STORAGE_BACKEND",
    "FAVORITES_STORAGE_DIR",
    "FAVORITES_STORAGE_KEY",
    "FAVORITES_WRITE_MODE",
    "REDIS_URL",
    "CORS_ALLOW_ORIGINS",
    "LOG_LEVEL",
    "IMAGE_MAX_ATTEMPTS",
    "NOVELTY_WINDOW_DAYS",
)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Run every test against default settings, whatever the host environment holds."""

    for name in STOREFRONT_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
