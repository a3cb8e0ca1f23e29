"""Centralized configuration management for the storefront service."""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field, PrivateAttr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables defined in a local .env file before instantiating the
# settings singleton so every consumer importing :mod:`storefront.settings` sees
# the same values.
load_dotenv()

# -- Application-wide constants -------------------------------------------------

DEFAULT_FAVORITES_STORAGE_KEY = "@favoritos-loja"
DEFAULT_STORAGE_DIR = "./data/storage"
DEFAULT_REDIS_URL = "redis://localhost:6379/0"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_IMAGE_MAX_ATTEMPTS = 3
DEFAULT_NOVELTY_WINDOW_DAYS = 14

StorageBackend = Literal["memory", "file", "redis"]
WriteMode = Literal["concurrent", "serialized"]


def _normalize_origin(origin: str) -> str:
    """Return the origin stripped of whitespace and trailing slashes."""

    return origin.strip().rstrip("/")


class AppSettings(BaseSettings):
    """Typed configuration surface built on top of ``pydantic-settings``.

    The class groups the handful of knobs the favorites store, the storage
    adapters and the HTTP layer read, and exposes derived helpers (numeric log
    level, normalised CORS origins) so downstream modules never parse raw
    environment strings themselves.
    """

    _explicit_redis_url: bool = PrivateAttr(default=False)
    _explicit_cors_allow_origins: bool = PrivateAttr(default=False)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    def __init__(
        self, **values: object
    ) -> None:  # noqa: D401 - short override explanation
        """Capture explicit overrides prior to delegating to ``BaseSettings``."""

        normalized_keys = {str(key).lower() for key in values}
        super().__init__(**values)
        self._explicit_redis_url = "redis_url" in normalized_keys
        self._explicit_cors_allow_origins = (
            "cors_allow_origins_raw" in normalized_keys
            or "cors_allow_origins" in normalized_keys
        )
        redis_env = os.getenv("REDIS_URL")
        if redis_env is not None and redis_env.strip():
            self._explicit_redis_url = True
        cors_env = os.getenv("CORS_ALLOW_ORIGINS")
        if cors_env is not None and cors_env.strip():
            self._explicit_cors_allow_origins = True

    favorites_storage_backend: StorageBackend = Field(
        default="file",
        alias="FAVORITES_STORAGE_BACKEND",
        description=(
            "Durable key-value backend behind the favorites store: an in-process"
            " dict (memory), a directory of JSON files (file) or Redis (redis)."
        ),
    )
    favorites_storage_dir: str = Field(
        default=DEFAULT_STORAGE_DIR,
        alias="FAVORITES_STORAGE_DIR",
        description="Directory used by the file backend, created on first write.",
    )
    favorites_storage_key: str = Field(
        default=DEFAULT_FAVORITES_STORAGE_KEY,
        alias="FAVORITES_STORAGE_KEY",
        description="Fixed key under which the favorites snapshot is persisted.",
    )
    favorites_write_mode: WriteMode = Field(
        default="concurrent",
        alias="FAVORITES_WRITE_MODE",
        description=(
            "concurrent dispatches every snapshot write as its own task (last"
            " write to finish wins); serialized keeps a single write in flight"
            " and always persists the newest snapshot."
        ),
    )
    redis_url: str = Field(
        default=DEFAULT_REDIS_URL,
        alias="REDIS_URL",
        description="Redis connection string consumed by the redis backend.",
    )
    image_max_attempts: int = Field(
        default=DEFAULT_IMAGE_MAX_ATTEMPTS,
        alias="IMAGE_MAX_ATTEMPTS",
        ge=1,
        description="Maximum load attempts per image URL before the placeholder is shown.",
    )
    novelty_window_days: int = Field(
        default=DEFAULT_NOVELTY_WINDOW_DAYS,
        alias="NOVELTY_WINDOW_DAYS",
        ge=0,
        description="Products created within this many days are flagged as new.",
    )
    cors_allow_origins_raw: str | None = Field(
        default=None,
        alias="CORS_ALLOW_ORIGINS",
        description="Comma-separated list of additional CORS origins.",
    )
    log_level: str = Field(
        default=DEFAULT_LOG_LEVEL,
        alias="LOG_LEVEL",
        description="Root logging level (e.g. INFO, DEBUG, WARNING).",
    )

    @field_validator("favorites_storage_key")
    @classmethod
    def _require_storage_key(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("FAVORITES_STORAGE_KEY must not be blank")
        return cleaned

    @property
    def storage_dir_path(self) -> Path:
        """Return the file backend directory as a :class:`Path`."""

        return Path(self.favorites_storage_dir).expanduser()

    @property
    def cors_allow_origins(self) -> list[str]:
        """Return normalised CORS origins supplied via environment variables."""

        if not self.cors_allow_origins_raw:
            return []

        origins = [
            _normalize_origin(origin)
            for origin in self.cors_allow_origins_raw.split(",")
            if origin.strip()
        ]
        return [origin for origin in origins if origin]

    @property
    def log_level_numeric(self) -> int:
        """Translate ``log_level`` into the numeric constant expected by logging."""

        candidate = logging.getLevelName(self.log_level.upper())
        if isinstance(candidate, int):
            return candidate
        return logging.INFO

    def optional_config_warnings(self) -> list[str]:
        """Return human-readable warnings for unset optional configuration."""

        warnings: list[str] = []

        if (
            self.favorites_storage_backend == "redis"
            and not self._explicit_redis_url
            and self.redis_url == DEFAULT_REDIS_URL
        ):
            warnings.append(
                "REDIS_URL is not set - the redis favorites backend will connect "
                "to localhost"
            )

        if self.favorites_storage_backend == "memory":
            warnings.append(
                "FAVORITES_STORAGE_BACKEND is memory - favorites will not survive "
                "a restart"
            )

        if not self._explicit_cors_allow_origins and not self.cors_allow_origins:
            warnings.append(
                "CORS_ALLOW_ORIGINS is not set - using default localhost origins only "
                "(may cause CORS issues in production)"
            )

        return warnings


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Return a cached instance of :class:`AppSettings`."""

    return AppSettings()


__all__ = [
    "AppSettings",
    "DEFAULT_FAVORITES_STORAGE_KEY",
    "DEFAULT_IMAGE_MAX_ATTEMPTS",
    "DEFAULT_LOG_LEVEL",
    "DEFAULT_NOVELTY_WINDOW_DAYS",
    "DEFAULT_REDIS_URL",
    "DEFAULT_STORAGE_DIR",
    "StorageBackend",
    "WriteMode",
    "get_settings",
]
