"""Redis-backed storage for favorites snapshots."""

from __future__ import annotations

import asyncio
import logging

from redis.asyncio import Redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError, TimeoutError as RedisTimeoutError

from storefront.exceptions import StorageError

logger = logging.getLogger(__name__)

_KEY_PREFIX = "storefront"


def storage_key(key: str) -> str:
    return f"{_KEY_PREFIX}:{key}"


def _is_redis_connection_error(exc: BaseException) -> bool:
    """Return ``True`` when ``exc`` represents a Redis connectivity failure."""

    return isinstance(exc, (RedisConnectionError, RedisTimeoutError))


class RedisStorage:
    """:class:`~storefront.storage.base.StorageAdapter` backed by Redis.

    The client is created lazily on first use and shared by subsequent calls.
    Snapshots are stored without a TTL because favorites never expire.
    """

    def __init__(self, url: str, *, client: Redis | None = None) -> None:
        self._url = url
        self._client: Redis | None = client
        self._client_lock = asyncio.Lock()

    async def _get_client(self) -> Redis:
        # Double-check inside the lock so concurrent first calls share one client.
        if self._client is not None:
            return self._client
        async with self._client_lock:
            if self._client is None:
                self._client = Redis.from_url(self._url, decode_responses=False)
                logger.info("Redis storage client created for %s", self._url)
            return self._client

    async def get(self, key: str) -> bytes | None:
        client = await self._get_client()
        try:
            payload = await client.get(storage_key(key))
        except RedisError as exc:
            if _is_redis_connection_error(exc):
                logger.debug("Redis get failed for key %s: %s", key, exc)
            raise StorageError(f"Redis read failed: {exc}", key=key) from exc
        if payload is None:
            return None
        if isinstance(payload, str):
            return payload.encode("utf-8")
        return bytes(payload)

    async def set(self, key: str, value: bytes) -> None:
        client = await self._get_client()
        try:
            await client.set(storage_key(key), value)
        except RedisError as exc:
            if _is_redis_connection_error(exc):
                logger.debug("Redis set failed for key %s: %s", key, exc)
            raise StorageError(f"Redis write failed: {exc}", key=key) from exc

    async def close(self) -> None:
        """Close the Redis connection gracefully."""

        if self._client is not None:
            await self._client.aclose()
            self._client = None


__all__ = ["RedisStorage", "storage_key"]
