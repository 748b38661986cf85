"""Key/value cache for JSON blobs (OA lookups and embeddings).

Two backends share the same contract: a directory of ``<key>.json`` files
(default) and Redis. Entries never expire and the last writer wins. Any
read or parse failure is reported as a miss.
"""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from oa_discovery.config import Settings

logger = logging.getLogger(__name__)

_REDIS_KEY_PREFIX = "oa_discovery:cache:"


def sanitize_key(identifier: str) -> str:
    """Make a domain identifier (e.g. a DOI) safe to use as a file name."""
    return identifier.replace("/", "_").replace("\\", "_")


class BaseCacheStore(ABC):
    """Unified interface for cache storage backends."""

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the cached value, or None on a miss."""

    @abstractmethod
    async def put(self, key: str, value: Any) -> None:
        """Store a JSON-serializable value."""


class JsonFileCacheStore(BaseCacheStore):
    """File-based cache store, one JSON file per key."""

    def __init__(self, cache_dir: str | Path):
        self._root = Path(cache_dir).expanduser()
        self._root.mkdir(parents=True, exist_ok=True)

    async def get(self, key: str) -> Any | None:
        path = self._entry_path(key)
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Failed to read cache entry %s: %s", key, e)
            return None

    async def put(self, key: str, value: Any) -> None:
        path = self._entry_path(key)
        try:
            path.write_text(json.dumps(value), encoding="utf-8")
        except OSError as e:
            logger.warning("Failed to write cache entry %s: %s", key, e)

    def _entry_path(self, key: str) -> Path:
        return self._root / f"{sanitize_key(key)}.json"


class RedisCacheStore(BaseCacheStore):
    """Redis-backed cache store for deployments sharing one cache."""

    def __init__(self, redis):
        self._redis = redis

    @classmethod
    def from_url(cls, redis_url: str) -> "RedisCacheStore":
        import redis.asyncio as aioredis

        return cls(aioredis.from_url(redis_url, decode_responses=True))

    async def get(self, key: str) -> Any | None:
        try:
            raw = await self._redis.get(f"{_REDIS_KEY_PREFIX}{key}")
        except Exception as e:
            logger.warning("Redis cache read failed for %s: %s", key, e)
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError as e:
            logger.warning("Failed to deserialize cache entry %s: %s", key, e)
            return None

    async def put(self, key: str, value: Any) -> None:
        try:
            await self._redis.set(f"{_REDIS_KEY_PREFIX}{key}", json.dumps(value))
        except Exception as e:
            logger.warning("Redis cache write failed for %s: %s", key, e)

    async def close(self) -> None:
        await self._redis.aclose()


def create_cache_store(settings: Settings) -> BaseCacheStore:
    """Instantiate the configured cache backend."""
    if settings.cache_backend == "redis":
        return RedisCacheStore.from_url(settings.redis_url)
    return JsonFileCacheStore(settings.cache_dir)
