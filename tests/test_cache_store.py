"""Tests for the cache store backends."""

import json
from unittest.mock import MagicMock

import pytest

from oa_discovery.services.cache_store import (
    JsonFileCacheStore,
    RedisCacheStore,
    create_cache_store,
    sanitize_key,
)


class TestSanitizeKey:
    """Tests for sanitize_key."""

    def test_replaces_slashes(self):
        assert sanitize_key("10.1234/abc/def") == "10.1234_abc_def"

    def test_replaces_backslashes(self):
        assert sanitize_key("a\\b") == "a_b"

    def test_plain_key_unchanged(self):
        assert sanitize_key("embedding_anon") == "embedding_anon"


class TestJsonFileCacheStore:
    """Tests for the one-file-per-key JSON store."""

    @pytest.mark.asyncio
    async def test_put_then_get(self, tmp_path):
        store = JsonFileCacheStore(tmp_path)
        await store.put("unpaywall_10.1234_x", {"is_oa": True})
        assert await store.get("unpaywall_10.1234_x") == {"is_oa": True}

    @pytest.mark.asyncio
    async def test_missing_key_is_miss(self, tmp_path):
        store = JsonFileCacheStore(tmp_path)
        assert await store.get("nope") is None

    @pytest.mark.asyncio
    async def test_file_layout(self, tmp_path):
        store = JsonFileCacheStore(tmp_path)
        await store.put("embedding_10.1/x", [0.5, 0.25])
        path = tmp_path / "embedding_10.1_x.json"
        assert path.exists()
        assert json.loads(path.read_text()) == [0.5, 0.25]

    @pytest.mark.asyncio
    async def test_malformed_file_is_miss(self, tmp_path):
        store = JsonFileCacheStore(tmp_path)
        (tmp_path / "broken.json").write_text("{not json")
        assert await store.get("broken") is None

    @pytest.mark.asyncio
    async def test_last_writer_wins(self, tmp_path):
        store = JsonFileCacheStore(tmp_path)
        await store.put("k", 1)
        await store.put("k", 2)
        assert await store.get("k") == 2

    def test_creates_directory(self, tmp_path):
        target = tmp_path / "nested" / "cache"
        JsonFileCacheStore(target)
        assert target.is_dir()


class TestRedisCacheStore:
    """Tests for the Redis-backed store."""

    @pytest.mark.asyncio
    async def test_put_then_get(self, fake_redis):
        store = RedisCacheStore(fake_redis)
        await store.put("embedding_x", [1.0, 2.0])
        assert await store.get("embedding_x") == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_keys_are_prefixed(self, fake_redis):
        store = RedisCacheStore(fake_redis)
        await store.put("k", {"a": 1})
        assert await fake_redis.get("oa_discovery:cache:k") == '{"a": 1}'

    @pytest.mark.asyncio
    async def test_malformed_value_is_miss(self, fake_redis):
        await fake_redis.set("oa_discovery:cache:bad", "{oops")
        store = RedisCacheStore(fake_redis)
        assert await store.get("bad") is None

    @pytest.mark.asyncio
    async def test_connection_error_is_miss(self, fake_redis):
        store = RedisCacheStore(fake_redis)
        fake_redis.get = MagicMock(side_effect=ConnectionError("down"))
        assert await store.get("k") is None


class TestCreateCacheStore:
    """Tests for the backend factory."""

    def test_json_backend_default(self, tmp_path):
        settings = MagicMock()
        settings.cache_backend = "json"
        settings.cache_dir = str(tmp_path)
        assert isinstance(create_cache_store(settings), JsonFileCacheStore)

    def test_redis_backend(self):
        settings = MagicMock()
        settings.cache_backend = "redis"
        settings.redis_url = "redis://localhost:6379/0"
        assert isinstance(create_cache_store(settings), RedisCacheStore)
