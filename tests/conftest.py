"""Test configuration and fixtures for pytest."""

import os

# Set required environment variables BEFORE any oa_discovery module is imported.
# This prevents pydantic Settings validation from failing.
os.environ.setdefault("OPENAI_API_KEY", "test-openai-key")
os.environ.setdefault("UNPAYWALL_EMAIL", "test@example.com")
os.environ.setdefault("CLUSTER_REFRESH_ENABLED", "false")

from unittest.mock import AsyncMock

import pytest

from oa_discovery.models.schemas import Article, OAStatus
from oa_discovery.services.cache_store import BaseCacheStore


class MemoryCacheStore(BaseCacheStore):
    """In-memory cache store recording every write."""

    def __init__(self):
        self.store: dict[str, object] = {}
        self.puts: list[str] = []

    async def get(self, key):
        return self.store.get(key)

    async def put(self, key, value):
        self.store[key] = value
        self.puts.append(key)


class FakeRedis:
    """In-memory fake Redis for testing."""

    def __init__(self):
        self._store: dict[str, str] = {}

    async def get(self, key: str) -> str | None:
        return self._store.get(key)

    async def set(self, key: str, value: str, ex: int | None = None) -> None:
        self._store[key] = value

    async def aclose(self) -> None:
        pass


class StubEmbedFn:
    """Embedding function backed by a text -> vector table; counts calls."""

    def __init__(self, vectors: dict[str, list[float]] | None = None, default=None):
        self.vectors = vectors or {}
        self.default = default
        self.calls: list[str] = []

    async def __call__(self, text: str):
        self.calls.append(text)
        return self.vectors.get(text, self.default)


@pytest.fixture
def memory_cache():
    return MemoryCacheStore()


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def stub_embed_fn():
    return StubEmbedFn


@pytest.fixture
def make_article():
    """Factory building Articles with sensible defaults."""

    def _make(doi: str | None = "10.1234/a", **kwargs) -> Article:
        defaults = {
            "title": f"Title {doi}",
            "authors": "Smith, J.",
            "year": 2023,
            "doi": doi,
            "source": "OpenAlex",
            "pdf_url": None,
            "abstract": f"Abstract {doi}",
        }
        defaults.update(kwargs)
        return Article(**defaults)

    return _make


@pytest.fixture
def accessible_oa():
    """OA verifier mock reporting every DOI as accessible."""
    verifier = AsyncMock()

    async def _check(doi):
        if not doi:
            return None
        return OAStatus(
            is_oa=True,
            best_pdf_url=f"https://oa.example.org/{doi}.pdf",
            title=f"OA {doi}",
            journal_name="Journal of Tests",
        )

    verifier.check_oa = AsyncMock(side_effect=_check)
    return verifier


@pytest.fixture
def unpaywall_record():
    """Raw Unpaywall response for an OA article."""
    return {
        "doi": "10.1234/quantum.2024",
        "is_oa": True,
        "title": "Quantum Computing and NP-Complete Problems",
        "journal_name": "Journal of Quantum Research",
        "best_oa_location": {
            "url_for_pdf": "https://example.org/quantum.pdf",
            "url": "https://example.org/quantum",
        },
    }
