"""OpenAI embedding service and its cache-backed provider."""

import logging
from collections.abc import Awaitable, Callable

from openai import AsyncOpenAI

from oa_discovery.services.cache_store import BaseCacheStore, sanitize_key

logger = logging.getLogger(__name__)

EMBEDDING_MODEL = "text-embedding-3-large"
EMBEDDING_DIM = 1536
MAX_INPUT_CHARS = 24000
ANONYMOUS_ID = "anon"

EmbedFn = Callable[[str], Awaitable[list[float] | None]]


class EmbeddingService:
    """Service for generating embeddings via the OpenAI embeddings API."""

    def __init__(
        self,
        openai_client: AsyncOpenAI | None = None,
        api_key: str | None = None,
        model: str = EMBEDDING_MODEL,
        dimensions: int = EMBEDDING_DIM,
        max_chars: int = MAX_INPUT_CHARS,
    ):
        """Initialize with optional client or API key."""
        self._client = openai_client
        if self._client is None:
            self._client = AsyncOpenAI(api_key=api_key)
        self.model = model
        self.dimensions = dimensions
        self.max_chars = max_chars

    async def embed_text(self, text: str) -> list[float] | None:
        """
        Embed a single text string.

        Args:
            text: Input text to embed. Truncated to max_chars.

        Returns:
            Embedding vector of length `dimensions`, or None if the API
            returned no data.
        """
        text = (text or "").strip()
        if not text:
            raise ValueError("Cannot embed empty text")
        result = await self._client.embeddings.create(
            model=self.model,
            input=text[: self.max_chars],
            dimensions=self.dimensions,
        )
        if not result.data:
            return None
        return list(result.data[0].embedding)


class EmbeddingProvider:
    """Memoizes an embedding function in the cache, keyed by article identifier.

    The identifier is the article DOI, or ``anon`` for ad-hoc documents.
    Failed or empty embeddings are never cached so they are retried later.
    """

    def __init__(self, cache: BaseCacheStore, embed_fn: EmbedFn, dimensions: int = EMBEDDING_DIM):
        self._cache = cache
        self._embed_fn = embed_fn
        self.dimensions = dimensions

    @staticmethod
    def cache_key(identifier: str | None) -> str:
        return "embedding_" + sanitize_key(identifier or ANONYMOUS_ID)

    async def get_cached(self, identifier: str | None) -> list[float] | None:
        """Return the cached vector for an identifier without computing one."""
        cached = await self._cache.get(self.cache_key(identifier))
        if isinstance(cached, list) and cached:
            return cached
        return None

    async def embed(self, text: str | None, identifier: str | None) -> list[float] | None:
        """Return the embedding for text, computing and caching it on a miss.

        Returns None when nothing is cached and the text is empty or the
        underlying provider fails.
        """
        cached = await self.get_cached(identifier)
        if cached is not None:
            return cached

        text = (text or "").strip()
        if not text:
            return None

        try:
            vector = await self._embed_fn(text)
        except Exception as e:
            logger.warning("Embedding failed for %s: %s", identifier or ANONYMOUS_ID, e)
            return None
        if not vector:
            return None

        vector = [float(x) for x in vector]
        await self._cache.put(self.cache_key(identifier), vector)
        return vector
