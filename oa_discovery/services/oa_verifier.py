"""Unpaywall client verifying open-access availability of a DOI."""

from urllib.parse import quote

import httpx
from loguru import logger

from oa_discovery.models.schemas import OAStatus
from oa_discovery.services.cache_store import BaseCacheStore, sanitize_key


class OAVerifier:
    """Cached Unpaywall lookup.

    Successful responses are cached verbatim and never refreshed. Failed
    lookups are not cached, so the next call for the same DOI retries.
    """

    BASE_URL = "https://api.unpaywall.org/v2"

    def __init__(
        self,
        cache: BaseCacheStore,
        email: str,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ):
        self.email = email
        self._cache = cache
        self._http_client = http_client or httpx.AsyncClient(timeout=timeout)

    @staticmethod
    def cache_key(doi: str) -> str:
        return f"unpaywall_{sanitize_key(doi)}"

    async def check_oa(self, doi: str | None) -> OAStatus | None:
        """Look up the OA status of a DOI.

        Args:
            doi: The DOI to check. Empty or None short-circuits.

        Returns:
            OAStatus, or None when the DOI is empty or the lookup failed.
        """
        if not doi:
            return None

        key = self.cache_key(doi)
        cached = await self._cache.get(key)
        if isinstance(cached, dict):
            return OAStatus.from_unpaywall(cached)

        try:
            response = await self._http_client.get(
                f"{self.BASE_URL}/{quote(doi, safe='')}",
                params={"email": self.email},
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPStatusError, httpx.TimeoutException, httpx.ConnectError) as e:
            logger.warning(f"Unpaywall lookup failed for {doi}: {e}")
            return None
        except Exception as e:
            logger.error(f"Unexpected error querying Unpaywall for {doi}: {e}")
            return None

        if not isinstance(data, dict):
            logger.warning(f"Unpaywall returned a non-object body for {doi}")
            return None

        await self._cache.put(key, data)
        return OAStatus.from_unpaywall(data)

    async def close(self):
        """Close the underlying HTTP client."""
        await self._http_client.aclose()
