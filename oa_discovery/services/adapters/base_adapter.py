"""Abstract base class for OA search adapters."""

from abc import ABC, abstractmethod

import httpx
from loguru import logger

from oa_discovery.models.schemas import Article
from oa_discovery.services.oa_verifier import OAVerifier
from oa_discovery.services.pdf_store import PdfStore, local_pdf_url

DEFAULT_TIMEOUT = 30.0
DEFAULT_USER_AGENT = "OADiscovery/1.2 (open-access-discovery)"
DOI_URL_PREFIXES = ("https://doi.org/", "http://doi.org/", "https://dx.doi.org/", "http://dx.doi.org/")


def normalize_doi(doi: str | None) -> str | None:
    """Strip resolver prefixes so DOIs look like '10.xxxx/...'."""
    if not doi:
        return None
    doi = doi.strip()
    lower = doi.lower()
    for prefix in DOI_URL_PREFIXES:
        if lower.startswith(prefix):
            doi = doi[len(prefix):]
            break
    return doi or None


class BaseSearchAdapter(ABC):
    """Base class for all search adapters.

    Subclasses implement fetch_hits() and set source_name. Every hit with a
    DOI is OA-verified, its PDF downloaded into the PDF store, and turned into
    an Article pointing at the locally served copy.
    """

    source_name: str

    def __init__(
        self,
        oa_verifier: OAVerifier,
        pdf_store: PdfStore,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._oa_verifier = oa_verifier
        self._pdf_store = pdf_store
        self._http_client = http_client
        self._owns_client = http_client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or lazily create the HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=DEFAULT_TIMEOUT,
                headers={"User-Agent": DEFAULT_USER_AGENT},
                follow_redirects=True,
            )
        return self._http_client

    async def fetch_json(self, url: str, params: dict | None = None) -> dict:
        """Fetch a URL and parse the JSON response."""
        client = await self._get_client()
        response = await client.get(url, params=params)
        response.raise_for_status()
        data = response.json()
        return data if isinstance(data, dict) else {}

    async def search(
        self,
        query: str,
        type: str = "all",
        year_from: int | None = None,
        year_to: int | None = None,
    ) -> list[Article]:
        """Search the source and return OA-verified articles.

        pdf_url points at the locally stored copy, or at the OA location when
        the download failed. Returns an empty list on any upstream error.
        """
        try:
            hits = await self.fetch_hits(query, type, year_from, year_to)
        except (httpx.HTTPStatusError, httpx.TimeoutException, httpx.ConnectError) as e:
            logger.warning(f"{self.source_name} API error: {e}")
            return []
        except Exception as e:
            logger.error(f"Unexpected error querying {self.source_name}: {e}")
            return []

        articles = []
        for hit in hits:
            article = await self._verify_and_store(hit)
            if article is not None:
                articles.append(article)
        logger.info(f"{self.source_name}: {len(articles)} OA articles of {len(hits)} hits")
        return articles

    async def _verify_and_store(self, hit: dict) -> Article | None:
        doi = normalize_doi(hit.get("doi"))
        if not doi:
            return None

        oa = await self._oa_verifier.check_oa(doi)
        if oa is None or not oa.is_accessible:
            return None

        stored = await self._pdf_store.download(doi, oa.best_pdf_url)

        return Article(
            title=hit.get("title") or "",
            authors=hit.get("authors") or "",
            year=hit.get("year"),
            doi=doi,
            source=self.source_name,
            pdf_url=local_pdf_url(doi) if stored else oa.best_pdf_url,
            abstract=hit.get("abstract") or "",
        )

    async def close(self):
        """Close the HTTP client if we created it."""
        if self._owns_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    @abstractmethod
    async def fetch_hits(
        self,
        query: str,
        type: str,
        year_from: int | None,
        year_to: int | None,
    ) -> list[dict]:
        """Query the source; return dicts with doi, title, authors, year, abstract."""
