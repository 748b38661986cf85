"""Local storage of downloaded article PDFs, one file per DOI."""

import io
import logging
from pathlib import Path

import httpx

from oa_discovery.services.cache_store import sanitize_key
from oa_discovery.services.document_parser import DocumentParser

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "OADiscovery/1.2 (open-access-discovery)"


def pdf_file_stem(doi: str) -> str:
    """File name stem for a DOI: every '/' becomes '_'."""
    return sanitize_key(doi)


def local_pdf_url(doi: str) -> str:
    """URL under which the API serves the stored PDF."""
    return f"/article/{pdf_file_stem(doi)}/pdf"


class PdfStore:
    """Downloads PDFs into pdf_dir and reads their text back."""

    def __init__(
        self,
        pdf_dir: str | Path,
        http_client: httpx.AsyncClient | None = None,
        parser: DocumentParser | None = None,
        timeout: float = 30.0,
    ):
        self._root = Path(pdf_dir).expanduser()
        self._root.mkdir(parents=True, exist_ok=True)
        self._http_client = http_client or httpx.AsyncClient(
            timeout=timeout,
            headers={"User-Agent": DEFAULT_USER_AGENT},
            follow_redirects=True,
        )
        self._parser = parser or DocumentParser()

    def path_for(self, doi: str) -> Path:
        return self._root / f"{pdf_file_stem(doi)}.pdf"

    def exists(self, doi: str) -> bool:
        return self.path_for(doi).is_file()

    async def download(self, doi: str, url: str) -> bool:
        """Fetch the PDF at url unless it is already stored.

        Returns:
            True if the PDF is available locally afterwards.
        """
        path = self.path_for(doi)
        if path.is_file():
            return True
        try:
            response = await self._http_client.get(url)
            response.raise_for_status()
            path.write_bytes(response.content)
        except (httpx.HTTPError, OSError) as e:
            logger.warning("Failed to fetch PDF for %s: %s", doi, e)
            return False
        return True

    def read_text(self, doi: str) -> str | None:
        """Extract the text of a stored PDF; None if missing or unparseable."""
        path = self.path_for(doi)
        if not path.is_file():
            return None
        try:
            return self._parser.parse_pdf(io.BytesIO(path.read_bytes()))
        except ValueError as e:
            logger.warning("Could not parse stored PDF for %s: %s", doi, e)
            return None

    async def close(self):
        await self._http_client.aclose()
