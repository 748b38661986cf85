"""Document parser service for extracting text from downloaded PDFs."""

import io
import re

from pypdf import PdfReader

# doi:10.NNNN/suffix as printed in reference lists
_DOI_PATTERN = re.compile(r"doi:\s*(10\.\d{4,9}/[-._;()/:A-Z0-9]+)", re.IGNORECASE)
_TRAILING_PUNCTUATION = ".,;:"


class DocumentParser:
    """Parses PDF documents and extracts their text content."""

    def parse_pdf(self, file: io.BytesIO) -> str:
        """Extract text from a PDF file.

        Args:
            file: File-like object containing PDF bytes.

        Returns:
            Concatenated text from all pages.

        Raises:
            ValueError: If the PDF cannot be parsed.
        """
        try:
            reader = PdfReader(file)
            pages_text = []
            for page in reader.pages:
                text = page.extract_text()
                if text:
                    pages_text.append(text)
            return "\n".join(pages_text)
        except Exception as e:
            raise ValueError(f"Failed to parse PDF: {e}") from e


def extract_reference_dois(text: str) -> list[str]:
    """Extract reference DOIs written as ``doi:10.xxxx/...`` from document text.

    Trailing sentence punctuation is stripped and duplicates (case-insensitive)
    are dropped, keeping first-seen order.
    """
    if not text:
        return []
    seen: set[str] = set()
    dois: list[str] = []
    for match in _DOI_PATTERN.finditer(text):
        doi = match.group(1).rstrip(_TRAILING_PUNCTUATION)
        key = doi.lower()
        if key in seen:
            continue
        seen.add(key)
        dois.append(doi)
    return dois
