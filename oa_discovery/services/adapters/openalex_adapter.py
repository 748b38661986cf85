"""OpenAlex search adapter for open-access works."""

from oa_discovery.services.adapters.base_adapter import BaseSearchAdapter


def _decode_abstract(index: dict | None) -> str | None:
    """Reconstruct abstract from OpenAlex abstract_inverted_index.

    OpenAlex stores abstracts as inverted index: token -> list of positions.
    Reconstruct by placing tokens at positions and joining.
    """
    if not index or not isinstance(index, dict):
        return None
    try:
        positions: list[tuple[int, str]] = []
        for token, pos_list in index.items():
            if isinstance(pos_list, list):
                for p in pos_list:
                    if isinstance(p, (int, float)):
                        positions.append((int(p), token))
            elif isinstance(pos_list, (int, float)):
                positions.append((int(pos_list), token))
        if not positions:
            return None
        max_pos = max(p[0] for p in positions)
        tokens: list[str] = [""] * (max_pos + 1)
        for pos, token in positions:
            tokens[pos] = token
        return " ".join(t for t in tokens if t).strip() or None
    except Exception:
        return None


def build_filter(
    query: str,
    type: str = "all",
    year_from: int | None = None,
    year_to: int | None = None,
) -> str:
    """Build the OpenAlex `filter` parameter for an OA title search."""
    parts = ["open_access.is_oa:true", f"title.search:{query.replace(',', ' ')}"]
    if year_from:
        parts.append(f"publication_year:>{year_from - 1}")
    if year_to:
        parts.append(f"publication_year:<{year_to + 1}")
    if type and type != "all":
        parts.append(f"type:{type}")
    return ",".join(parts)


class OpenAlexAdapter(BaseSearchAdapter):
    """Async adapter for the OpenAlex works API."""

    source_name = "OpenAlex"
    BASE_URL = "https://api.openalex.org"

    def __init__(self, *args, email: str, per_page: int = 25, **kwargs):
        super().__init__(*args, **kwargs)
        self.email = email
        self.per_page = per_page

    async def fetch_hits(self, query, type, year_from, year_to) -> list[dict]:
        data = await self.fetch_json(
            f"{self.BASE_URL}/works",
            params={
                "filter": build_filter(query, type, year_from, year_to),
                "per_page": self.per_page,
                "mailto": self.email,
            },
        )
        return [self._normalize_work(r) for r in data.get("results") or [] if r.get("doi")]

    def _normalize_work(self, raw: dict) -> dict:
        """Extract the fields an Article needs from a raw OpenAlex work."""
        authors = []
        for authorship in raw.get("authorships") or []:
            name = (authorship.get("author") or {}).get("display_name")
            if name:
                authors.append(name)

        return {
            "doi": raw.get("doi"),
            "title": raw.get("display_name") or raw.get("title") or "",
            "authors": ", ".join(authors),
            "year": raw.get("publication_year"),
            "abstract": _decode_abstract(raw.get("abstract_inverted_index")) or "",
        }
