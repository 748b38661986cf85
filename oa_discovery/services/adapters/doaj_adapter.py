"""DOAJ (Directory of Open Access Journals) search adapter."""

from urllib.parse import quote

from oa_discovery.services.adapters.base_adapter import BaseSearchAdapter


def _to_int(value) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class DOAJAdapter(BaseSearchAdapter):
    """Async adapter for the DOAJ article search API.

    DOAJ has no server-side year filter on this endpoint, so the year range
    is applied to the results.
    """

    source_name = "DOAJ"
    BASE_URL = "https://doaj.org/api/v2/search/articles"

    def __init__(self, *args, page_size: int = 50, **kwargs):
        super().__init__(*args, **kwargs)
        self.page_size = page_size

    async def fetch_hits(self, query, type, year_from, year_to) -> list[dict]:
        data = await self.fetch_json(
            f"{self.BASE_URL}/{quote(query, safe='')}",
            params={"pageSize": self.page_size},
        )
        hits = []
        for result in data.get("results") or []:
            hit = self._normalize_result(result)
            if hit is None:
                continue
            year = hit["year"]
            if year_from and (year is None or year < year_from):
                continue
            if year_to and (year is None or year > year_to):
                continue
            hits.append(hit)
        return hits

    def _normalize_result(self, raw: dict) -> dict | None:
        bib = raw.get("bibjson") or {}
        doi = next(
            (i.get("id") for i in bib.get("identifier") or [] if (i.get("type") or "").lower() == "doi"),
            None,
        )
        if not doi:
            return None
        return {
            "doi": doi,
            "title": bib.get("title") or "",
            "authors": ", ".join(a["name"] for a in bib.get("author") or [] if a.get("name")),
            "year": _to_int(bib.get("year")),
            "abstract": bib.get("abstract") or "",
        }
