"""Process-wide pool of discovered articles used for clustering and ranking."""

from collections.abc import Iterable, Iterator

from oa_discovery.models.schemas import Article


def dedupe_by_doi(articles: Iterable[Article], seen: set[str] | None = None) -> list[Article]:
    """Keep the first article per lowercased DOI, in order.

    Articles without a DOI are dropped. Keys already in seen are skipped, and
    seen is updated in place with every key kept.
    """
    seen = set() if seen is None else seen
    unique = []
    for article in articles:
        key = article.key
        if not key or key in seen:
            continue
        seen.add(key)
        unique.append(article)
    return unique


class CandidatePool:
    """Ordered collection of articles deduplicated by lowercased DOI.

    Append-only: the first article seen for a DOI wins and is never
    overwritten. Articles without a DOI are ignored.
    """

    def __init__(self):
        self._articles: list[Article] = []
        self._seen: set[str] = set()

    def add_candidates(self, articles: Iterable[Article]) -> int:
        """Merge articles into the pool.

        Returns:
            Number of articles actually added.
        """
        new = dedupe_by_doi(articles, self._seen)
        self._articles.extend(new)
        return len(new)

    def size(self) -> int:
        return len(self._articles)

    def snapshot(self) -> list[Article]:
        """Copy of the current pool contents, safe to hold across awaits."""
        return list(self._articles)

    def __len__(self) -> int:
        return len(self._articles)

    def __iter__(self) -> Iterator[Article]:
        return iter(self.snapshot())
