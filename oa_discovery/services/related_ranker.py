"""Related-article ranking against the current topic clusters.

The query document is matched to its nearest cluster centroid; members of
that cluster (or the whole pool when the cluster has nothing else to offer)
are scored by cosine similarity, and the top window is filtered to
OA-verified articles.
"""

import asyncio
import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass

from oa_discovery.models.schemas import Article, OAStatus, RelatedArticle
from oa_discovery.services.candidate_pool import CandidatePool
from oa_discovery.services.embedding_service import EmbeddingProvider
from oa_discovery.services.oa_verifier import OAVerifier
from oa_discovery.services.topic_clusterer import ClusterState, TopicClusterer

logger = logging.getLogger(__name__)

DEFAULT_TOP_N = 10
MIN_SIMILARITY = -1.0


def cosine_similarity(a: Sequence[float] | None, b: Sequence[float] | None) -> float:
    """Cosine similarity, or -1 when undefined (missing, ragged or zero vectors)."""
    if not a or not b or len(a) != len(b):
        return MIN_SIMILARITY
    dot = sum(x * y for x, y in zip(a, b))
    na = math.sqrt(sum(x * x for x in a))
    nb = math.sqrt(sum(y * y for y in b))
    if not na or not nb:
        return MIN_SIMILARITY
    return dot / (na * nb)


def nearest_centroid(vector: Sequence[float], centroids: Sequence[Sequence[float]]) -> int | None:
    """Index of the most similar centroid; the lowest index wins ties."""
    best_index = None
    best = -math.inf
    for i, centroid in enumerate(centroids):
        sim = cosine_similarity(vector, centroid)
        if sim > best:
            best, best_index = sim, i
    return best_index


@dataclass(frozen=True)
class ScoredCandidate:
    article: Article
    score: float


class RelatedArticleRanker:
    """Ranks pool articles by semantic similarity to a document."""

    def __init__(
        self,
        pool: CandidatePool,
        clusterer: TopicClusterer,
        embedder: EmbeddingProvider,
        oa_verifier: OAVerifier,
        top_n: int = DEFAULT_TOP_N,
    ):
        self._pool = pool
        self._clusterer = clusterer
        self._embedder = embedder
        self._oa_verifier = oa_verifier
        self.top_n = top_n

    def _search_pool(self, state: ClusterState, cluster: int | None, exclude_key: str) -> list[Article]:
        if cluster is not None:
            members = [a for a in state.members(cluster) if a.key != exclude_key]
            if members:
                return members
        return self._pool.snapshot()

    async def score_candidates(
        self, document_text: str, exclude_doi: str | None
    ) -> list[ScoredCandidate]:
        """Score candidates against the document, best first.

        Returns an empty list when the document cannot be embedded.
        """
        main_vector = await self._embedder.embed(document_text, exclude_doi)
        if main_vector is None:
            logger.info("No embedding for document %s; no related articles", exclude_doi)
            return []

        state = self._clusterer.snapshot()
        cluster = nearest_centroid(main_vector, state.centroids) if state.centroids else None
        exclude_key = (exclude_doi or "").strip().lower()
        candidates = self._search_pool(state, cluster, exclude_key)

        scored: list[ScoredCandidate] = []
        for article in candidates:
            if not article.key or article.key == exclude_key:
                continue
            vector = await self._embedder.embed(article.abstract, article.doi)
            if vector is None:
                continue
            scored.append(ScoredCandidate(article, cosine_similarity(main_vector, vector)))

        # sorted() is stable: equal scores keep pool order
        return sorted(scored, key=lambda s: -s.score)

    async def rank(
        self,
        document_text: str,
        exclude_doi: str | None,
        top_n: int | None = None,
    ) -> list[RelatedArticle]:
        """Return OA-verified related articles, most similar first.

        The top_n window is fixed before OA filtering, so fewer than top_n
        articles come back when some candidates are not accessible.
        """
        scored = await self.score_candidates(document_text, exclude_doi)
        window = scored[: self.top_n if top_n is None else top_n]
        statuses = await asyncio.gather(
            *(self._oa_verifier.check_oa(s.article.doi) for s in window)
        )
        related = [
            _to_related(s.article, oa)
            for s, oa in zip(window, statuses, strict=True)
            if oa is not None and oa.is_accessible
        ]
        logger.debug(
            "Related articles for %s: %d scored, %d verified of top %d",
            exclude_doi,
            len(scored),
            len(related),
            len(window),
        )
        return related


def _to_related(article: Article, oa: OAStatus) -> RelatedArticle:
    return RelatedArticle(
        title=article.title or oa.title or "Unknown",
        doi=article.doi,
        source=article.source or oa.journal_name or "OA Source",
        pdf_url=article.pdf_url or oa.best_pdf_url,
    )
