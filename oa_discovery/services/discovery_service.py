"""Discovery service coordinating search, clustering and per-article analysis.

Owns the process-wide candidate pool and topic clusterer. Each search runs
the adapters concurrently, grows the pool, recomputes clusters and only then
analyzes the returned articles, so ranking always sees the clusters built
from this request's results (or a newer background refresh).
"""

import asyncio
import logging

from oa_discovery.models.schemas import (
    AccessibleReference,
    AnalyzedArticle,
    Article,
    SearchRequest,
)
from oa_discovery.services.adapters.base_adapter import BaseSearchAdapter
from oa_discovery.services.candidate_pool import CandidatePool, dedupe_by_doi
from oa_discovery.services.document_parser import extract_reference_dois
from oa_discovery.services.oa_verifier import OAVerifier
from oa_discovery.services.pdf_store import PdfStore
from oa_discovery.services.related_ranker import RelatedArticleRanker
from oa_discovery.services.topic_clusterer import TopicClusterer

logger = logging.getLogger(__name__)

DEFAULT_MAX_RESULTS = 20


class DiscoveryService:
    """Sequences pool update -> cluster recompute -> analysis for each search."""

    def __init__(
        self,
        adapters: list[BaseSearchAdapter],
        pool: CandidatePool,
        clusterer: TopicClusterer,
        ranker: RelatedArticleRanker,
        oa_verifier: OAVerifier,
        pdf_store: PdfStore,
        default_max_results: int = DEFAULT_MAX_RESULTS,
    ):
        self.adapters = adapters
        self.pool = pool
        self.clusterer = clusterer
        self.ranker = ranker
        self._oa_verifier = oa_verifier
        self.pdf_store = pdf_store
        self.default_max_results = default_max_results

    async def search(self, request: SearchRequest) -> list[AnalyzedArticle]:
        """Run a discovery search and analyze the top results.

        Args:
            request: Validated search request (query must be set).

        Returns:
            Analyzed articles, only for those whose PDF is stored locally.
        """
        batches = await asyncio.gather(
            *(
                adapter.search(request.query, request.type, request.year_from, request.year_to)
                for adapter in self.adapters
            )
        )
        results = [article for batch in batches for article in batch]

        added = self.pool.add_candidates(results)
        logger.info(
            "Search returned %d articles, %d new to pool (pool size %d)",
            len(results),
            added,
            self.pool.size(),
        )
        await self.clusterer.recompute()

        max_results = request.max_results or self.default_max_results
        selected = dedupe_by_doi(results)[:max_results]
        return await self.analyze_articles(selected)

    async def analyze_articles(self, articles: list[Article]) -> list[AnalyzedArticle]:
        analyzed = []
        for article in articles:
            result = await self.analyze_article(article)
            if result is not None:
                analyzed.append(result)
        return analyzed

    async def analyze_article(self, article: Article) -> AnalyzedArticle | None:
        """Attach OA references and related articles to a copy of the article.

        Returns None when the article's PDF is not stored or has no text.
        """
        text = self.pdf_store.read_text(article.doi)
        if not text:
            return None

        references = await self.accessible_references(extract_reference_dois(text))
        related = await self.ranker.rank(text, article.doi)

        return AnalyzedArticle(
            **article.model_dump(),
            accessible_references=references,
            ai_suggested_articles=related,
        )

    async def accessible_references(self, dois: list[str]) -> list[AccessibleReference]:
        """OA-verify reference DOIs, keeping those with a PDF location."""
        references = []
        for doi in dois:
            oa = await self._oa_verifier.check_oa(doi)
            if oa is None or not oa.is_accessible:
                continue
            references.append(
                AccessibleReference(
                    title=oa.title or "Unknown",
                    doi=doi,
                    source=oa.journal_name or "OA Source",
                    pdf_url=oa.best_pdf_url,
                )
            )
        return references

    async def refresh_clusters(self) -> bool:
        """Recompute clusters if the pool has any candidates.

        Returns:
            True if a recompute ran.
        """
        if self.pool.size() == 0:
            return False
        await self.clusterer.recompute()
        return True
