"""Semantic topic clustering of the candidate pool.

Every recompute embeds the whole pool (cache-backed) and runs k-means from
scratch; there is no incremental update.
"""

import asyncio
import logging
import math
from dataclasses import dataclass

import numpy as np
from sklearn.cluster import KMeans

from oa_discovery.models.schemas import Article
from oa_discovery.services.candidate_pool import CandidatePool
from oa_discovery.services.embedding_service import EmbeddingProvider

logger = logging.getLogger(__name__)

MIN_POOL_SIZE = 2
MAX_CLUSTERS = 5


def cluster_count(pool_size: int) -> int:
    """k = clamp(floor(sqrt(n / 2)), 1, 5)."""
    return min(MAX_CLUSTERS, max(1, math.floor(math.sqrt(pool_size / 2))))


@dataclass(frozen=True)
class ClusterAssignment:
    cluster: int
    article: Article


@dataclass(frozen=True)
class ClusterState:
    """One clustering result; replaced wholesale on every recompute."""

    assignments: tuple[ClusterAssignment, ...] = ()
    centroids: tuple[list[float], ...] = ()

    @property
    def k(self) -> int:
        return len(self.centroids)

    def members(self, cluster: int) -> list[Article]:
        return [a.article for a in self.assignments if a.cluster == cluster]

    def sizes(self) -> list[int]:
        counts = [0] * self.k
        for a in self.assignments:
            counts[a.cluster] += 1
        return counts


class TopicClusterer:
    """Partitions the candidate pool into k topic clusters."""

    def __init__(
        self,
        pool: CandidatePool,
        embedder: EmbeddingProvider,
        min_pool_size: int = MIN_POOL_SIZE,
        random_state: int = 0,
    ):
        self._pool = pool
        self._embedder = embedder
        self.min_pool_size = min_pool_size
        self.random_state = random_state
        self._state = ClusterState()

    @property
    def state(self) -> ClusterState:
        return self._state

    @property
    def assignments(self) -> tuple[ClusterAssignment, ...]:
        return self._state.assignments

    @property
    def centroids(self) -> tuple[list[float], ...]:
        return self._state.centroids

    def snapshot(self) -> ClusterState:
        """Assignments and centroids from the same recompute."""
        return self._state

    async def recompute(self) -> ClusterState:
        """Rebuild assignments and centroids from the current pool.

        Pools below min_pool_size produce an empty state. Articles whose
        embedding cannot be obtained are clustered as zero vectors.
        """
        articles = self._pool.snapshot()
        if len(articles) < self.min_pool_size:
            logger.info(
                "Skipping clustering: %d candidates (minimum %d)",
                len(articles),
                self.min_pool_size,
            )
            self._state = ClusterState()
            return self._state

        dim = self._embedder.dimensions
        vectors: list[list[float]] = []
        missing = 0
        for article in articles:
            vector = await self._embedder.embed(article.abstract or article.title, article.doi)
            if vector is None or len(vector) != dim:
                if vector is not None:
                    logger.warning(
                        "Discarding embedding of length %d for %s (expected %d)",
                        len(vector),
                        article.doi,
                        dim,
                    )
                vector = [0.0] * dim
                missing += 1
            vectors.append(vector)

        k = cluster_count(len(articles))
        km = KMeans(n_clusters=k, n_init=10, random_state=self.random_state)
        # fit runs in a worker thread, off the event loop
        labels = await asyncio.to_thread(km.fit_predict, np.asarray(vectors, dtype=np.float64))

        self._state = ClusterState(
            assignments=tuple(
                ClusterAssignment(cluster=int(label), article=article)
                for label, article in zip(labels, articles, strict=True)
            ),
            centroids=tuple(c.tolist() for c in km.cluster_centers_),
        )
        logger.info(
            "Created %d semantic clusters over %d candidates (%d without embedding), sizes %s",
            k,
            len(articles),
            missing,
            self._state.sizes(),
        )
        return self._state
