"""FastAPI application entry point for the OA Discovery Service."""

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from oa_discovery.config import Settings, get_settings
from oa_discovery.api.routes import router
from oa_discovery.jobs.cluster_refresh_job import setup_cluster_refresh_scheduler
from oa_discovery.services.adapters.doaj_adapter import DOAJAdapter
from oa_discovery.services.adapters.openalex_adapter import OpenAlexAdapter
from oa_discovery.services.cache_store import (
    BaseCacheStore,
    RedisCacheStore,
    create_cache_store,
)
from oa_discovery.services.candidate_pool import CandidatePool
from oa_discovery.services.discovery_service import DiscoveryService
from oa_discovery.services.embedding_service import EmbeddingProvider, EmbeddingService
from oa_discovery.services.oa_verifier import OAVerifier
from oa_discovery.services.pdf_store import PdfStore
from oa_discovery.services.related_ranker import RelatedArticleRanker
from oa_discovery.services.topic_clusterer import TopicClusterer

logger = logging.getLogger(__name__)


def build_discovery_service(
    settings: Settings, http_client: httpx.AsyncClient, cache: BaseCacheStore
) -> DiscoveryService:
    """Wire the verifier, embedder, pool, clusterer and adapters around one cache."""
    oa_verifier = OAVerifier(cache, email=settings.unpaywall_email, http_client=http_client)
    pdf_store = PdfStore(settings.pdf_dir, http_client=http_client)

    embedding_service = EmbeddingService(
        api_key=settings.openai_api_key,
        model=settings.embedding_model,
        dimensions=settings.embedding_dimensions,
        max_chars=settings.embedding_max_chars,
    )
    embedder = EmbeddingProvider(
        cache, embedding_service.embed_text, dimensions=settings.embedding_dimensions
    )

    pool = CandidatePool()
    clusterer = TopicClusterer(
        pool,
        embedder,
        min_pool_size=settings.cluster_min_pool_size,
        random_state=settings.cluster_random_state,
    )
    ranker = RelatedArticleRanker(
        pool, clusterer, embedder, oa_verifier, top_n=settings.related_top_n
    )
    adapters = [
        OpenAlexAdapter(
            oa_verifier,
            pdf_store,
            http_client=http_client,
            email=settings.openalex_email,
            per_page=settings.openalex_per_page,
        ),
        DOAJAdapter(
            oa_verifier,
            pdf_store,
            http_client=http_client,
            page_size=settings.doaj_page_size,
        ),
    ]
    return DiscoveryService(
        adapters=adapters,
        pool=pool,
        clusterer=clusterer,
        ranker=ranker,
        oa_verifier=oa_verifier,
        pdf_store=pdf_store,
        default_max_results=settings.default_max_results,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan: startup and shutdown."""
    settings = get_settings()

    # One shared HTTP client for Unpaywall, OpenAlex, DOAJ and PDF downloads
    http_client = httpx.AsyncClient(
        timeout=settings.http_timeout_seconds,
        follow_redirects=True,
    )
    cache = create_cache_store(settings)
    service = build_discovery_service(settings, http_client, cache)
    app.state.discovery = service
    app.state.pdf_store = service.pdf_store

    scheduler = setup_cluster_refresh_scheduler(
        service,
        interval_minutes=settings.cluster_refresh_minutes,
        enabled=settings.cluster_refresh_enabled,
    )

    logger.info("Application started")
    yield

    # Shutdown
    if scheduler is not None:
        scheduler.shutdown(wait=False)
    if isinstance(cache, RedisCacheStore):
        await cache.close()
    await http_client.aclose()
    logger.info("Application shut down")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )

    # CORS middleware
    allow_origin_regex = r"^http://localhost:\d+$" if settings.environment == "development" else None
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_origin_regex=allow_origin_regex,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception: %s", exc)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    # Include API routes
    app.include_router(router, prefix=settings.api_prefix)

    return app


app = create_app()
