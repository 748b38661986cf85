#!/usr/bin/env python3
"""Run one discovery search from the command line and report the clusters.

Run from the project root:
  python scripts/seed_pool.py "coral reef bleaching" --year-from 2018

Uses OPENAI_API_KEY, UNPAYWALL_EMAIL and CACHE_DIR/PDF_DIR from .env.
Warms the OA and embedding caches and downloads PDFs as a side effect.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Ensure oa_discovery is importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent / ".env")

import httpx

from oa_discovery.config import get_settings
from oa_discovery.main import build_discovery_service
from oa_discovery.models.schemas import SearchRequest
from oa_discovery.services.cache_store import create_cache_store

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


async def main(args: argparse.Namespace) -> int:
    settings = get_settings()
    async with httpx.AsyncClient(
        timeout=settings.http_timeout_seconds, follow_redirects=True
    ) as http_client:
        service = build_discovery_service(
            settings, http_client, create_cache_store(settings)
        )
        results = await service.search(
            SearchRequest(
                query=args.query,
                type=args.type,
                year_from=args.year_from,
                year_to=args.year_to,
                max_results=args.max_results,
            )
        )

    state = service.clusterer.state
    logger.info("Pool holds %d candidates in %d clusters %s", service.pool.size(), state.k, state.sizes())
    for article in results:
        logger.info(
            "%s | %d OA references | %d related",
            article.title[:80],
            len(article.accessible_references),
            len(article.ai_suggested_articles),
        )
    return len(results)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("query")
    parser.add_argument("--type", default="all")
    parser.add_argument("--year-from", type=int, default=None)
    parser.add_argument("--year-to", type=int, default=None)
    parser.add_argument("--max-results", type=int, default=None)
    count = asyncio.run(main(parser.parse_args()))
    sys.exit(0 if count else 1)
