"""API routes for the OA Discovery Service."""

import logging

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import FileResponse

from oa_discovery.config import get_settings
from oa_discovery.models.schemas import SearchRequest, SearchResponse

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("/.well-known/mcp.json")
async def manifest():
    """Describe the service and its endpoints for MCP clients."""
    settings = get_settings()
    return {
        "name": settings.app_name,
        "description": "Search OA articles, serve PDFs, analyze references, suggest related OA articles",
        "version": settings.app_version,
        "endpoints": [
            {
                "name": "search_oa",
                "description": "Search OA content with PDF retrieval and AI analysis",
                "method": "POST",
                "path": "/search_oa",
            },
            {
                "name": "article_pdf",
                "description": "Stream a stored article PDF",
                "method": "GET",
                "path": "/article/{doi}/pdf",
            },
        ],
    }


@router.post("/search_oa", response_model=SearchResponse)
async def search_oa(request: Request, body: SearchRequest):
    """Search OpenAlex and DOAJ, grow the candidate pool and analyze the results."""
    if not body.query:
        raise HTTPException(status_code=400, detail="Missing query")

    service = request.app.state.discovery
    results = await service.search(body)
    logger.info("search_oa: %d analyzed articles", len(results))
    return SearchResponse(results=results)


@router.get("/article/{doi:path}/pdf")
async def article_pdf(request: Request, doi: str):
    """Serve a stored PDF; the DOI may use '/' or its '_' file form."""
    path = request.app.state.pdf_store.path_for(doi)
    if not path.is_file():
        raise HTTPException(status_code=404, detail="PDF not found")
    return FileResponse(path, media_type="application/pdf", filename=path.name)
