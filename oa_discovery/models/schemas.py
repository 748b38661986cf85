"""
Pydantic schemas for the OA Discovery Service.

This module contains all data validation and serialization models used
throughout the application, following Pydantic V2 syntax.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Article(BaseModel):
    """
    A scholarly article discovered by a search adapter.

    Identity is the lowercased DOI. Articles are frozen once built; analysis
    results are attached to an AnalyzedArticle copy instead.
    """
    model_config = ConfigDict(frozen=True)

    title: str = Field(default="", description="Article title")
    authors: str = Field(default="", description="Comma-separated author names")
    year: int | None = Field(default=None, description="Publication year")
    doi: str | None = Field(default=None, description="Digital Object Identifier")
    source: str | None = Field(default=None, description="Adapter that produced the record")
    pdf_url: str | None = Field(default=None, description="Local URL of the stored PDF")
    abstract: str = Field(default="", description="Abstract text, empty when unknown")

    @property
    def key(self) -> str:
        """Case-insensitive identity used for deduplication."""
        return (self.doi or "").strip().lower()


class OAStatus(BaseModel):
    """
    Open-access status of a DOI as reported by Unpaywall.

    Only the fields used downstream are kept; the raw response is what gets
    cached.
    """
    is_oa: bool = Field(default=False, description="Whether any OA copy exists")
    best_pdf_url: str | None = Field(default=None, description="PDF URL of the best OA location")
    title: str | None = Field(default=None, description="Title reported by Unpaywall")
    journal_name: str | None = Field(default=None, description="Journal reported by Unpaywall")

    @classmethod
    def from_unpaywall(cls, data: dict[str, Any]) -> "OAStatus":
        best = data.get("best_oa_location") or {}
        return cls(
            is_oa=bool(data.get("is_oa")),
            best_pdf_url=best.get("url_for_pdf") if isinstance(best, dict) else None,
            title=data.get("title"),
            journal_name=data.get("journal_name"),
        )

    @property
    def is_accessible(self) -> bool:
        """True when the article is OA and a PDF location is known."""
        return self.is_oa and bool(self.best_pdf_url)


class RelatedArticle(BaseModel):
    """An OA-verified article suggested as semantically related."""
    title: str = Field(..., description="Article title")
    doi: str = Field(..., description="Digital Object Identifier")
    source: str = Field(..., description="Origin of the record or journal name")
    pdf_url: str = Field(..., description="Where the PDF can be fetched")


class AccessibleReference(RelatedArticle):
    """A reference DOI harvested from a PDF and confirmed open access."""


class AnalyzedArticle(Article):
    """An Article enriched with reference and related-article analysis."""
    accessible_references: list[AccessibleReference] = Field(
        default_factory=list,
        description="OA references extracted from the article's PDF"
    )
    ai_suggested_articles: list[RelatedArticle] = Field(
        default_factory=list,
        description="Semantically related OA articles from the candidate pool"
    )


class SearchRequest(BaseModel):
    """Body of POST /search_oa."""
    query: str | None = Field(default=None, description="Free-text search query")
    type: str = Field(default="all", description="Work type filter (OpenAlex type or 'all')")
    year_from: int | None = Field(default=None, ge=0, description="Earliest publication year")
    year_to: int | None = Field(default=None, ge=0, description="Latest publication year")
    max_results: int | None = Field(
        default=None,
        ge=1,
        le=200,
        description="Maximum number of articles to analyse"
    )

    @field_validator("query", mode="before")
    @classmethod
    def strip_query(cls, v):
        """Normalise surrounding whitespace so blank queries count as missing."""
        if isinstance(v, str):
            return v.strip() or None
        return v


class SearchResponse(BaseModel):
    """Response of POST /search_oa."""
    results: list[AnalyzedArticle] = Field(default_factory=list)
