"""
Configuration management for the OA Discovery Service.

Uses Pydantic Settings to load and validate environment variables from .env file.
All sensitive data (API keys, contact emails) are loaded from environment variables
and never hardcoded.
"""

from functools import lru_cache
from typing import Literal, Union
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via .env file or environment variables.
    """

    # Application Settings
    app_name: str = Field(
        default="OA Verified Discovery",
        description="Name of the application"
    )
    app_version: str = Field(
        default="1.2.0",
        description="Application version"
    )
    environment: Literal["development", "production", "test"] = Field(
        default="development",
        description="Runtime environment"
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level"
    )

    # API Settings
    api_prefix: str = Field(
        default="",
        description="URL prefix for all routes (empty serves /search_oa at the root)"
    )
    cors_origins: Union[str, list[str]] = Field(
        default="http://localhost:5173,http://localhost:3000",
        description="Allowed CORS origins"
    )

    # OpenAI Settings
    openai_api_key: str = Field(
        ...,
        description="OpenAI API key for embedding generation (REQUIRED)"
    )
    embedding_model: str = Field(
        default="text-embedding-3-large",
        description="OpenAI embedding model"
    )
    embedding_dimensions: int = Field(
        default=1536,
        ge=64,
        le=3072,
        description="Embedding length requested from the API; also the zero-vector fallback length"
    )
    embedding_max_chars: int = Field(
        default=24000,
        ge=1000,
        description="Input texts are truncated to this many characters before embedding"
    )

    # Upstream APIs
    unpaywall_email: str = Field(
        default="YOUR_EMAIL@example.com",
        description="Contact email sent with every Unpaywall lookup"
    )
    openalex_email: str = Field(
        default="YOUR_EMAIL@example.com",
        description="Email for OpenAlex polite pool"
    )
    openalex_per_page: int = Field(
        default=25,
        ge=1,
        le=200,
        description="Number of results per page from OpenAlex"
    )
    doaj_page_size: int = Field(
        default=50,
        ge=1,
        le=100,
        description="Number of results per page from DOAJ"
    )
    http_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout applied to every outbound HTTP call"
    )

    # Storage Settings
    cache_backend: Literal["json", "redis"] = Field(
        default="json",
        description="Key/value cache backend for OA lookups and embeddings"
    )
    cache_dir: str = Field(
        default="./cache",
        description="Directory holding one <key>.json file per cache entry (json backend)"
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis URL (redis backend)"
    )
    pdf_dir: str = Field(
        default="./pdfs",
        description="Directory where downloaded PDFs are stored"
    )

    # Clustering & Ranking
    cluster_min_pool_size: int = Field(
        default=2,
        ge=1,
        description="Pools smaller than this are not clustered"
    )
    cluster_random_state: int = Field(
        default=0,
        description="Seed for k-means centroid initialisation"
    )
    related_top_n: int = Field(
        default=10,
        ge=1,
        le=50,
        description="Candidates considered (before OA filtering) per related-article query"
    )
    default_max_results: int = Field(
        default=20,
        ge=1,
        le=200,
        description="Articles analysed per search when the request omits max_results"
    )

    # Background Job Settings
    cluster_refresh_minutes: int = Field(
        default=30,
        ge=1,
        description="Interval of the background cluster refresh"
    )
    cluster_refresh_enabled: bool = Field(
        default=True,
        description="Enable/disable the background cluster refresh"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS origins from comma-separated string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    This function is cached to avoid re-reading environment variables
    on every call. Use this function to access settings throughout
    the application.

    Returns:
        Settings: The application settings instance
    """
    return Settings()
