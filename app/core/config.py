"""
Unified Configuration
All environment variables and settings in one place
"""
from typing import Optional, Tuple
import logging
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator

from app.models.schemas.handles import Platform

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Unified application settings.
    Validates all environment variables at startup.
    """

    # ============================================================================
    # SERVER
    # ============================================================================

    environment: str = Field(default="production", description="Environment: dev/staging/production")
    port: int = Field(default=8080, description="Server port")
    debug: bool = Field(default=False, description="Debug mode")

    # ============================================================================
    # DATABASE (Supabase PostgreSQL)
    # ============================================================================

    supabase_url: Optional[str] = Field(default=None, description="Supabase project URL")
    supabase_anon_key: Optional[str] = Field(default=None, description="Supabase anonymous key")
    supabase_service_key: Optional[str] = Field(default=None, description="Supabase service key (preferred for writes)")
    handles_table: str = Field(default="handle_database", description="Directory table name")

    # ============================================================================
    # API KEYS
    # ============================================================================

    handles_api_key: Optional[str] = Field(default=None, description="API key for write/admin endpoints")

    # ============================================================================
    # DEDUPLICATION & SEARCH
    # ============================================================================

    dedup_similarity_threshold: float = Field(default=0.8, ge=0.0, le=1.0, description="Name similarity needed to fold into an existing canonical name")
    suggest_similarity_threshold: float = Field(default=0.6, ge=0.0, le=1.0, description="Fuzzy threshold for brand autocomplete")
    search_default_limit: int = Field(default=10, ge=1, description="Default number of search results")
    search_max_limit: int = Field(default=100, ge=1, description="Upper bound accepted for the limit parameter")

    # Comma-separated; first platform wins an ambiguous bare @handle
    platform_priority: str = Field(
        default="instagram,twitter_x,linkedin,tiktok,youtube,reddit,telegram,threads,whatsapp_business,discord",
        description="Ordered platform detection priority"
    )

    # ============================================================================
    # PRODUCTION INFRASTRUCTURE
    # ============================================================================

    # Error tracking (Sentry)
    sentry_dsn: Optional[str] = Field(default=None, description="Sentry DSN for error tracking")
    sentry_traces_sample_rate: float = Field(default=0.1, ge=0.0, le=1.0, description="Share of requests traced")

    # Rate limiting (slowapi syntax)
    rate_limit_search: str = Field(default="60/minute", description="Rate limit for search endpoints")

    @field_validator("platform_priority")
    @classmethod
    def check_platform_priority(cls, value: str) -> str:
        names = [name.strip() for name in value.split(",") if name.strip()]
        known = {p.value for p in Platform}
        unknown = [name for name in names if name not in known]
        if unknown:
            raise ValueError(f"Unknown platforms in PLATFORM_PRIORITY: {unknown}")
        if len(set(names)) != len(names):
            raise ValueError("PLATFORM_PRIORITY lists a platform more than once")
        return ",".join(names)

    @property
    def platform_order(self) -> Tuple[Platform, ...]:
        """Parsed platform_priority"""
        return tuple(Platform(name) for name in self.platform_priority.split(",") if name)

    @property
    def supabase_key(self) -> Optional[str]:
        """Service key if configured, else the anon key"""
        return self.supabase_service_key or self.supabase_anon_key

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


# Global settings instance
settings = Settings()
