"""
Search Routes
Handle → brand and brand → handles lookups, plus brand-name autocomplete
"""
import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel

from app.core.config import settings
from app.core.dependencies import get_directory_store, get_search_engine
from app.middleware.rate_limit import limiter, search_rate_limit
from app.models.schemas import HandleSearchResponse
from app.services.directory.query import run_handle_search, validate_query
from app.services.directory.search import DirectorySearchEngine
from app.services.directory.store import DirectoryStore
from app.services.identity.resolver import suggest_canonical

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["search"])


class BrandSuggestionResponse(BaseModel):
    """Canonical names matching a partially typed brand."""
    query: str
    suggestions: List[str]


@router.get("/handle-search", response_model=HandleSearchResponse)
@limiter.limit(search_rate_limit)
async def handle_search(
    request: Request,
    q: Optional[str] = Query(None, description="Brand name, handle or partial handle (min 2 chars)"),
    limit: Optional[str] = Query(None, description="Max results, 1-100 (default 10)"),
    mode: Optional[str] = Query(None, description="search | suggest | brand"),
    brand: Optional[str] = Query(None, description="Brand name for mode=brand (defaults to q)"),
    engine: DirectorySearchEngine = Depends(get_search_engine)
):
    """
    Search the handle directory.

    **Modes**:
    - search: names and handles containing the query, grouped per identity
    - suggest: handles starting with the query ("@elonm" → Elon Musk)
    - brand: one handle per platform for a brand

    Query and limit are validated before any database access (400 on failure).
    An empty result list is a normal 200 response.
    """
    return await run_handle_search(
        engine,
        query=q,
        limit=limit,
        mode=mode,
        brand=brand,
        default_limit=settings.search_default_limit,
        max_limit=settings.search_max_limit,
    )


@router.get("/brands/suggest", response_model=BrandSuggestionResponse)
@limiter.limit(search_rate_limit)
async def suggest_brands(
    request: Request,
    q: Optional[str] = Query(None, description="Partially typed brand or person name"),
    store: DirectoryStore = Depends(get_directory_store)
):
    """Autocomplete canonical names already on file."""
    term, _ = validate_query(q)

    names = await store.distinct_canonical_names()
    suggestions = suggest_canonical(term, names, threshold=settings.suggest_similarity_threshold)

    logger.debug(f"Brand suggestions for '{term}': {suggestions}")
    return BrandSuggestionResponse(query=term, suggestions=suggestions)
