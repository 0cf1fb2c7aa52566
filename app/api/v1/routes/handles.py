"""
Handle Routes
Contributor submissions, bulk import and directory administration
"""
import logging
from typing import List
from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel, Field

from app.core.dependencies import (
    get_bulk_importer,
    get_directory_store,
    get_handle_parser,
    get_search_engine,
    get_upsert_pipeline,
)
from app.core.security import verify_api_key
from app.middleware.rate_limit import limiter, search_rate_limit
from app.models.schemas import (
    DirectoryRecord,
    HandleSubmission,
    ImportRequest,
    ImportResponse,
    ImportSummary,
    ParseResult,
    Platform,
    SearchResult,
)
from app.services.directory.admin import delete_handle, verify_handle
from app.services.directory.bulk_import import BulkImporter
from app.services.directory.search import DirectorySearchEngine
from app.services.directory.store import DirectoryStore
from app.services.directory.upsert import UpsertPipeline
from app.services.handles.parser import HandleParser

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/handles", tags=["handles"])


class ParseRequest(BaseModel):
    """Raw text to run through the parser without storing anything."""
    content: str = Field(..., description="Pasted lines or delimited table")
    format: str = Field(default="lines", pattern="^(lines|table)$")


class DeleteResponse(BaseModel):
    success: bool
    id: str


def _parse(parser: HandleParser, content: str, format: str) -> ParseResult:
    if format == "table":
        return parser.parse_table(content)
    return parser.parse_lines(content)


# ============================================================================
# SUBMISSIONS
# ============================================================================

@router.post("", response_model=DirectoryRecord)
async def submit_handle(
    submission: HandleSubmission,
    _ = Depends(verify_api_key),
    pipeline: UpsertPipeline = Depends(get_upsert_pipeline)
):
    """
    Submit one handle.

    Creates the (platform, handle) record or refreshes the existing one.
    Returns 400 if the handle fails the platform's format rules.
    """
    logger.info(f"Handle submission: {submission.platform.value}/{submission.handle} by {submission.contributor_id}")
    return await pipeline.upsert(submission)


@router.post("/parse", response_model=ParseResult)
async def parse_handles(
    body: ParseRequest,
    parser: HandleParser = Depends(get_handle_parser)
):
    """Preview what an import would produce. Nothing is stored."""
    return _parse(parser, body.content, body.format)


@router.post("/import", response_model=ImportResponse)
async def import_handles(
    body: ImportRequest,
    _ = Depends(verify_api_key),
    parser: HandleParser = Depends(get_handle_parser),
    importer: BulkImporter = Depends(get_bulk_importer)
):
    """
    Parse pasted text or a table, then upsert every candidate.

    **Dry Run Mode** (dry_run=true):
    - Only parses
    - Summary counts candidates as total, nothing is written

    Lines that match no platform are reported in `skipped`; candidates that
    fail to store are reported in `summary.errors`. Neither aborts the batch.
    """
    parsed = _parse(parser, body.content, body.format)

    if body.dry_run:
        summary = ImportSummary(total=len(parsed.candidates))
    else:
        summary = await importer.import_candidates(parsed.candidates, body.contributor_id)

    return ImportResponse(summary=summary, candidates=parsed.candidates, skipped=parsed.skipped)


# ============================================================================
# LISTINGS
# ============================================================================

@router.get("/popular", response_model=List[SearchResult])
@limiter.limit(search_rate_limit)
async def popular_handles(
    request: Request,
    limit: int = Query(20, ge=1, le=100, description="Max records"),
    engine: DirectorySearchEngine = Depends(get_search_engine)
):
    """Verified handles first, then the most recently seen."""
    return await engine.popular_handles(limit)


@router.get("/platform/{platform}", response_model=List[SearchResult])
@limiter.limit(search_rate_limit)
async def handles_by_platform(
    request: Request,
    platform: Platform,
    limit: int = Query(50, ge=1, le=100, description="Max records"),
    engine: DirectorySearchEngine = Depends(get_search_engine)
):
    """All handles on one platform, verified first."""
    return await engine.handles_by_platform(platform, limit)


# ============================================================================
# ADMINISTRATION
# ============================================================================

@router.post("/{record_id}/verify", response_model=DirectoryRecord)
async def verify_record(
    record_id: str,
    _ = Depends(verify_api_key),
    store: DirectoryStore = Depends(get_directory_store)
):
    """Mark a record as verified (404 if it does not exist)."""
    return await verify_handle(store, record_id)


@router.delete("/{record_id}", response_model=DeleteResponse)
async def delete_record(
    record_id: str,
    _ = Depends(verify_api_key),
    store: DirectoryStore = Depends(get_directory_store)
):
    """Delete a record (404 if it does not exist)."""
    await delete_handle(store, record_id)
    return DeleteResponse(success=True, id=record_id)
