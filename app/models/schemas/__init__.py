"""
API Schemas
Pydantic models for all API endpoints
"""
from app.models.schemas.handles import (
    Platform,
    Confidence,
    SearchMode,
    DirectoryRecord,
    HandleSubmission,
    CandidateRecord,
    SkippedLine,
    ParseResult,
    SimilarityMatch,
    SearchResult,
    HandleSearchResponse,
    ImportSummary,
    ImportRequest,
    ImportResponse,
)

__all__ = [
    # Enums
    "Platform",
    "Confidence",
    "SearchMode",

    # Directory records
    "DirectoryRecord",
    "HandleSubmission",

    # Parsing
    "CandidateRecord",
    "SkippedLine",
    "ParseResult",

    # Matching / search
    "SimilarityMatch",
    "SearchResult",
    "HandleSearchResponse",

    # Bulk import
    "ImportSummary",
    "ImportRequest",
    "ImportResponse",
]
