"""
Handle Directory Schemas
Domain records and API payloads for the shared social handle directory
"""
from enum import Enum
from typing import Optional, List, Dict, Union
from datetime import datetime
from pydantic import BaseModel, Field


# ============================================================================
# ENUMS
# ============================================================================

class Platform(str, Enum):
    """Supported social platforms (declaration order is the default detection priority)"""
    INSTAGRAM = "instagram"
    TWITTER_X = "twitter_x"
    LINKEDIN = "linkedin"
    TIKTOK = "tiktok"
    YOUTUBE = "youtube"
    REDDIT = "reddit"
    TELEGRAM = "telegram"
    THREADS = "threads"
    WHATSAPP_BUSINESS = "whatsapp_business"
    DISCORD = "discord"


class Confidence(str, Enum):
    """How unambiguous a platform detection was"""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class SearchMode(str, Enum):
    """Query surface modes"""
    SEARCH = "search"
    SUGGEST = "suggest"
    BRAND = "brand"


# ============================================================================
# STORED RECORDS
# ============================================================================

class DirectoryRecord(BaseModel):
    """One (platform, handle) row in the directory"""
    id: str
    contributor_id: str
    canonical_name: Optional[str] = None
    platform: Platform
    handle: str
    verified: bool = False
    first_seen_at: datetime
    last_seen_at: datetime
    created_at: datetime
    updated_at: datetime


class HandleSubmission(BaseModel):
    """A single contributor submission awaiting upsert."""
    platform: Platform
    handle: str = Field(..., min_length=1, description="Raw handle as typed or extracted")
    name: Optional[str] = Field(default=None, description="Brand or person name, if known")
    contributor_id: str = Field(..., min_length=1)
    verified: bool = False


# ============================================================================
# PARSING
# ============================================================================

class CandidateRecord(BaseModel):
    """A parse result that has not been stored yet"""
    platform: Platform
    raw_handle: str
    original_input_line: str
    confidence: Confidence
    candidate_name: Optional[str] = None


class SkippedLine(BaseModel):
    """An input line the parser could not turn into a candidate"""
    line_number: int
    text: str
    reason: str


class ParseResult(BaseModel):
    """Candidates in input order plus every line that was dropped."""
    candidates: List[CandidateRecord] = Field(default_factory=list)
    skipped: List[SkippedLine] = Field(default_factory=list)


# ============================================================================
# MATCHING / SEARCH
# ============================================================================

class SimilarityMatch(BaseModel):
    """An existing canonical name that a new name resembles"""
    canonical_name: str
    score: float = Field(..., ge=0.0, le=1.0)
    matched_variations: List[str] = Field(default_factory=list)


class SearchResult(BaseModel):
    """One brand/person identity folded together from several stored rows"""
    representative_record_id: str
    canonical_name: Optional[str] = None
    verified: bool = False
    usage_count: int = 1
    platforms: List[Platform] = Field(default_factory=list)
    handles_by_platform: Dict[Platform, str] = Field(default_factory=dict)
    profile_urls: Dict[Platform, str] = Field(default_factory=dict)


class HandleSearchResponse(BaseModel):
    """Response of the handle-search query surface"""
    query: str
    type: str = Field(..., description="search_results | suggestions | brand_handles")
    results: Union[List[SearchResult], Dict[Platform, str]]
    count: int


# ============================================================================
# BULK IMPORT
# ============================================================================

class ImportSummary(BaseModel):
    """Aggregate outcome of a bulk import (partial success is normal)"""
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    created: int = 0
    updated: int = 0
    errors: List[str] = Field(default_factory=list)


class ImportRequest(BaseModel):
    """Raw pasted text or table content to parse and import"""
    content: str = Field(..., description="Pasted lines or delimited table")
    format: str = Field(default="lines", pattern="^(lines|table)$")
    contributor_id: str = Field(..., min_length=1)
    dry_run: bool = False


class ImportResponse(BaseModel):
    """Bulk import summary together with what the parser produced"""
    summary: ImportSummary
    candidates: List[CandidateRecord] = Field(default_factory=list)
    skipped: List[SkippedLine] = Field(default_factory=list)
