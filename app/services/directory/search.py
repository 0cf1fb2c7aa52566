"""
Bidirectional Search Engine
Handle → brand and brand → handles lookups over the directory

Stored rows are noisy duplicates of a few real identities, so results are
grouped before ranking:
- Grouping key: normalized canonical name, else the name derived from the
  handle, else the raw handle
- Rows arrive verified-first, so the first row of a group is its
  representative and its handle wins per platform
- A group is verified if ANY of its rows is verified
"""
import logging
from typing import Dict, Iterable, List, Optional

from app.models.schemas.handles import DirectoryRecord, Platform, SearchResult
from app.services.directory.store import DirectoryStore, SEARCHABLE_FIELDS
from app.services.handles.rules import handle_url
from app.services.identity.matcher import (
    BrandNormalizer,
    default_normalizer,
    extract_name_from_handle,
)

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2
MAX_SUGGESTIONS = 5
SUGGEST_FETCH_LIMIT = 20
BRAND_FETCH_LIMIT = 100


def _strip_at(text: Optional[str]):
    term = (text or "").strip()
    if term.startswith("@"):
        return term[1:].strip(), True
    return term, False


class DirectorySearchEngine:
    """
    Read side of the directory.

    Args:
        store: Directory store adapter
        normalizer: Normalizer used to build grouping keys
    """

    def __init__(self, store: DirectoryStore, normalizer: BrandNormalizer = default_normalizer):
        self.store = store
        self.normalizer = normalizer

    # ------------------------------------------------------------------ #
    # Forward search
    # ------------------------------------------------------------------ #

    async def search(self, query: str, limit: int = 10) -> List[SearchResult]:
        """
        General search over canonical names and handles.

        Ranking (descending):
        1. Canonical name equals the query (case-insensitive)
        2. Verified
        3. Number of platforms folded into the group
        """
        term, had_at = _strip_at(query)
        if len(term) < MIN_QUERY_LENGTH:
            return []

        # "@nike" reads as a handle lookup first; both fields are matched either way
        fields = tuple(reversed(SEARCHABLE_FIELDS)) if had_at else SEARCHABLE_FIELDS
        rows = await self.store.query_substring(fields, term, limit * 2)

        lowered = term.lower()
        results = sorted(
            self._group(rows),
            key=lambda r: ((r.canonical_name or "").lower() == lowered, r.verified, r.usage_count),
            reverse=True
        )

        logger.info(f"Search '{query}': {len(rows)} row(s) → {len(results)} group(s)")
        return results[:limit]

    # ------------------------------------------------------------------ #
    # Handle → brand
    # ------------------------------------------------------------------ #

    async def suggest_from_handle(self, partial_handle: str) -> List[SearchResult]:
        """
        Suggest brands/people from a partially typed handle.

        Example:
            "@elonm" → [SearchResult(canonical_name="Elon Musk", ...)]
        """
        term, _ = _strip_at(partial_handle)
        if len(term) < MIN_QUERY_LENGTH:
            return []

        rows = await self.store.query_prefix("handle", term, SUGGEST_FETCH_LIMIT)

        # Pull in the same identities' handles on other platforms
        names = list(dict.fromkeys(row.canonical_name for row in rows if row.canonical_name))
        if names:
            related = await self.store.query_equal_any("canonical_name", names, SUGGEST_FETCH_LIMIT)
            seen_ids = {row.id for row in rows}
            rows = rows + [row for row in related if row.id not in seen_ids]

        results = sorted(
            self._group(rows),
            key=lambda r: (r.verified, len(r.platforms)),
            reverse=True
        )
        return results[:MAX_SUGGESTIONS]

    # ------------------------------------------------------------------ #
    # Brand → handles
    # ------------------------------------------------------------------ #

    async def handles_for_brand(self, name: str) -> Dict[Platform, str]:
        """One handle per platform for a brand, verified and most recent rows winning."""
        term = (name or "").strip()
        if not term:
            return {}

        rows = await self.store.query_substring(("canonical_name",), term, BRAND_FETCH_LIMIT)

        # Rows come verified-first: iterate backwards so the best row is written last
        found: Dict[Platform, str] = {}
        for row in reversed(rows):
            found[row.platform] = row.handle

        return {platform: found[platform] for platform in Platform if platform in found}

    # ------------------------------------------------------------------ #
    # Listings
    # ------------------------------------------------------------------ #

    async def popular_handles(self, limit: int = 20) -> List[SearchResult]:
        """Verified first, then most recently seen."""
        rows = await self.store.list_records(limit=limit)
        return [self._single(row) for row in rows]

    async def handles_by_platform(self, platform: Platform, limit: int = 50) -> List[SearchResult]:
        rows = await self.store.list_records(platform=platform, limit=limit)
        return [self._single(row) for row in rows]

    # ------------------------------------------------------------------ #
    # Grouping
    # ------------------------------------------------------------------ #

    def group_key(self, row: DirectoryRecord) -> str:
        if row.canonical_name:
            key = self.normalizer.normalize(row.canonical_name)
            if key:
                return key.lower()

        derived = self.normalizer.normalize(extract_name_from_handle(row.handle))
        if derived:
            return derived.lower()

        return row.handle.lower()

    def _group(self, rows: Iterable[DirectoryRecord]) -> List[SearchResult]:
        groups: Dict[str, SearchResult] = {}

        for row in rows:
            key = self.group_key(row)
            result = groups.get(key)
            if result is None:
                groups[key] = self._single(row)
                continue

            if result.canonical_name is None:
                result.canonical_name = row.canonical_name
            result.verified = result.verified or row.verified

            if row.platform not in result.platforms:
                result.platforms.append(row.platform)
                result.handles_by_platform[row.platform] = row.handle
                result.profile_urls[row.platform] = handle_url(row.handle, row.platform)
                result.usage_count += 1

        return list(groups.values())

    @staticmethod
    def _single(row: DirectoryRecord) -> SearchResult:
        return SearchResult(
            representative_record_id=row.id,
            canonical_name=row.canonical_name,
            verified=row.verified,
            usage_count=1,
            platforms=[row.platform],
            handles_by_platform={row.platform: row.handle},
            profile_urls={row.platform: handle_url(row.handle, row.platform)},
        )
