"""
Handle Search Query Surface
Validates raw query-string input and dispatches to the search engine

Validation never touches the store: a bad query or limit is rejected with
ValidationError before any search runs.
"""
import re
from typing import Optional, Tuple

from app.models.schemas.handles import HandleSearchResponse, SearchMode
from app.services.directory.errors import ValidationError
from app.services.directory.search import DirectorySearchEngine, MIN_QUERY_LENGTH

DEFAULT_LIMIT = 10
MAX_LIMIT = 100

# ASCII digits only: int() would also take "1_0" and "١٠"
_LIMIT_DIGITS = re.compile(r"[0-9]+")

RESPONSE_TYPES = {
    SearchMode.SEARCH: "search_results",
    SearchMode.SUGGEST: "suggestions",
    SearchMode.BRAND: "brand_handles",
}


def validate_query(
    query: Optional[str],
    limit: Optional[str] = None,
    default_limit: int = DEFAULT_LIMIT,
    max_limit: int = MAX_LIMIT
) -> Tuple[str, int]:
    """
    Check query-string input.

    Args:
        query: Raw "q" parameter
        limit: Raw "limit" parameter (string as received, None for default)

    Returns:
        (stripped query, limit)

    Raises:
        ValidationError: Query shorter than 2 characters, or limit not an integer in 1..max_limit
    """
    term = (query or "").strip()
    if len(term) < MIN_QUERY_LENGTH:
        raise ValidationError("q", f"Query must be at least {MIN_QUERY_LENGTH} characters")

    if limit is None or str(limit).strip() == "":
        return term, default_limit

    raw = str(limit).strip()
    if not _LIMIT_DIGITS.fullmatch(raw):
        raise ValidationError("limit", f"Limit must be an integer between 1 and {max_limit}")

    parsed = int(raw)
    if not 1 <= parsed <= max_limit:
        raise ValidationError("limit", f"Limit must be between 1 and {max_limit}")

    return term, parsed


def parse_mode(mode: Optional[str]) -> SearchMode:
    if not mode:
        return SearchMode.SEARCH
    try:
        return SearchMode(mode.strip().lower())
    except ValueError:
        allowed = ", ".join(m.value for m in SearchMode)
        raise ValidationError("mode", f"Mode must be one of: {allowed}")


async def run_handle_search(
    engine: DirectorySearchEngine,
    query: Optional[str],
    limit: Optional[str] = None,
    mode: Optional[str] = None,
    brand: Optional[str] = None,
    default_limit: int = DEFAULT_LIMIT,
    max_limit: int = MAX_LIMIT
) -> HandleSearchResponse:
    """
    Validate, then run one of the three search modes.

    - search: forward search over names and handles
    - suggest: handle prefix → brand suggestions
    - brand: brand → one handle per platform ("brand" param, else the query)
    """
    search_mode = parse_mode(mode)
    term, size = validate_query(query, limit, default_limit, max_limit)

    if search_mode == SearchMode.BRAND:
        results = await engine.handles_for_brand((brand or "").strip() or term)
    elif search_mode == SearchMode.SUGGEST:
        results = await engine.suggest_from_handle(term)
    else:
        results = await engine.search(term, size)

    return HandleSearchResponse(
        query=term,
        type=RESPONSE_TYPES[search_mode],
        results=results,
        count=len(results),
    )
