"""
Handle Detection Services
Platform detection, per-platform handle rules and bulk text parsing
"""
from app.services.handles.patterns import (
    PatternLibrary,
    PatternMatch,
    DEFAULT_PRIORITY,
    default_library,
)
from app.services.handles.rules import (
    normalize_handle,
    validate_handle,
    display_handle,
    handle_url,
)
from app.services.handles.parser import (
    HandleParser,
    extract_brand_name,
    parse_lines,
    parse_table,
)

__all__ = [
    "PatternLibrary",
    "PatternMatch",
    "DEFAULT_PRIORITY",
    "default_library",
    "normalize_handle",
    "validate_handle",
    "display_handle",
    "handle_url",
    "HandleParser",
    "extract_brand_name",
    "parse_lines",
    "parse_table",
]
