"""
Brand Identity Service
Normalizes brand/person names and folds spelling variants onto one canonical name
"""
from app.services.identity.resolver import (
    find_candidates,
    suggest_canonical,
    CONFIDENCE_MERGE,
    CONFIDENCE_SUGGEST,
)

from app.services.identity.matcher import (
    BrandNormalizer,
    DEFAULT_ALIASES,
    default_normalizer,
    normalize_brand_name,
    extract_name_from_handle,
    calculate_name_similarity,
    calculate_levenshtein_distance,
)

__all__ = [
    "find_candidates",
    "suggest_canonical",
    "CONFIDENCE_MERGE",
    "CONFIDENCE_SUGGEST",
    "BrandNormalizer",
    "DEFAULT_ALIASES",
    "default_normalizer",
    "normalize_brand_name",
    "extract_name_from_handle",
    "calculate_name_similarity",
    "calculate_levenshtein_distance",
]
