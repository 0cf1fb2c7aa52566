"""
Duplicate Resolver
Folds new brand/person names onto canonical names already on file
"""
import logging
from typing import Dict, Iterable, List, Optional, Tuple

from app.models.schemas.handles import SimilarityMatch
from app.services.identity.matcher import (
    BrandNormalizer,
    calculate_name_similarity,
    default_normalizer,
)

logger = logging.getLogger(__name__)

# Similarity thresholds
CONFIDENCE_EXACT = 1.0
CONFIDENCE_MERGE = 0.8
CONFIDENCE_SUGGEST = 0.6

MAX_SUGGESTIONS = 5


def find_candidates(
    new_name: Optional[str],
    existing_names: Iterable[str],
    threshold: float = CONFIDENCE_MERGE,
    normalizer: BrandNormalizer = default_normalizer
) -> List[SimilarityMatch]:
    """
    Find canonical names on file that a new name should fold into.

    Raw variants of the same entity ("Apple Inc.", "apple inc") collapse
    onto one match keyed by their normalized form; every spelling that
    triggered the match, the new name included, lands in matched_variations.

    Args:
        new_name: Incoming name
        existing_names: Distinct canonical names currently stored
        threshold: Minimum similarity to report (inclusive)
        normalizer: Normalizer used for grouping and scoring

    Returns:
        Matches sorted by descending score
    """
    if not new_name or not new_name.strip():
        return []

    groups: Dict[str, SimilarityMatch] = {}
    for existing in existing_names:
        if not existing:
            continue
        score = calculate_name_similarity(new_name, existing, normalizer)
        if score < threshold:
            continue

        key = normalizer.normalize(existing)
        match = groups.get(key)
        if match is None:
            groups[key] = SimilarityMatch(
                canonical_name=key,
                score=score,
                matched_variations=[new_name, existing],
            )
        else:
            if existing not in match.matched_variations:
                match.matched_variations.append(existing)
            match.score = max(match.score, score)

    matches = sorted(groups.values(), key=lambda m: m.score, reverse=True)
    if matches:
        logger.debug(f"'{new_name}' matched {len(matches)} canonical name(s), best '{matches[0].canonical_name}' ({matches[0].score:.2f})")
    return matches


def suggest_canonical(
    partial_name: Optional[str],
    known_names: Iterable[str],
    limit: int = MAX_SUGGESTIONS,
    threshold: float = CONFIDENCE_SUGGEST,
    normalizer: BrandNormalizer = default_normalizer
) -> List[str]:
    """
    Autocomplete canonical names for a partially typed name.

    Includes names containing the partial text, plus fuzzy matches above
    the threshold once at least 3 characters are typed. Ranked by prefix
    match, then substring match, then similarity.

    Example:
        suggest_canonical("tes", ["Tesla", "Tesco", "Nike"]) → ["Tesla", "Tesco"]
    """
    if not partial_name or not partial_name.strip():
        return []

    partial = partial_name.strip().lower()
    ranked: List[Tuple[bool, bool, float, str]] = []
    seen = set()

    for name in known_names:
        if not name or name in seen:
            continue
        seen.add(name)

        lowered = name.lower()
        contains = partial in lowered
        score = calculate_name_similarity(partial_name, name, normalizer)
        if not contains and not (len(partial) >= 3 and score > threshold):
            continue

        ranked.append((lowered.startswith(partial), contains, score, name))

    ranked.sort(key=lambda r: (r[0], r[1], r[2]), reverse=True)
    return [name for _, _, _, name in ranked[:limit]]
