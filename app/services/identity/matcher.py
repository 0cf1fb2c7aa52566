"""
Brand Matching Utilities
Name normalization and similarity scoring for brand/person identities
"""
import re
from types import MappingProxyType
from typing import Mapping, Optional


# Known spellings of well-known entities → the single canonical spelling
DEFAULT_ALIASES: Mapping[str, str] = MappingProxyType({
    # Tech companies
    "apple inc": "Apple",
    "apple computer": "Apple",
    "apple inc.": "Apple",
    "microsoft corp": "Microsoft",
    "microsoft corporation": "Microsoft",
    "meta platforms": "Meta",
    "facebook inc": "Meta",
    "alphabet inc": "Google",
    "google llc": "Google",

    # People
    "elon musk": "Elon Musk",
    "elon r musk": "Elon Musk",
    "elon reeve musk": "Elon Musk",
    "musk elon": "Elon Musk",
    "jeff bezos": "Jeff Bezos",
    "jeffrey bezos": "Jeff Bezos",
    "bill gates": "Bill Gates",
    "william gates": "Bill Gates",
    "mark zuckerberg": "Mark Zuckerberg",
    "mark elliot zuckerberg": "Mark Zuckerberg",

    # Consumer brands
    "nike inc": "Nike",
    "nike inc.": "Nike",
    "the coca cola company": "Coca-Cola",
    "coca cola": "Coca-Cola",
    "coca-cola company": "Coca-Cola",
    "mcdonalds": "McDonald's",
    "mcdonald's corporation": "McDonald's",
    "starbucks corporation": "Starbucks",
    "starbucks coffee": "Starbucks",
})

_LEGAL_SUFFIXES = re.compile(r"\b(?:inc|llc|corp|corporation|company|co|ltd|limited)\b")
_ARTICLE = re.compile(r"\bthe\b")
_PUNCT = re.compile(r"[^\w\s]|_")
_MULTI_SPACE = re.compile(r"\s+")

_HANDLE_SUFFIXES = re.compile(r"(?:official|hq|corp|company|inc)$", re.IGNORECASE)
_TRAILING_DIGITS = re.compile(r"[0-9]+$")
_CAMEL_BOUNDARY = re.compile(r"([a-z])([A-Z])")
_HANDLE_SEPARATORS = re.compile(r"[._\-]+")


def _capitalize(word: str) -> str:
    head = word[:1].upper()
    # "ß".upper() == "SS" would not survive a second pass
    if len(head) != 1:
        head = word[:1]
    return head + word[1:]


class BrandNormalizer:
    """
    Canonicalizes free-text brand/person names into a comparable form.

    Steps:
      1. Case-insensitive alias lookup (short-circuits on hit)
      2. Strip punctuation (underscores included), collapse whitespace
      3. Strip legal suffixes (Inc, LLC, Corp, Co, Ltd...) and "the"
      4. Title-case each word

    Canonical alias spellings map to themselves and the cleaned form is
    looked up again, so normalize(normalize(x)) == normalize(x).

    Args:
        aliases: Variant → canonical spelling table (defaults to DEFAULT_ALIASES)
    """

    def __init__(self, aliases: Mapping[str, str] = DEFAULT_ALIASES):
        table = {variant.strip().lower(): canonical for variant, canonical in aliases.items()}
        for canonical in aliases.values():
            table.setdefault(canonical.lower(), canonical)
        self._aliases: Mapping[str, str] = MappingProxyType(table)

    @property
    def aliases(self) -> Mapping[str, str]:
        return self._aliases

    def normalize(self, name: Optional[str]) -> str:
        """
        Return the canonical spelling of a name.

        Examples:
            "Apple Inc." → "Apple"
            "APPLE, INC" → "Apple"
            "the  walt disney company" → "Walt Disney"
            "   " → ""
        """
        if not name or not name.strip():
            return ""

        lowered = name.strip().lower()
        if lowered in self._aliases:
            return self._aliases[lowered]

        # Punctuation first so "acme_corp" and "the_beatles" expose their suffix/article words
        cleaned = _PUNCT.sub(" ", lowered)
        cleaned = _MULTI_SPACE.sub(" ", cleaned)
        cleaned = _LEGAL_SUFFIXES.sub(" ", cleaned)
        cleaned = _ARTICLE.sub(" ", cleaned)
        cleaned = _MULTI_SPACE.sub(" ", cleaned).strip()

        if cleaned in self._aliases:
            return self._aliases[cleaned]

        return " ".join(_capitalize(word) for word in cleaned.split(" ") if word)


default_normalizer = BrandNormalizer()


def normalize_brand_name(name: Optional[str], normalizer: BrandNormalizer = default_normalizer) -> str:
    """Normalize with the process-wide alias table."""
    return normalizer.normalize(name)


def extract_name_from_handle(handle: Optional[str]) -> Optional[str]:
    """
    Derive a display name from a social handle.

    Examples:
        @NikeOfficial → Nike
        elon_musk → Elon Musk
        TeslaMotors2024 → Tesla Motors
        @hq → None

    Args:
        handle: Handle with or without a leading @

    Returns:
        Title-cased name, or None if fewer than 2 characters remain
    """
    if not handle:
        return None

    cleaned = re.sub(r"^@", "", handle.strip())
    cleaned = _HANDLE_SUFFIXES.sub("", cleaned)
    cleaned = _TRAILING_DIGITS.sub("", cleaned)

    # Split camelCase and snake_case into words
    cleaned = _CAMEL_BOUNDARY.sub(r"\1 \2", cleaned)
    cleaned = _HANDLE_SEPARATORS.sub(" ", cleaned)
    cleaned = _MULTI_SPACE.sub(" ", cleaned).strip()

    if len(cleaned) < 2:
        return None

    return " ".join(word[:1].upper() + word[1:].lower() for word in cleaned.split(" "))


def calculate_levenshtein_distance(s1: str, s2: str) -> int:
    """
    Calculate Levenshtein (edit) distance between two strings.

    Args:
        s1: First string
        s2: Second string

    Returns:
        Edit distance (number of edits needed to transform s1 to s2)
    """
    if len(s1) < len(s2):
        return calculate_levenshtein_distance(s2, s1)

    if len(s2) == 0:
        return len(s1)

    previous_row = range(len(s2) + 1)
    for i, c1 in enumerate(s1):
        current_row = [i + 1]
        for j, c2 in enumerate(s2):
            # Cost of insertion, deletion, substitution
            insertions = previous_row[j + 1] + 1
            deletions = current_row[j] + 1
            substitutions = previous_row[j] + (c1 != c2)
            current_row.append(min(insertions, deletions, substitutions))
        previous_row = current_row

    return previous_row[-1]


def calculate_name_similarity(
    name1: Optional[str],
    name2: Optional[str],
    normalizer: BrandNormalizer = default_normalizer
) -> float:
    """
    Calculate similarity between two brand/person names.

    Both names are normalized first. Three independent scores are computed
    and the highest wins, so one strong signal is enough:
    - Edit distance: 1 - levenshtein / longer length
    - Word-set Jaccard ("Motors Tesla" vs "Tesla Motors" = 1.0)
    - Containment: 0.8 when one name contains the other ("Apple" in "Apple Computer")

    Args:
        name1: First name
        name2: Second name
        normalizer: Normalizer (and alias table) to compare with

    Returns:
        Similarity score 0.0-1.0 (1.0 = identical after normalization)
    """
    if not name1 or not name2:
        return 0.0

    norm1 = normalizer.normalize(name1).lower()
    norm2 = normalizer.normalize(name2).lower()

    # Exact match
    if norm1 == norm2:
        return 1.0

    longest = max(len(norm1), len(norm2))
    edit_similarity = 1 - calculate_levenshtein_distance(norm1, norm2) / longest

    words1 = set(norm1.split())
    words2 = set(norm2.split())
    union = words1 | words2
    jaccard_similarity = len(words1 & words2) / len(union) if union else 0.0

    contains_similarity = 0.0
    if norm1 and norm2 and (norm1 in norm2 or norm2 in norm1):
        contains_similarity = 0.8

    return max(edit_similarity, jaccard_similarity, contains_similarity)
