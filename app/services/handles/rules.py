"""
Per-Platform Handle Rules
Storage normalization, validation and profile URLs for each platform

These rules define the stored form of a handle, so they must stay
bit-exact: two submissions collapse onto one row only when their
normalized handles are identical.
"""
import re

from app.models.schemas.handles import Platform


# Platforms whose handles are case-insensitive and may be typed with a leading @
_AT_LOWERCASE = {
    Platform.INSTAGRAM,
    Platform.TWITTER_X,
    Platform.TIKTOK,
    Platform.THREADS,
    Platform.TELEGRAM,
}

_VALIDATORS = {
    Platform.INSTAGRAM: re.compile(r"^[a-zA-Z0-9._]{1,30}$"),
    Platform.TIKTOK: re.compile(r"^[a-zA-Z0-9._]{1,30}$"),
    Platform.THREADS: re.compile(r"^[a-zA-Z0-9._]{1,30}$"),
    Platform.TWITTER_X: re.compile(r"^[a-zA-Z0-9_]{1,15}$"),
    Platform.LINKEDIN: re.compile(r"^[a-zA-Z0-9-]{3,100}$"),
    Platform.REDDIT: re.compile(r"^[a-zA-Z0-9_-]{3,20}$"),
    Platform.TELEGRAM: re.compile(r"^[a-zA-Z0-9_]{5,32}$"),
    Platform.DISCORD: re.compile(r"^[a-zA-Z0-9._]{2,32}#[0-9]{4}$"),
    Platform.WHATSAPP_BUSINESS: re.compile(r"^[0-9]{8,15}$"),
}

_URL_TEMPLATES = {
    Platform.INSTAGRAM: "https://instagram.com/{}",
    Platform.TWITTER_X: "https://x.com/{}",
    Platform.LINKEDIN: "https://linkedin.com/company/{}",
    Platform.TIKTOK: "https://tiktok.com/@{}",
    Platform.YOUTUBE: "https://youtube.com/@{}",
    Platform.REDDIT: "https://reddit.com/u/{}",
    Platform.TELEGRAM: "https://t.me/{}",
    Platform.THREADS: "https://threads.net/@{}",
    Platform.WHATSAPP_BUSINESS: "https://wa.me/{}",
}

_NON_DIGITS = re.compile(r"[^0-9]")


def normalize_handle(handle: str, platform: Platform) -> str:
    """
    Return the stored form of a handle.

    Examples:
        ("@Nike", instagram) → "nike"
        ("u/Spez", reddit) → "spez"
        ("+1 (555) 123-4567", whatsapp_business) → "15551234567"
        ("MrBeast", youtube) → "MrBeast"
    """
    handle = handle.strip()

    if platform in _AT_LOWERCASE:
        return re.sub(r"^@", "", handle).lower()
    if platform == Platform.LINKEDIN:
        return handle.lower()
    if platform == Platform.REDDIT:
        return re.sub(r"^u/", "", handle).lower()
    if platform == Platform.WHATSAPP_BUSINESS:
        return _NON_DIGITS.sub("", handle)
    # youtube and discord keep their original casing
    return handle


def validate_handle(handle: str, platform: Platform) -> bool:
    """Check a handle against the platform's length bounds and character set."""
    normalized = normalize_handle(handle, platform)

    if platform == Platform.YOUTUBE:
        return 3 <= len(normalized) <= 100

    validator = _VALIDATORS.get(platform)
    if validator is None:
        return len(normalized) > 0
    return bool(validator.fullmatch(normalized))


def display_handle(handle: str, platform: Platform) -> str:
    """
    Handle with its typing prefix removed but casing kept.

    Used to derive a name from the handle: camelCase boundaries are lost
    once the stored form is lowercased.
    """
    handle = handle.strip()
    if platform == Platform.REDDIT:
        return re.sub(r"^u/", "", handle)
    if platform == Platform.WHATSAPP_BUSINESS:
        return _NON_DIGITS.sub("", handle)
    return re.sub(r"^@", "", handle)


def handle_url(handle: str, platform: Platform) -> str:
    """Public profile URL for a handle (Discord users have none, the handle is returned)."""
    template = _URL_TEMPLATES.get(platform)
    if template is None:
        return handle
    return template.format(normalize_handle(handle, platform))
