"""
Platform Pattern Library
Ordered per-platform recognizers for URLs, @handles and phone numbers

Each platform owns an ordered tuple of recognizers and a fixed confidence
tier. Detection walks platforms in priority order and, inside a platform,
recognizers in declaration order; the first hit wins.

AMBIGUITY POLICY:
A bare "@name" is accepted by Instagram, Twitter/X, TikTok, Telegram and
Threads alike. The platform that comes first in the priority list claims
it at that platform's confidence, even though the true platform cannot be
known from the text. Change the priority (PLATFORM_PRIORITY setting) to
change who wins; URLs are unambiguous and unaffected.
"""
import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Mapping, NamedTuple, Optional, Sequence, Tuple

from app.models.schemas.handles import Confidence, Platform


@dataclass(frozen=True)
class Recognizer:
    """A single pattern plus how to pull the bare handle out of its match."""
    pattern: re.Pattern
    extract: Callable[[re.Match], str]


@dataclass(frozen=True)
class PlatformPatterns:
    """All recognizers for one platform, tried in order."""
    platform: Platform
    recognizers: Tuple[Recognizer, ...]
    confidence: Confidence


class PatternMatch(NamedTuple):
    platform: Platform
    handle: str
    confidence: Confidence


def _group(match: re.Match) -> str:
    return match.group(1)


def _discord_tag(match: re.Match) -> str:
    return f"{match.group(1)}#{match.group(2)}"


def _digits(match: re.Match) -> str:
    return re.sub(r"[^0-9]", "", match.group(0))


def _url(expression: str, extract: Callable[[re.Match], str] = _group) -> Recognizer:
    # the lookbehind keeps "netflix.com/x" from reading as x.com
    return Recognizer(re.compile(r"(?:https?://)?(?<![\w.-])" + expression, re.IGNORECASE), extract)


def _at_handle(charset: str) -> Recognizer:
    return Recognizer(re.compile(rf"(?:^|\s)@([{charset}]+)(?:\s|$)", re.IGNORECASE), _group)


DEFAULT_PATTERNS: Tuple[PlatformPatterns, ...] = (
    PlatformPatterns(
        Platform.INSTAGRAM,
        (
            _url(r"(?:www\.)?instagram\.com/([a-zA-Z0-9._]+)/?"),
            _at_handle("a-zA-Z0-9._"),
        ),
        Confidence.HIGH,
    ),
    PlatformPatterns(
        Platform.TWITTER_X,
        (
            _url(r"(?:www\.)?(?:twitter\.com|x\.com)/([a-zA-Z0-9_]+)/?"),
            _at_handle("a-zA-Z0-9_"),
        ),
        Confidence.HIGH,
    ),
    PlatformPatterns(
        Platform.LINKEDIN,
        (
            _url(r"(?:www\.)?linkedin\.com/company/([a-zA-Z0-9-]+)/?"),
            _url(r"(?:www\.)?linkedin\.com/in/([a-zA-Z0-9-]+)/?"),
            _url(r"(?:www\.)?linkedin\.com/school/([a-zA-Z0-9-]+)/?"),
        ),
        Confidence.HIGH,
    ),
    PlatformPatterns(
        Platform.TIKTOK,
        (
            _url(r"(?:www\.)?tiktok\.com/@([a-zA-Z0-9._]+)/?"),
            _at_handle("a-zA-Z0-9._"),
        ),
        Confidence.HIGH,
    ),
    PlatformPatterns(
        Platform.YOUTUBE,
        (
            _url(r"(?:www\.)?youtube\.com/channel/([a-zA-Z0-9_-]+)/?"),
            _url(r"(?:www\.)?youtube\.com/c/([a-zA-Z0-9_-]+)/?"),
            _url(r"(?:www\.)?youtube\.com/user/([a-zA-Z0-9_-]+)/?"),
            _url(r"(?:www\.)?youtube\.com/@([a-zA-Z0-9_-]+)/?"),
        ),
        Confidence.HIGH,
    ),
    PlatformPatterns(
        Platform.REDDIT,
        (
            _url(r"(?:www\.)?reddit\.com/u/([a-zA-Z0-9_-]+)/?"),
            _url(r"(?:www\.)?reddit\.com/user/([a-zA-Z0-9_-]+)/?"),
            Recognizer(re.compile(r"(?:^|\s)u/([a-zA-Z0-9_-]+)(?:\s|$)", re.IGNORECASE), _group),
        ),
        Confidence.HIGH,
    ),
    PlatformPatterns(
        Platform.TELEGRAM,
        (
            _url(r"t\.me/([a-zA-Z0-9_]+)/?"),
            _at_handle("a-zA-Z0-9_"),
        ),
        Confidence.HIGH,
    ),
    PlatformPatterns(
        Platform.THREADS,
        (
            _url(r"(?:www\.)?threads\.net/@([a-zA-Z0-9._]+)/?"),
            _at_handle("a-zA-Z0-9._"),
        ),
        Confidence.HIGH,
    ),
    PlatformPatterns(
        Platform.WHATSAPP_BUSINESS,
        (
            _url(r"wa\.me/([0-9]+)/?"),
            _url(r"api\.whatsapp\.com/send\?phone=([0-9]+)"),
            Recognizer(
                re.compile(r"(?:\+?[0-9]{1,4}[-.\s]?)?(?:[0-9]{3,4}[-.\s]?[0-9]{3,4}[-.\s]?[0-9]{3,4})"),
                _digits,
            ),
        ),
        Confidence.MEDIUM,
    ),
    PlatformPatterns(
        Platform.DISCORD,
        # username#1234 cannot be checked for server-wide uniqueness from text
        (Recognizer(re.compile(r"([a-zA-Z0-9._]+)#([0-9]{4})"), _discord_tag),),
        Confidence.LOW,
    ),
)

DEFAULT_PRIORITY: Tuple[Platform, ...] = tuple(p.platform for p in DEFAULT_PATTERNS)

# Free-text platform names seen in the first column of imported tables
PLATFORM_LABELS: Mapping[str, Platform] = MappingProxyType({
    "instagram": Platform.INSTAGRAM,
    "insta": Platform.INSTAGRAM,
    "ig": Platform.INSTAGRAM,
    "twitterx": Platform.TWITTER_X,
    "twitter": Platform.TWITTER_X,
    "x": Platform.TWITTER_X,
    "linkedin": Platform.LINKEDIN,
    "tiktok": Platform.TIKTOK,
    "youtube": Platform.YOUTUBE,
    "yt": Platform.YOUTUBE,
    "reddit": Platform.REDDIT,
    "telegram": Platform.TELEGRAM,
    "tg": Platform.TELEGRAM,
    "threads": Platform.THREADS,
    "whatsappbusiness": Platform.WHATSAPP_BUSINESS,
    "whatsapp": Platform.WHATSAPP_BUSINESS,
    "wa": Platform.WHATSAPP_BUSINESS,
    "discord": Platform.DISCORD,
})


class PatternLibrary:
    """
    Read-only platform detector.

    Args:
        patterns: Recognizer table (defaults to DEFAULT_PATTERNS)
        priority: Explicit platform order; platforms left out are never detected
    """

    def __init__(
        self,
        patterns: Sequence[PlatformPatterns] = DEFAULT_PATTERNS,
        priority: Optional[Sequence[Platform]] = None,
        labels: Mapping[str, Platform] = PLATFORM_LABELS,
    ):
        by_platform = {p.platform: p for p in patterns}
        order = tuple(priority) if priority else tuple(p.platform for p in patterns)

        unknown = [p for p in order if p not in by_platform]
        if unknown:
            raise ValueError(f"No patterns declared for platforms: {unknown}")
        if len(set(order)) != len(order):
            raise ValueError(f"Duplicate platforms in priority list: {list(order)}")

        self._ordered: Tuple[PlatformPatterns, ...] = tuple(by_platform[p] for p in order)
        self._by_platform: Mapping[Platform, PlatformPatterns] = MappingProxyType(by_platform)
        self._labels = labels

    @property
    def priority(self) -> Tuple[Platform, ...]:
        return tuple(p.platform for p in self._ordered)

    def match(self, text: str) -> Optional[PatternMatch]:
        """Return the first platform (by priority) that recognizes the text, with its handle."""
        for entry in self._ordered:
            handle = self._extract(entry, text)
            if handle:
                return PatternMatch(entry.platform, handle, entry.confidence)
        return None

    def detect(self, text: str) -> Optional[Tuple[Platform, Confidence]]:
        found = self.match(text)
        if found is None:
            return None
        return found.platform, found.confidence

    def detect_platform(self, text: str) -> Optional[Platform]:
        found = self.match(text)
        return found.platform if found else None

    def extract_for(self, platform: Platform, text: str) -> Optional[str]:
        """Extract a handle assuming the platform is already known (explicit table rows)."""
        entry = self._by_platform.get(platform)
        if entry is None:
            return None
        return self._extract(entry, text)

    def platform_from_label(self, label: str) -> Optional[Platform]:
        """Map a free-text platform name ("Twitter", "twitter_x", "IG") to a Platform."""
        # Exact labels only: "Threadsmith Co" must stay a brand name
        key = re.sub(r"[\s_\-/]", "", label.lower())
        return self._labels.get(key)

    @staticmethod
    def _extract(entry: PlatformPatterns, text: str) -> Optional[str]:
        for recognizer in entry.recognizers:
            found = recognizer.pattern.search(text)
            if found:
                handle = recognizer.extract(found)
                if handle:
                    return handle
        return None


default_library = PatternLibrary()
