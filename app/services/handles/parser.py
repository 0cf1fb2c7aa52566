"""
Handle Parser
Turns pasted text and simple delimited tables into candidate records

Parsing is best-effort: a line that matches no platform produces no
candidate and no exception. Every dropped line is reported in
ParseResult.skipped so callers can show what was ignored and why.
"""
import csv
import logging
import re
from typing import List, Optional

from app.models.schemas.handles import (
    CandidateRecord,
    Confidence,
    ParseResult,
    SkippedLine,
)
from app.services.handles.patterns import PatternLibrary, default_library

logger = logging.getLogger(__name__)

SKIP_NO_MATCH = "no_platform_match"
SKIP_EMPTY_HANDLE = "empty_handle"

# "Name, value" / "Name - value" / "Name | value"
_NAME_SPLIT = re.compile(r"^([^,\-|]+)[,\-|]\s*(.+)$")
_HEADER_TOKEN = re.compile(r"(?<![a-z])(name|platform)(?![a-z])")
_LEADING_NAME_PATTERNS = (
    re.compile(r"^([^,\-|@]+)[,\-|]"),
    re.compile(r"^([^@]+)@"),
    re.compile(r"^(.+?)\s*https?://", re.IGNORECASE),
)


def extract_brand_name(line: str) -> Optional[str]:
    """
    Pull a leading brand/person name out of a pasted line.

    Examples:
        "Nike - @nike" → "Nike"
        "Nike @nike" → "Nike"
        "Nike https://instagram.com/nike" → "Nike"
        "@nike" → None
    """
    for pattern in _LEADING_NAME_PATTERNS:
        match = pattern.match(line.strip())
        if match:
            name = match.group(1).strip()
            if 1 < len(name) < 100 and _looks_like_name(name):
                return name
    return None


def _looks_like_name(text: str) -> bool:
    # URLs, handles and bare phone prefixes ("+1") are not names
    if "/" in text or "@" in text:
        return False
    return any(ch.isalpha() for ch in text)


class HandleParser:
    """
    Line and table parser backed by a PatternLibrary.

    Each line is assigned to at most one platform: the first one in the
    library's priority order that recognizes it.
    """

    def __init__(self, library: PatternLibrary = default_library):
        self.library = library

    # ------------------------------------------------------------------ #
    # Free text
    # ------------------------------------------------------------------ #

    def parse_lines(self, text: str) -> ParseResult:
        """Parse one entry per line, optionally "Name <sep> handle-or-url"."""
        result = ParseResult()
        for line_number, raw in enumerate(text.splitlines(), 1):
            line = raw.strip()
            if not line:
                continue
            self._parse_line(line, line_number, result)

        logger.debug(
            f"Parsed {len(result.candidates)} candidate(s), "
            f"skipped {len(result.skipped)} line(s)"
        )
        return result

    def _parse_line(self, line: str, line_number: int, result: ParseResult) -> None:
        name, handle_text = self._split_name(line)

        found = self.library.match(handle_text)
        if found is None and handle_text != line:
            # The separator may have been part of the value ("linkedin.com/company/acme-co")
            found = self.library.match(line)
            name = extract_brand_name(line) if found else name

        if found is None:
            logger.debug(f"Line {line_number}: no platform match for {line!r}")
            result.skipped.append(SkippedLine(line_number=line_number, text=line, reason=SKIP_NO_MATCH))
            return

        if name is None:
            name = extract_brand_name(line)

        result.candidates.append(CandidateRecord(
            platform=found.platform,
            raw_handle=found.handle,
            original_input_line=line,
            confidence=found.confidence,
            candidate_name=name,
        ))

    @staticmethod
    def _split_name(line: str):
        match = _NAME_SPLIT.match(line)
        if match:
            name = match.group(1).strip()
            if name and _looks_like_name(name):
                return name, match.group(2).strip()
        return None, line

    # ------------------------------------------------------------------ #
    # Delimited tables
    # ------------------------------------------------------------------ #

    def parse_table(self, text: str, delimiter: Optional[str] = None) -> ParseResult:
        """
        Parse a simple delimited table.

        Rows are either "Platform, Handle[, Name]" (explicit platform in the
        first column) or "Name, handle-or-url[, ...]" (platform detected from
        the value). A first row containing "name" or "platform" is a header.
        """
        result = ParseResult()
        lines = [(n, line.strip()) for n, line in enumerate(text.splitlines(), 1) if line.strip()]
        if not lines:
            return result

        delimiter = delimiter or _sniff_delimiter(lines[0][1])

        if _HEADER_TOKEN.search(lines[0][1].lower()):
            logger.debug(f"Skipping header row: {lines[0][1]!r}")
            lines = lines[1:]

        for line_number, line in lines:
            columns = _split_row(line, delimiter)
            if not columns:
                continue
            if len(columns) == 1:
                self._parse_line(columns[0], line_number, result)
                continue

            platform = self.library.platform_from_label(columns[0])
            if platform is not None:
                self._parse_explicit_row(platform, columns, line, line_number, result)
            else:
                # Free-form: name in column 1, handle/URL in the rest
                joined = f"{columns[0]}, {' '.join(c for c in columns[1:] if c)}"
                sub = ParseResult()
                self._parse_line(joined, line_number, sub)
                for candidate in sub.candidates:
                    candidate.original_input_line = line
                result.candidates.extend(sub.candidates)
                result.skipped.extend(
                    SkippedLine(line_number=s.line_number, text=line, reason=s.reason) for s in sub.skipped
                )

        return result

    def _parse_explicit_row(self, platform, columns: List[str], line: str, line_number: int,
                            result: ParseResult) -> None:
        value = columns[1]
        handle = self.library.extract_for(platform, value)
        if handle is None:
            # Bare value with no URL or @ shape: take it as typed
            handle = re.sub(r"\s+", "", value)
        if not handle:
            result.skipped.append(SkippedLine(line_number=line_number, text=line, reason=SKIP_EMPTY_HANDLE))
            return

        name = columns[2] if len(columns) > 2 and columns[2] else None
        result.candidates.append(CandidateRecord(
            platform=platform,
            raw_handle=handle,
            original_input_line=line,
            confidence=Confidence.MEDIUM,
            candidate_name=name,
        ))


def _sniff_delimiter(first_line: str) -> str:
    if "\t" in first_line:
        return "\t"
    if ";" in first_line and "," not in first_line:
        return ";"
    return ","


def _split_row(line: str, delimiter: str) -> List[str]:
    row = next(csv.reader([line], delimiter=delimiter, skipinitialspace=True), [])
    columns = [col.strip().strip("'\"").strip() for col in row]
    # Positions matter (platform, handle, name): only trailing blanks are dropped
    while columns and not columns[-1]:
        columns.pop()
    return columns


default_parser = HandleParser()


def parse_lines(text: str) -> ParseResult:
    return default_parser.parse_lines(text)


def parse_table(text: str) -> ParseResult:
    return default_parser.parse_table(text)
