"""Title normalization, keyword/date/number extraction, resolution-date parsing."""

from __future__ import annotations

import re
from datetime import datetime, timedelta
from typing import Callable

from crossarb.models.event import as_utc

STOP_WORDS = frozenset(
    {"will", "be", "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by"}
)

_MONTH = r"(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*"

DATE_PATTERNS = (
    re.compile(r"\b\d{1,2}[/-]\d{1,2}[/-]\d{2,4}\b"),
    re.compile(rf"\b{_MONTH}\s+\d{{1,2}},?\s+\d{{4}}\b"),
    re.compile(r"\b\d{4}\b"),
    re.compile(r"\b\d{4}-\d{2}-\d{2}\b"),
    re.compile(rf"\b\d{{1,2}}\s+{_MONTH}\s+\d{{4}}\b"),
)

NUMBER_PATTERNS = (
    re.compile(r"\$[\d,]+(?:\.\d+)?"),
    re.compile(r"\d+%"),
    re.compile(r"\b\d{1,3}(?:,\d{3})*(?:\.\d+)?\b"),
)

_NON_ALNUM = re.compile(r"[^\w\s]|_")


def normalize_text(text: str) -> str:
    """Lowercase, drop everything but letters/digits/whitespace, collapse whitespace."""
    return " ".join(_NON_ALNUM.sub("", text.lower()).split())


def extract_keywords(text: str) -> set[str]:
    return {w for w in normalize_text(text).split() if len(w) > 2 and w not in STOP_WORDS}


def _find_all(patterns: tuple[re.Pattern[str], ...], text: str) -> list[str]:
    found: list[str] = []
    for pattern in patterns:
        found.extend(m.group(0) for m in pattern.finditer(text))
    return found


def extract_dates(text: str) -> list[str]:
    """Date-like substrings (D/M/YYYY, Mon DD YYYY, DD Mon YYYY, ISO, bare year)."""
    return _find_all(DATE_PATTERNS, text)


def extract_numbers(text: str) -> list[str]:
    """Currency amounts, percentages and grouped thousands."""
    return _find_all(NUMBER_PATTERNS, text)


def jaccard(a: set[str], b: set[str]) -> float:
    if not a or not b:
        return 0.0
    return len(a & b) / len(a | b)


def overlaps(a: list[str], b: list[str]) -> bool:
    return bool(a) and bool(b) and not set(a).isdisjoint(b)


def dates_within(
    a: datetime | None,
    b: datetime | None,
    tolerance: timedelta = timedelta(hours=24),
) -> bool:
    """Both timestamps present and no more than tolerance apart."""
    if a is None or b is None:
        return False
    return abs(as_utc(a) - as_utc(b)) <= tolerance


# Resolution-date parsing: ordered strategies, first success wins.

def _iso(text: str) -> datetime:
    return datetime.fromisoformat(text.replace("Z", "+00:00"))


def _strptime(fmt: str) -> Callable[[str], datetime]:
    def parse(text: str) -> datetime:
        return datetime.strptime(text, fmt)

    parse.__name__ = f"strptime({fmt})"
    return parse


DATE_PARSERS: tuple[Callable[[str], datetime], ...] = (
    _iso,
    _strptime("%Y-%m-%d %H:%M:%S"),
    _strptime("%Y-%m-%d"),
    _strptime("%m/%d/%Y"),
    _strptime("%d/%m/%Y"),
    _strptime("%B %d, %Y"),
    _strptime("%b %d, %Y"),
)


def parse_resolution_date(text: str | None) -> datetime | None:
    """Parse a venue timestamp string into an aware UTC datetime, or None."""
    if not text:
        return None
    text = text.strip()
    for parser in DATE_PARSERS:
        try:
            return as_utc(parser(text))
        except ValueError:
            continue
    return None
