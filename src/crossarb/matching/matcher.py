"""Multi-signal fuzzy matching of events across two venues.

Each candidate pair is scored from five signals:

- text similarity: Jaro-Winkler over normalized titles
- keyword overlap: Jaccard index over title keywords
- date match: resolution timestamps within 24h, or a shared date-like substring
- category match: equal non-empty categories, case-insensitive
- number match: a shared currency/percentage/grouped number in the titles

Every signal is symmetric, so score(a, b) == score(b, a). Matching is an
exhaustive cross product; callers pre-filter by category and timeframe.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog
from rapidfuzz.distance import JaroWinkler

from crossarb.matching.text import (
    dates_within,
    extract_dates,
    extract_keywords,
    extract_numbers,
    jaccard,
    normalize_text,
    overlaps,
)
from crossarb.models import Event

log = structlog.get_logger(__name__)

WEIGHT_TEXT = 0.4
WEIGHT_KEYWORDS = 0.25
WEIGHT_DATE = 0.15
WEIGHT_CATEGORY = 0.1
WEIGHT_NUMBER = 0.1

DEFAULT_SIMILARITY_THRESHOLD = 0.80


@dataclass
class MatchConfidence:
    """Per-signal breakdown of a pair score."""

    text_similarity: float
    date_match: bool
    category_match: bool
    keyword_overlap: float
    number_match: bool
    overall_score: float

    @property
    def is_high_confidence(self) -> bool:
        return self.overall_score >= 0.75

    @property
    def is_medium_confidence(self) -> bool:
        return 0.50 <= self.overall_score < 0.75


def text_similarity(title_a: str, title_b: str) -> float:
    return JaroWinkler.normalized_similarity(normalize_text(title_a), normalize_text(title_b))


def _category_match(a: Event, b: Event) -> bool:
    if not a.category or not b.category:
        return False
    return a.category.lower() == b.category.lower()


def _full_text(event: Event) -> str:
    return f"{event.title} {event.description}"


class EventMatcher:
    """Scores and ranks cross-venue event pairs above a similarity threshold."""

    def __init__(self, similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD) -> None:
        self.similarity_threshold = similarity_threshold

    def score(self, a: Event, b: Event) -> MatchConfidence:
        text = text_similarity(a.title, b.title)
        keywords = jaccard(extract_keywords(a.title), extract_keywords(b.title))
        date_match = dates_within(a.resolution_date, b.resolution_date) or overlaps(
            extract_dates(_full_text(a)), extract_dates(_full_text(b))
        )
        category_match = _category_match(a, b)
        number_match = overlaps(extract_numbers(a.title), extract_numbers(b.title))
        overall = (
            WEIGHT_TEXT * text
            + WEIGHT_KEYWORDS * keywords
            + (WEIGHT_DATE if date_match else 0.0)
            + (WEIGHT_CATEGORY if category_match else 0.0)
            + (WEIGHT_NUMBER if number_match else 0.0)
        )
        return MatchConfidence(
            text_similarity=text,
            date_match=date_match,
            category_match=category_match,
            keyword_overlap=keywords,
            number_match=number_match,
            overall_score=overall,
        )

    def find_matches(
        self, events_a: list[Event], events_b: list[Event]
    ) -> list[tuple[Event, Event, MatchConfidence]]:
        """All pairs scoring >= threshold, best first."""
        matches: list[tuple[Event, Event, MatchConfidence]] = []
        for a in events_a:
            for b in events_b:
                confidence = self.score(a, b)
                if confidence.overall_score >= self.similarity_threshold:
                    matches.append((a, b, confidence))
        matches.sort(key=lambda m: m[2].overall_score, reverse=True)
        log.debug(
            "events_matched",
            candidates=len(events_a) * len(events_b),
            matches=len(matches),
            threshold=self.similarity_threshold,
        )
        return matches

    def find_best_match(
        self, target: Event, candidates: list[Event]
    ) -> tuple[Event, MatchConfidence] | None:
        """Highest-scoring candidate for target, if it clears the threshold."""
        best: tuple[Event, MatchConfidence] | None = None
        best_score = 0.0
        for candidate in candidates:
            confidence = self.score(target, candidate)
            if confidence.overall_score > best_score:
                best_score = confidence.overall_score
                best = (candidate, confidence)
        if best is not None and best_score >= self.similarity_threshold:
            return best
        return None
