"""Cross-venue event matching."""

from crossarb.matching.matcher import EventMatcher, MatchConfidence

__all__ = ["EventMatcher", "MatchConfidence"]
