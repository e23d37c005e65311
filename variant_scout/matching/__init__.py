"""Attribute extraction and match decisions (pure, no I/O)."""

from variant_scout.matching.match_decider import (
    MatchDecision,
    TraceEvent,
    decide_match,
    is_matching_product,
)

__all__ = ["MatchDecision", "TraceEvent", "decide_match", "is_matching_product"]
