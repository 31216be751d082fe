"""Offer/request compatibility scoring."""

from railmatch.matching.config import FACTOR_ORDER, MatchingConfig, get_matching_config, load_matching_config
from railmatch.matching.engine import MatchScore, ScoringReason, score_match

__all__ = [
    "FACTOR_ORDER",
    "MatchScore",
    "MatchingConfig",
    "ScoringReason",
    "get_matching_config",
    "load_matching_config",
    "score_match",
]
