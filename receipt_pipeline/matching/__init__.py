# Fuzzy product matching
from .distance import (
    DynamicProgrammingDistance,
    EditDistanceEngine,
    RapidFuzzDistance,
    discover_engine,
    levenshtein,
)
from .matcher import MATCH_CONSTANTS, find_best_match, score_candidate, select_best_match
from .normalize import normalize

__all__ = [
    "DynamicProgrammingDistance",
    "EditDistanceEngine",
    "MATCH_CONSTANTS",
    "RapidFuzzDistance",
    "discover_engine",
    "find_best_match",
    "levenshtein",
    "normalize",
    "score_candidate",
    "select_best_match",
]
