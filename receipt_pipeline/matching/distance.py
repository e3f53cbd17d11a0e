"""Levenshtein edit distance with an optimized provider and a built-in fallback."""

from typing import Optional, Protocol

import structlog

logger = structlog.get_logger()


class EditDistanceEngine(Protocol):
    """Computes the Levenshtein distance between two strings."""

    name: str

    def distance(self, a: str, b: str) -> int:
        ...


class DynamicProgrammingDistance:
    """Classic O(len(a) * len(b)) table computation."""

    name = "dynamic-programming"

    def distance(self, a: str, b: str) -> int:
        m, n = len(a), len(b)
        if m == 0:
            return n
        if n == 0:
            return m

        table = [[0] * (n + 1) for _ in range(m + 1)]
        for i in range(m + 1):
            table[i][0] = i
        for j in range(n + 1):
            table[0][j] = j

        for i in range(1, m + 1):
            for j in range(1, n + 1):
                cost = 0 if a[i - 1] == b[j - 1] else 1
                table[i][j] = min(
                    table[i - 1][j] + 1,
                    table[i][j - 1] + 1,
                    table[i - 1][j - 1] + cost,
                )
        return table[m][n]


class RapidFuzzDistance:
    """Levenshtein distance from rapidfuzz's C++ implementation."""

    name = "rapidfuzz"

    def __init__(self):
        from rapidfuzz.distance import Levenshtein

        self._levenshtein = Levenshtein

    def distance(self, a: str, b: str) -> int:
        return int(self._levenshtein.distance(a, b))


_FALLBACK = DynamicProgrammingDistance()


def discover_engine() -> EditDistanceEngine:
    """Return the fastest available engine, preferring rapidfuzz."""
    try:
        return RapidFuzzDistance()
    except ImportError:
        logger.info("rapidfuzz not available, using built-in edit distance")
        return _FALLBACK


def levenshtein(a: str, b: str, engine: Optional[EditDistanceEngine] = None) -> int:
    """
    Edit distance between `a` and `b`.

    Uses `engine` (or the built-in table when none is given). If the engine
    fails at runtime the built-in table answers instead, so the result never
    depends on which provider is installed.
    """
    if engine is None or engine is _FALLBACK:
        return _FALLBACK.distance(a, b)

    try:
        return engine.distance(a, b)
    except Exception as e:
        logger.warning("Edit distance engine failed, using fallback", engine=engine.name, error=str(e))
        return _FALLBACK.distance(a, b)
