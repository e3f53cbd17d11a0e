"""Text canonicalization for fuzzy comparison."""

import re
from typing import Optional

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize(text: Optional[str]) -> str:
    """
    Canonicalize text for comparison.

    Lower-cases, replaces anything outside [a-z0-9] and whitespace with a
    space, collapses whitespace runs and trims. Idempotent.
    """
    lowered = (text or "").lower()
    cleaned = _NON_ALNUM.sub(" ", lowered)
    return _WHITESPACE.sub(" ", cleaned).strip()
