"""Fuzzy matching of recognized text against existing inventory products."""

import asyncio
from collections.abc import Iterable, Mapping
from typing import Any, Optional

import structlog
from pydantic import ValidationError

from ..schemas.recognition import InventoryProduct, MatchCandidate, MatchMethod
from .distance import EditDistanceEngine, discover_engine, levenshtein
from .normalize import normalize

logger = structlog.get_logger()

SUBSTRING_WEIGHT = 0.4  # flat bonus when the name appears verbatim
MAX_DISTANCE_FOR_MATCH = 6  # window distance ceiling; worse candidates are dropped
MIN_CONFIDENCE_SCORE = 0.5  # acceptance threshold for the best candidate

SIMILARITY_WEIGHT = 0.6
LENGTH_WEIGHT = 0.2

MATCH_CONSTANTS = {
    "SUBSTRING_WEIGHT": SUBSTRING_WEIGHT,
    "MAX_DISTANCE_FOR_MATCH": MAX_DISTANCE_FOR_MATCH,
    "MIN_CONFIDENCE_SCORE": MIN_CONFIDENCE_SCORE,
}


def window_distance(name: str, text: str, engine: Optional[EditDistanceEngine] = None) -> int:
    """Smallest edit distance between `name` and any same-length slice of `text`."""
    width = len(name)
    best = width
    for start in range(max(0, len(text) - width) + 1):
        d = levenshtein(name, text[start:start + width], engine)
        if d < best:
            best = d
        if best == 0:
            break
    return best


def score_candidate(
    name: str,
    text: str,
    engine: Optional[EditDistanceEngine] = None,
) -> Optional[tuple[float, MatchMethod]]:
    """
    Score one normalized product name against normalized text.

    Returns (score, method), or None when the closest window is more than
    MAX_DISTANCE_FOR_MATCH edits away.
    """
    substring = name in text
    distance = 0
    if not substring:
        distance = window_distance(name, text, engine)
        if distance > MAX_DISTANCE_FOR_MATCH:
            return None

    if substring:
        similarity = 1.0
    else:
        similarity = 1 - distance / max(len(name), distance, 1)
    length_factor = min(len(name) / max(len(text), 1), 1)
    score = (
        similarity * SIMILARITY_WEIGHT
        + length_factor * LENGTH_WEIGHT
        + (SUBSTRING_WEIGHT if substring else 0)
    )
    method = MatchMethod.SUBSTRING if substring else MatchMethod.LEVENSHTEIN_WINDOW
    return score, method


def _as_product(product: Any) -> Optional[InventoryProduct]:
    if isinstance(product, InventoryProduct):
        return product
    try:
        if isinstance(product, Mapping):
            return InventoryProduct.model_validate(dict(product))
        return InventoryProduct.model_validate(product, from_attributes=True)
    except ValidationError:
        logger.debug("Skipping malformed product record", product=repr(product)[:100])
        return None


def select_best_match(
    products: Iterable[Any],
    raw_text: Optional[str],
    engine: Optional[EditDistanceEngine] = None,
) -> Optional[MatchCandidate]:
    """
    Find the inventory product that recognized text most likely refers to.

    Candidates are evaluated in order and the first one seen wins ties.
    Returns None when the text is empty or no candidate reaches
    MIN_CONFIDENCE_SCORE.
    """
    text = normalize(raw_text)
    if not text:
        return None

    if engine is None:
        engine = discover_engine()

    best: Optional[MatchCandidate] = None
    for item in products:
        product = _as_product(item)
        if product is None:
            continue

        name = normalize(product.name)
        if not name:
            continue

        scored = score_candidate(name, text, engine)
        if scored is None:
            logger.debug("Candidate too distant", product_id=product.id)
            continue

        score, method = scored
        if best is None or score > best.score:
            best = MatchCandidate(product=product, score=score, method=method)

    if best is not None and best.score >= MIN_CONFIDENCE_SCORE:
        logger.debug(
            "Product matched",
            product_id=best.product.id,
            score=round(best.score, 3),
            method=best.method.value,
        )
        return best
    return None


async def find_best_match(
    products: Iterable[Any],
    raw_text: Optional[str],
    engine: Optional[EditDistanceEngine] = None,
) -> Optional[MatchCandidate]:
    """select_best_match() in a worker thread, keeping the event loop free."""
    return await asyncio.to_thread(select_best_match, products, raw_text, engine)
