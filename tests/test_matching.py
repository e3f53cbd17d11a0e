"""Tests for text normalization, edit distance and product matching."""

import sys
import threading

import pytest

from receipt_pipeline.matching.distance import (
    DynamicProgrammingDistance,
    discover_engine,
    levenshtein,
)
from receipt_pipeline.matching.matcher import (
    MATCH_CONSTANTS,
    MIN_CONFIDENCE_SCORE,
    find_best_match,
    score_candidate,
    select_best_match,
    window_distance,
)
from receipt_pipeline.matching.normalize import normalize
from receipt_pipeline.schemas.recognition import InventoryProduct, MatchMethod

PRODUCTS = [
    {"id": "1", "name": "Refrigerator"},
    {"id": "2", "name": "Washing Machine"},
    {"id": "3", "name": "Toaster Oven"},
]


class TestNormalize:
    """Tests for text canonicalization."""

    def test_case_and_punctuation_insensitive(self):
        """Test case and punctuation do not affect the normalized form."""
        assert normalize("HOME DEPOT!!") == normalize("home depot")
        assert normalize("home depot") == "home depot"

    def test_collapses_whitespace(self):
        """Test whitespace runs collapse to one space."""
        assert normalize("  Stand\t\tMixer \n KSM-150 ") == "stand mixer ksm 150"

    @pytest.mark.parametrize(
        "text",
        ["HOME DEPOT!!", "Crate & Barrel", "  a--b  c ", "Café Déjà", "", "$394.39"],
    )
    def test_idempotent(self, text):
        """Test normalizing twice changes nothing."""
        assert normalize(normalize(text)) == normalize(text)

    def test_none(self):
        """Test None normalizes to an empty string."""
        assert normalize(None) == ""


class BrokenEngine:
    name = "broken"

    def distance(self, a, b):
        raise RuntimeError("native library crashed")


class ThreadRecordingEngine(DynamicProgrammingDistance):
    """DP engine that remembers which threads it ran on."""

    def __init__(self):
        self.thread_ids: set[int] = set()

    def distance(self, a, b):
        self.thread_ids.add(threading.get_ident())
        return super().distance(a, b)


class TestEditDistance:
    """Tests for the edit-distance engines."""

    @pytest.mark.parametrize(
        "a,b,expected",
        [
            ("kitten", "sitting", 3),
            ("flaw", "lawn", 2),
            ("", "abc", 3),
            ("abc", "", 3),
            ("same", "same", 0),
            ("refrigerator", "refirgerator", 2),
        ],
    )
    def test_dynamic_programming(self, a, b, expected):
        """Test known distances with the built-in engine."""
        assert DynamicProgrammingDistance().distance(a, b) == expected
        assert levenshtein(a, b) == expected

    def test_rapidfuzz_agrees_with_fallback(self):
        """Test rapidfuzz and the built-in engine give the same distances."""
        pytest.importorskip("rapidfuzz")
        from receipt_pipeline.matching.distance import RapidFuzzDistance

        fast = RapidFuzzDistance()
        slow = DynamicProgrammingDistance()
        pairs = [("kitten", "sitting"), ("toaster oven", "toaster"), ("ground beef", "grund bef"), ("", "x")]
        for a, b in pairs:
            assert fast.distance(a, b) == slow.distance(a, b)

    def test_discovers_rapidfuzz(self):
        """Test rapidfuzz is preferred when installed."""
        pytest.importorskip("rapidfuzz")
        assert discover_engine().name == "rapidfuzz"

    def test_falls_back_when_rapidfuzz_missing(self, monkeypatch):
        """Test discovery falls back to the built-in engine."""
        monkeypatch.setitem(sys.modules, "rapidfuzz", None)
        monkeypatch.setitem(sys.modules, "rapidfuzz.distance", None)
        assert discover_engine().name == "dynamic-programming"

    def test_runtime_failure_falls_back(self):
        """Test a failing engine falls back for that call."""
        assert levenshtein("kitten", "sitting", BrokenEngine()) == 3


class TestScoreCandidate:
    """Tests for composite scoring."""

    def test_substring_score(self):
        """Test the score of a verbatim name includes the substring bonus."""
        score, method = score_candidate("ground beef", "ground beef purchased today")
        assert method == MatchMethod.SUBSTRING
        expected = 1 * 0.6 + (11 / 27) * 0.2 + 0.4
        assert score == pytest.approx(expected)

    def test_window_score(self):
        """Test the score of a misspelled name found by window distance."""
        score, method = score_candidate("refrigerator", "refirgerator cooling system")
        assert method == MatchMethod.LEVENSHTEIN_WINDOW
        expected = (1 - 2 / 12) * 0.6 + (12 / 27) * 0.2
        assert score == pytest.approx(expected)

    def test_too_distant(self):
        """Test candidates past the distance ceiling are dropped."""
        assert score_candidate("dishwasher", "xyz") is None

    def test_monotonic_in_distance(self):
        """Test more edits always score lower."""
        texts = ["refrigeratox", "refrigeratxx", "refrigeraxxx", "refrigerxxxx"]
        scores = [score_candidate("refrigerator", text)[0] for text in texts]
        assert scores == sorted(scores, reverse=True)
        assert len(set(scores)) == len(scores)

    def test_window_distance_stops_at_exact(self):
        """Test an exact window gives distance zero."""
        assert window_distance("beef", "ground beef") == 0

    def test_window_distance_short_text(self):
        """Test text shorter than the name is compared whole."""
        assert window_distance("toaster", "toast") == 2

    def test_constants(self):
        """Test the published matching constants."""
        assert MATCH_CONSTANTS == {
            "SUBSTRING_WEIGHT": 0.4,
            "MAX_DISTANCE_FOR_MATCH": 6,
            "MIN_CONFIDENCE_SCORE": 0.5,
        }


class TestFindBestMatch:
    """Tests for product matching against the inventory."""

    @pytest.mark.asyncio
    async def test_empty_text(self):
        """Test blank text matches nothing."""
        assert await find_best_match(PRODUCTS, "") is None
        assert await find_best_match(PRODUCTS, "  !!! ") is None
        assert await find_best_match(PRODUCTS, None) is None

    @pytest.mark.asyncio
    async def test_empty_products(self):
        """Test an empty inventory matches nothing."""
        assert await find_best_match([], "Refrigerator") is None

    @pytest.mark.asyncio
    async def test_exact_substring(self):
        """Test a product named verbatim in the text."""
        result = await find_best_match(PRODUCTS, "The Refrigerator unit model XYZ")
        assert result is not None
        assert result.product.name == "Refrigerator"
        assert result.method == MatchMethod.SUBSTRING
        assert result.score >= MIN_CONFIDENCE_SCORE

    @pytest.mark.asyncio
    async def test_ground_beef(self):
        """Test a multi-word product surrounded by punctuation."""
        products = [{"id": "b1", "name": "Ground Beef"}]
        result = await find_best_match(products, "...ground beef purchased today...")
        assert result.method == MatchMethod.SUBSTRING
        assert result.score >= 0.5

    @pytest.mark.asyncio
    async def test_misspelling(self):
        """Test a misspelled product name still matches."""
        result = await find_best_match(PRODUCTS, "Refirgerator cooling system")
        assert result is not None
        assert result.product.name == "Refrigerator"
        assert result.method == MatchMethod.LEVENSHTEIN_WINDOW

    @pytest.mark.asyncio
    async def test_best_of_several(self):
        """Test the highest scoring product wins."""
        result = await find_best_match(PRODUCTS, "I cleaned the washing machine and the toaster")
        assert result.product.name == "Washing Machine"

    @pytest.mark.asyncio
    async def test_unrelated_text(self):
        """Test unrelated text matches nothing."""
        assert await find_best_match(PRODUCTS, "Unrelated Text Without Products") is None

    @pytest.mark.asyncio
    async def test_first_seen_wins_ties(self):
        """Test equal scores keep the first product."""
        products = [{"id": "a", "name": "Kettle"}, {"id": "b", "name": "kettle!"}]
        result = await find_best_match(products, "electric kettle")
        assert result.product.id == "a"

    @pytest.mark.asyncio
    async def test_skips_unusable_products(self):
        """Test products without an id or name are skipped."""
        products = [
            {"id": "1", "name": ""},
            {"id": "2", "name": None},
            {"id": "3"},
            {"name": "Toaster Oven"},
            {"id": "4", "name": "Toaster Oven"},
        ]
        result = await find_best_match(products, "toaster oven")
        assert result.product.id == "4"

    @pytest.mark.asyncio
    async def test_keeps_extra_product_fields(self):
        """Test extra product fields survive matching."""
        products = [{"id": 7, "name": "Toaster Oven", "room": "Kitchen"}]
        result = await find_best_match(products, "new toaster oven")
        assert result.product.model_dump()["room"] == "Kitchen"

    @pytest.mark.asyncio
    async def test_accepts_models(self):
        """Test InventoryProduct models are returned as given."""
        products = [InventoryProduct(id=1, name="Air Fryer")]
        result = await find_best_match(products, "air fryer xl")
        assert result.product is products[0]

    @pytest.mark.asyncio
    async def test_does_not_mutate_products(self):
        """Test the input product records are left untouched."""
        products = [{"id": "1", "name": "Refrigerator"}]
        await find_best_match(products, "refrigerator")
        assert products == [{"id": "1", "name": "Refrigerator"}]

    @pytest.mark.asyncio
    async def test_engine_choice_does_not_change_result(self):
        """Test both edit-distance engines pick the same product."""
        text = "Refirgerator cooling system"
        fallback = await find_best_match(PRODUCTS, text, engine=DynamicProgrammingDistance())
        discovered = await find_best_match(PRODUCTS, text)
        assert fallback.product.id == discovered.product.id
        assert fallback.score == pytest.approx(discovered.score)

    @pytest.mark.asyncio
    async def test_scores_off_the_event_loop(self):
        """Test scoring runs in a worker thread, not on the event loop thread."""
        engine = ThreadRecordingEngine()

        result = await find_best_match(PRODUCTS, "Refirgerator cooling system", engine=engine)

        assert result.product.id == "1"
        assert engine.thread_ids
        assert threading.get_ident() not in engine.thread_ids

    def test_select_best_match_is_synchronous(self):
        """Test the synchronous matcher gives the same answer."""
        result = select_best_match(PRODUCTS, "The Refrigerator unit model XYZ")
        assert result.product.id == "1"
        assert result.method == MatchMethod.SUBSTRING
