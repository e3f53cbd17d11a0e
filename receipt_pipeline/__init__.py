"""Receipt OCR extraction and fuzzy inventory matching pipeline."""

__version__ = "0.1.0"

from .extraction.receipt import parse_receipt, parse_receipt_text
from .matching.matcher import MATCH_CONSTANTS, find_best_match
from .matching.normalize import normalize
from .ocr.orchestrator import OCROrchestrator, recognize_product, run_ocr

__all__ = [
    "MATCH_CONSTANTS",
    "OCROrchestrator",
    "find_best_match",
    "normalize",
    "parse_receipt",
    "parse_receipt_text",
    "recognize_product",
    "run_ocr",
]
