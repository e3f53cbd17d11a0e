# Schema definitions for the recognition pipeline
from .recognition import (
    DateMention,
    HealthResponse,
    InventoryProduct,
    MatchCandidate,
    MatchMethod,
    MatchRequest,
    MatchResponse,
    MoneyMention,
    OCRSource,
    ProductRecognition,
    ReceiptFields,
    ReceiptTextRequest,
    RecognitionResult,
)

__all__ = [
    "DateMention",
    "HealthResponse",
    "InventoryProduct",
    "MatchCandidate",
    "MatchMethod",
    "MatchRequest",
    "MatchResponse",
    "MoneyMention",
    "OCRSource",
    "ProductRecognition",
    "ReceiptFields",
    "ReceiptTextRequest",
    "RecognitionResult",
]
