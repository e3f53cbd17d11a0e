# OCR source adapters and fallback chain
from .base import BaseOCRAdapter
from .local import LocalOCRAdapter
from .orchestrator import (
    OCROrchestrator,
    identify_product,
    recognize_product,
    run_local_ocr,
    run_ocr,
    run_remote_ocr,
)
from .remote import GoogleVisionAdapter

__all__ = [
    "BaseOCRAdapter",
    "GoogleVisionAdapter",
    "LocalOCRAdapter",
    "OCROrchestrator",
    "identify_product",
    "recognize_product",
    "run_local_ocr",
    "run_ocr",
    "run_remote_ocr",
]
