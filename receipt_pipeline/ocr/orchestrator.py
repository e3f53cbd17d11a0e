"""OCR provider chain: remote first, local as fallback."""

import re
from collections.abc import Sequence
from typing import Optional

import structlog

from ..extraction.patterns import COMMON_BRANDS, MODEL_PATTERN, PRODUCT_KEYWORDS
from ..extraction.receipt import ImageRef
from ..schemas.recognition import OCRSource, ProductRecognition, RecognitionResult
from .base import BaseOCRAdapter
from .local import LocalOCRAdapter
from .remote import GoogleVisionAdapter

logger = structlog.get_logger()

NO_RESULT_ERROR = "No OCR source produced a result"

# Characters either side of a product keyword searched for a model designation
MODEL_CONTEXT_CHARS = 30


class OCROrchestrator:
    """Tries OCR adapters in order until one returns a result."""

    def __init__(self, adapters: Optional[Sequence[BaseOCRAdapter]] = None):
        if adapters is None:
            adapters = [GoogleVisionAdapter(), LocalOCRAdapter()]
        self.adapters: list[BaseOCRAdapter] = list(adapters)

    @property
    def sources(self) -> list[OCRSource]:
        return [adapter.source for adapter in self.adapters]

    async def run(self, image_ref: ImageRef) -> RecognitionResult:
        """Recognize `image_ref` with the first adapter that yields a result. Never raises."""
        last_source = OCRSource.LOCAL
        for adapter in self.adapters:
            last_source = adapter.source
            try:
                result = await adapter.recognize(image_ref)
            except Exception as e:
                logger.warning("OCR source failed, falling back", source=adapter.source.value, error=str(e))
                result = None

            if result is not None:
                logger.info(
                    "OCR complete",
                    source=result.source.value,
                    characters=len(result.text),
                    error=result.error,
                )
                return result

            logger.info("OCR source produced no result", source=adapter.source.value)

        return RecognitionResult(source=last_source, error=NO_RESULT_ERROR)

    async def close(self) -> None:
        for adapter in self.adapters:
            await adapter.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


async def run_remote_ocr(image_ref: ImageRef) -> Optional[RecognitionResult]:
    """Remote OCR only. None when not configured or on failure."""
    return await GoogleVisionAdapter().recognize(image_ref)


async def run_local_ocr(image_ref: ImageRef) -> RecognitionResult:
    """Local OCR only, with a one-shot engine."""
    async with LocalOCRAdapter() as adapter:
        return await adapter.recognize(image_ref)


async def run_ocr(
    image_ref: ImageRef,
    orchestrator: Optional[OCROrchestrator] = None,
) -> RecognitionResult:
    """
    Recognize text in an image, remote first, falling back to local.

    Without an orchestrator a default chain is built for this call and
    closed afterwards.
    """
    if orchestrator is not None:
        return await orchestrator.run(image_ref)

    async with OCROrchestrator() as default_orchestrator:
        return await default_orchestrator.run(image_ref)


def _find_word(needle: str, haystack: str) -> Optional[re.Match]:
    pattern = r"(?<![A-Za-z0-9])" + re.escape(needle) + r"(?![A-Za-z0-9])"
    return re.search(pattern, haystack, re.IGNORECASE)


def identify_product(text: str) -> tuple[Optional[str], Optional[str]]:
    """
    Find a known brand and a product type in free text.

    Returns (brand, product_name). A single-word product type is extended
    with a nearby model designation such as "KSM150" or "Series 5".
    """
    brand = next((b for b in COMMON_BRANDS if _find_word(b, text)), None)

    product_name = None
    for keyword in PRODUCT_KEYWORDS:
        match = _find_word(keyword, text)
        if match is None:
            continue

        product_name = keyword
        if " " not in keyword:
            start = max(0, match.start() - MODEL_CONTEXT_CHARS)
            end = min(len(text), match.end() + MODEL_CONTEXT_CHARS)
            model = MODEL_PATTERN.search(text[start:end])
            if model:
                product_name = f"{keyword} {model.group(0)}"
        break

    return brand, product_name


async def recognize_product(
    image_ref: ImageRef,
    orchestrator: Optional[OCROrchestrator] = None,
) -> ProductRecognition:
    """Recognize the brand and product type shown in a product photo. Never raises."""
    try:
        result = await run_ocr(image_ref, orchestrator)
        brand, product_name = identify_product(result.text)
    except Exception as e:
        logger.error("Product recognition failed", error=str(e))
        return ProductRecognition()

    return ProductRecognition(
        brand=brand,
        product_name=product_name,
        confidence=result.confidence or 0,
        text=result.text,
    )
