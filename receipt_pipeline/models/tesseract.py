"""Tesseract OCR engine wrapper."""

import asyncio
import io
from typing import Optional

import pytesseract
import structlog
from PIL import Image, UnidentifiedImageError

from .base import BaseRecognitionEngine, EngineOutput, RecognitionError

logger = structlog.get_logger()

# LSTM engine, single uniform block of text (receipts)
DEFAULT_TESSERACT_CONFIG = "--oem 3 --psm 6"


def configure_tesseract(tesseract_cmd: Optional[str]) -> None:
    """
    Point pytesseract at a tesseract binary.

    pytesseract keeps one binary path for the whole process, so this is
    set once from settings rather than per engine. None keeps the binary
    found on PATH.
    """
    if not tesseract_cmd or pytesseract.pytesseract.tesseract_cmd == tesseract_cmd:
        return

    pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
    logger.info("Tesseract binary configured", tesseract_cmd=tesseract_cmd)


class TesseractEngine(BaseRecognitionEngine):
    """On-device OCR using the tesseract binary through pytesseract."""

    def __init__(
        self,
        config: str = DEFAULT_TESSERACT_CONFIG,
    ):
        """
        Initialize the Tesseract engine.

        The binary location is process-wide; see configure_tesseract().

        Args:
            config: Extra tesseract command line options
        """
        self._config = config
        self._language: Optional[str] = None
        self._is_loaded = False

    @property
    def engine_name(self) -> str:
        return "tesseract"

    @property
    def is_loaded(self) -> bool:
        return self._is_loaded

    async def load_language(self, language: str) -> None:
        """Check that tesseract has traineddata for `language`."""
        try:
            available = await asyncio.to_thread(pytesseract.get_languages, config="")
        except (pytesseract.TesseractNotFoundError, pytesseract.TesseractError) as e:
            raise RecognitionError(f"Failed to list Tesseract languages: {e}") from e

        # "eng+fra" selects several languages
        missing = [lang for lang in language.split("+") if lang not in available]
        if missing:
            raise RecognitionError(f"Tesseract language data not installed: {', '.join(missing)}")

        self._language = language

    async def initialize(self, language: str) -> None:
        """Verify the tesseract binary runs."""
        if self._is_loaded:
            return

        if self._language is None:
            await self.load_language(language)

        try:
            version = await asyncio.to_thread(pytesseract.get_tesseract_version)
        except (pytesseract.TesseractNotFoundError, pytesseract.TesseractError) as e:
            logger.error("Tesseract binary not available", error=str(e))
            raise RecognitionError(f"Failed to initialize Tesseract: {e}") from e

        self._is_loaded = True
        logger.info("Tesseract engine initialized", version=str(version), language=self._language)

    async def recognize(self, image: bytes) -> EngineOutput:
        """Recognize text in an encoded image."""
        if not self._is_loaded:
            raise RecognitionError("Tesseract engine is not initialized")

        return await asyncio.to_thread(self._recognize_sync, image)

    async def terminate(self) -> None:
        self._is_loaded = False
        self._language = None

    def _recognize_sync(self, image: bytes) -> EngineOutput:
        try:
            pil_image = Image.open(io.BytesIO(image))
            # Convert to RGB if necessary
            if pil_image.mode != "RGB":
                pil_image = pil_image.convert("RGB")
        except (UnidentifiedImageError, OSError) as e:
            raise RecognitionError(f"Invalid image file: {e}") from e

        try:
            text = pytesseract.image_to_string(
                pil_image, lang=self._language, config=self._config
            )
            data = pytesseract.image_to_data(
                pil_image,
                lang=self._language,
                config=self._config,
                output_type=pytesseract.Output.DICT,
            )
        except pytesseract.TesseractError as e:
            raise RecognitionError(f"Tesseract recognition failed: {e}") from e

        # Words tesseract could not score report -1
        word_confidences = [float(c) for c in data.get("conf", []) if float(c) >= 0]
        confidence = (
            sum(word_confidences) / len(word_confidences) if word_confidences else 0.0
        )

        logger.info(
            "Tesseract recognition complete",
            image_size=pil_image.size,
            characters=len(text),
            confidence=round(confidence, 1),
        )
        return EngineOutput(text=text, confidence=confidence)
