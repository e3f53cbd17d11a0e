"""On-device OCR adapter."""

import asyncio
from typing import Callable, Optional

import structlog

from ..config import get_settings
from ..extraction.receipt import ImageRef, failed_receipt, recognize_receipt
from ..models.base import BaseRecognitionEngine, terminate_quietly
from ..models.tesseract import TesseractEngine, configure_tesseract
from ..schemas.recognition import OCRSource, ReceiptFields, RecognitionResult
from .base import BaseOCRAdapter

logger = structlog.get_logger()

EngineFactory = Callable[[], BaseRecognitionEngine]


class LocalOCRAdapter(BaseOCRAdapter):
    """
    Local OCR that also extracts receipt fields.

    Owns at most one engine handle, created on first use and released by
    close(). Always returns a result; engine failures are reported in
    `error`.
    """

    def __init__(
        self,
        engine_factory: Optional[EngineFactory] = None,
        language: Optional[str] = None,
        warranty_years: Optional[int] = None,
    ):
        self._engine_factory = engine_factory
        self._language = language
        self._warranty_years = warranty_years
        self._engine: Optional[BaseRecognitionEngine] = None
        self._lock = asyncio.Lock()

    @property
    def source(self) -> OCRSource:
        return OCRSource.LOCAL

    @property
    def has_engine(self) -> bool:
        return self._engine is not None

    def _resolve_settings(self) -> None:
        # Resolved on first engine start, inside recognize() error handling
        if self._engine_factory and self._language and self._warranty_years is not None:
            return

        settings = get_settings()
        if self._engine_factory is None:
            configure_tesseract(settings.tesseract_cmd)
            self._engine_factory = TesseractEngine
        self._language = self._language or settings.ocr_language
        if self._warranty_years is None:
            self._warranty_years = settings.warranty_years

    async def _get_engine(self) -> BaseRecognitionEngine:
        async with self._lock:
            if self._engine is not None:
                return self._engine

            self._resolve_settings()
            engine = self._engine_factory()
            try:
                await engine.load_language(self._language)
                await engine.initialize(self._language)
            except Exception:
                await terminate_quietly(engine)
                raise

            logger.info("Local OCR engine ready", engine=engine.engine_name, language=self._language)
            self._engine = engine
            return engine

    async def recognize(self, image_ref: ImageRef) -> RecognitionResult:
        try:
            engine = await self._get_engine()
        except Exception as e:
            logger.warning("Failed to start local OCR engine", error=str(e))
            fields = failed_receipt(e)
        else:
            fields = await recognize_receipt(engine, image_ref, self._warranty_years)

        return self._to_result(fields)

    async def close(self) -> None:
        async with self._lock:
            engine, self._engine = self._engine, None
        if engine is not None:
            await terminate_quietly(engine)

    @staticmethod
    def _to_result(fields: ReceiptFields) -> RecognitionResult:
        return RecognitionResult(
            text=fields.text,
            dates=fields.dates,
            vendors=[fields.store_name] if fields.store_name else [],
            confidence=fields.confidence,
            source=OCRSource.LOCAL,
            error=fields.error,
            receipt=fields,
        )
