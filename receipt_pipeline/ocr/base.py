"""Base class for OCR source adapters."""

from abc import ABC, abstractmethod
from typing import Optional

from ..extraction.receipt import ImageRef
from ..schemas.recognition import OCRSource, RecognitionResult


class BaseOCRAdapter(ABC):
    """An OCR provider that turns an image reference into a RecognitionResult."""

    @property
    @abstractmethod
    def source(self) -> OCRSource:
        """Return the source tag put on results."""
        pass

    @property
    def is_configured(self) -> bool:
        """Return whether the adapter has what it needs to run."""
        return True

    @abstractmethod
    async def recognize(self, image_ref: ImageRef) -> Optional[RecognitionResult]:
        """
        Recognize text in an image.

        Args:
            image_ref: Local file path or file:// URI

        Returns:
            A RecognitionResult, or None when this source could not produce one
        """
        pass

    async def close(self) -> None:
        """Release resources held by the adapter."""
        pass

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
