"""Base class for on-device text recognition engines."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

import structlog

logger = structlog.get_logger()


class RecognitionError(RuntimeError):
    """Raised when a recognition engine cannot load, initialize or recognize."""


@dataclass
class EngineOutput:
    """Raw output of a recognition engine."""

    text: str
    confidence: float  # 0-100


class BaseRecognitionEngine(ABC):
    """Abstract base class for local OCR engines."""

    @property
    @abstractmethod
    def engine_name(self) -> str:
        """Return the engine name."""
        pass

    @property
    @abstractmethod
    def is_loaded(self) -> bool:
        """Return whether the engine is initialized and ready to recognize."""
        pass

    @abstractmethod
    async def load_language(self, language: str) -> None:
        """Make the language data available to the engine."""
        pass

    @abstractmethod
    async def initialize(self, language: str) -> None:
        """Initialize the engine for the loaded language."""
        pass

    @abstractmethod
    async def recognize(self, image: bytes) -> EngineOutput:
        """
        Recognize text in an encoded image.

        Args:
            image: Raw image file bytes (JPEG, PNG, ...)

        Returns:
            Recognized text and the engine's confidence (0-100)
        """
        pass

    @abstractmethod
    async def terminate(self) -> None:
        """Release any resources held by the engine."""
        pass


async def terminate_quietly(engine: BaseRecognitionEngine) -> None:
    """Terminate `engine`, logging rather than raising on failure."""
    try:
        await engine.terminate()
    except Exception as e:
        logger.warning("Failed to terminate recognition engine", engine=engine.engine_name, error=str(e))
