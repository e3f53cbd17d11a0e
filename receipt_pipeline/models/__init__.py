# Local recognition engine wrappers
from .base import BaseRecognitionEngine, EngineOutput, RecognitionError, terminate_quietly
from .tesseract import TesseractEngine, configure_tesseract

__all__ = [
    "BaseRecognitionEngine",
    "EngineOutput",
    "RecognitionError",
    "TesseractEngine",
    "configure_tesseract",
    "terminate_quietly",
]
