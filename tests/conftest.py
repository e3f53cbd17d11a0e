"""Shared fixtures: an in-memory recognition engine and sample receipts."""

from pathlib import Path
from typing import Optional

import pytest

from receipt_pipeline.models.base import BaseRecognitionEngine, EngineOutput, RecognitionError

RECEIPT_TEXT = "HOME DEPOT\n11/12/2025\nKitchenAid Stand Mixer $394.39\nTotal: $394.39"


class FakeEngine(BaseRecognitionEngine):
    """Recognition engine returning canned text, optionally failing at one stage."""

    def __init__(self, text: str = RECEIPT_TEXT, confidence: float = 85.0, fail_on: Optional[str] = None):
        self.text = text
        self.confidence = confidence
        self.fail_on = fail_on
        self.calls: list[str] = []
        self.images: list[bytes] = []
        self._is_loaded = False

    @property
    def engine_name(self) -> str:
        return "fake"

    @property
    def is_loaded(self) -> bool:
        return self._is_loaded

    def _stage(self, name: str) -> None:
        self.calls.append(name)
        if self.fail_on == name:
            raise RecognitionError(f"{name} failed")

    async def load_language(self, language: str) -> None:
        self._stage("load_language")

    async def initialize(self, language: str) -> None:
        self._stage("initialize")
        self._is_loaded = True

    async def recognize(self, image: bytes) -> EngineOutput:
        self._stage("recognize")
        self.images.append(image)
        return EngineOutput(text=self.text, confidence=self.confidence)

    async def terminate(self) -> None:
        self.calls.append("terminate")
        self._is_loaded = False


class EngineFactory:
    """Callable engine factory that remembers the engines it built."""

    def __init__(self, **engine_kwargs):
        self.engine_kwargs = engine_kwargs
        self.engines: list[FakeEngine] = []

    def __call__(self) -> FakeEngine:
        engine = FakeEngine(**self.engine_kwargs)
        self.engines.append(engine)
        return engine


@pytest.fixture
def receipt_image(tmp_path: Path) -> Path:
    """An image file on disk. Fake engines ignore its content."""
    path = tmp_path / "receipt.jpg"
    path.write_bytes(b"\xff\xd8\xff\xe0fake-jpeg-bytes")
    return path


@pytest.fixture
def fake_engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def no_remote_credentials(monkeypatch):
    """Make sure no Vision API key leaks in from the environment."""
    monkeypatch.setenv("GOOGLE_CLOUD_VISION_API_KEY", "")
