"""Google Cloud Vision text detection adapter."""

import base64
from typing import Any, Optional

import httpx
import structlog
from pydantic import ValidationError

from ..config import get_settings
from ..extraction.receipt import ImageRef, extract_dates, extract_store_name, read_image
from ..schemas.recognition import OCRSource, RecognitionResult
from .base import BaseOCRAdapter

logger = structlog.get_logger()


def _full_text(payload: Any) -> str:
    """Pull responses[0].fullTextAnnotation.text out of an annotate response."""
    if not isinstance(payload, dict):
        return ""
    responses = payload.get("responses")
    if not isinstance(responses, list) or not responses or not isinstance(responses[0], dict):
        return ""
    annotation = responses[0].get("fullTextAnnotation")
    if not isinstance(annotation, dict):
        return ""
    return annotation.get("text") or ""


class GoogleVisionAdapter(BaseOCRAdapter):
    """Remote OCR through the Cloud Vision images:annotate endpoint."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        endpoint: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the adapter.

        Args:
            api_key: Vision API key; read from settings at call time when None
            endpoint: images:annotate URL; settings default when None
            timeout: Request timeout in seconds; settings default when None
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self._api_key = api_key
        self._endpoint = endpoint
        self._timeout = timeout
        self._transport = transport

    @property
    def source(self) -> OCRSource:
        return OCRSource.REMOTE

    @property
    def is_configured(self) -> bool:
        return bool(self._resolve_api_key())

    def _resolve_api_key(self) -> str:
        if self._api_key is not None:
            return self._api_key
        return get_settings().google_cloud_vision_api_key

    async def recognize(self, image_ref: ImageRef) -> Optional[RecognitionResult]:
        """Recognize text remotely. Returns None when not configured or on any failure."""
        try:
            api_key = self._resolve_api_key()
            settings = get_settings()
        except ValidationError as e:
            logger.warning("Invalid Google Vision settings", error=str(e))
            return None

        if not api_key:
            logger.warning("Google Vision API key not configured")
            return None

        endpoint = self._endpoint or settings.vision_endpoint
        timeout = self._timeout if self._timeout is not None else settings.vision_timeout_s

        try:
            image = await read_image(image_ref)
        except OSError as e:
            logger.warning("Failed to read image for Google Vision", image_ref=str(image_ref), error=str(e))
            return None

        body = {
            "requests": [
                {
                    "image": {"content": base64.b64encode(image).decode("ascii")},
                    "features": [{"type": "TEXT_DETECTION", "maxResults": 1}],
                }
            ]
        }

        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
                response = await client.post(endpoint, params={"key": api_key}, json=body)
        except httpx.HTTPError as e:
            logger.warning("Google Vision OCR failed", error=str(e))
            return None

        if not response.is_success:
            logger.warning("Google Vision API error", status_code=response.status_code)
            return None

        try:
            payload = response.json()
        except ValueError as e:
            logger.warning("Google Vision returned invalid JSON", error=str(e))
            return None

        text = _full_text(payload)
        if not text:
            logger.warning("Google Vision returned no text annotation")
            return None

        store_name = extract_store_name(text)
        logger.info("Google Vision OCR complete", characters=len(text), size_bytes=len(image))
        return RecognitionResult(
            text=text,
            dates=extract_dates(text),
            vendors=[store_name] if store_name else [],
            confidence="high",
            source=OCRSource.REMOTE,
        )
