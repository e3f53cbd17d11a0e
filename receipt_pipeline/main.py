"""Receipt OCR service FastAPI application.

Exposes OCR with remote-to-local fallback, receipt field extraction and
fuzzy inventory matching over HTTP.
"""

import os
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Annotated

import structlog
from fastapi import FastAPI, File, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .config import configure_logging, get_settings
from .extraction.receipt import parse_receipt, parse_receipt_text
from .matching.distance import discover_engine
from .matching.matcher import find_best_match
from .models.tesseract import configure_tesseract
from .ocr.orchestrator import OCROrchestrator, recognize_product
from .ocr.remote import GoogleVisionAdapter
from .schemas import (
    HealthResponse,
    MatchRequest,
    MatchResponse,
    ProductRecognition,
    ReceiptFields,
    ReceiptTextRequest,
    RecognitionResult,
)

_settings = get_settings()
configure_logging(_settings.log_level, _settings.log_json)
configure_tesseract(_settings.tesseract_cmd)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager - build the OCR chain on startup."""
    logger.info("Starting receipt OCR service...")

    app.state.orchestrator = OCROrchestrator()

    logger.info("Receipt OCR service started", sources=[s.value for s in app.state.orchestrator.sources])

    yield

    logger.info("Shutting down receipt OCR service...")
    await app.state.orchestrator.close()


app = FastAPI(
    title="Receipt OCR Service",
    description="Receipt recognition, field extraction and inventory matching",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "*").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_orchestrator(request: Request) -> OCROrchestrator:
    """Get the OCR chain built at startup."""
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise RuntimeError("OCR orchestrator not initialized")
    return orchestrator


async def _save_upload(file: UploadFile) -> Path:
    """Write an uploaded image to a temporary file and return its path."""
    content = await file.read()
    if not content:
        raise HTTPException(status_code=400, detail="Empty file uploaded")

    suffix = Path(file.filename or "").suffix or ".jpg"
    with tempfile.NamedTemporaryFile(suffix=suffix, delete=False) as tmp:
        tmp.write(content)

    logger.info(
        "Received image",
        filename=file.filename,
        content_type=file.content_type,
        size_bytes=len(content),
    )
    return Path(tmp.name)


@app.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """Health check endpoint."""
    orchestrator = get_orchestrator(request)
    remote_configured = any(
        adapter.is_configured
        for adapter in orchestrator.adapters
        if isinstance(adapter, GoogleVisionAdapter)
    )
    return HealthResponse(
        status="healthy",
        version=__version__,
        ocr_sources=orchestrator.sources,
        remote_configured=remote_configured,
        distance_engine=discover_engine().name,
    )


@app.post("/ocr", response_model=RecognitionResult)
async def ocr_image(
    request: Request,
    file: Annotated[UploadFile, File(description="Receipt or product image")],
) -> RecognitionResult:
    """Recognize text in an image, remote first with local fallback."""
    path = await _save_upload(file)
    try:
        return await get_orchestrator(request).run(path)
    finally:
        path.unlink(missing_ok=True)


@app.post("/receipt", response_model=ReceiptFields)
async def receipt_image(
    file: Annotated[UploadFile, File(description="Receipt image")],
) -> ReceiptFields:
    """Run local OCR on a receipt and extract its fields."""
    path = await _save_upload(file)
    try:
        return await parse_receipt(path)
    finally:
        path.unlink(missing_ok=True)


@app.post("/receipt/text", response_model=ReceiptFields)
async def receipt_text(body: ReceiptTextRequest) -> ReceiptFields:
    """Extract receipt fields from already recognized text."""
    return parse_receipt_text(body.text, body.confidence, get_settings().warranty_years)


@app.post("/match", response_model=MatchResponse)
async def match_product(body: MatchRequest) -> MatchResponse:
    """Find the inventory product the text refers to, if any."""
    match = await find_best_match(body.products, body.text)
    logger.info(
        "Match request complete",
        product_count=len(body.products),
        matched=match is not None,
    )
    return MatchResponse(match=match)


@app.post("/product", response_model=ProductRecognition)
async def product_image(
    request: Request,
    file: Annotated[UploadFile, File(description="Product photo")],
) -> ProductRecognition:
    """Recognize the brand and product type in a product photo."""
    path = await _save_upload(file)
    try:
        return await recognize_product(path, get_orchestrator(request))
    finally:
        path.unlink(missing_ok=True)


def run():
    """Run the service using uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "receipt_pipeline.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.dev_mode,
    )


if __name__ == "__main__":
    run()
