"""Schema definitions for OCR recognition, receipt extraction and matching."""

from enum import Enum
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class OCRSource(str, Enum):
    """Which OCR provider produced a result."""

    REMOTE = "remote"
    LOCAL = "local"


class MatchMethod(str, Enum):
    """How a candidate product was matched against recognized text."""

    SUBSTRING = "substring"
    LEVENSHTEIN_WINDOW = "levenshtein-window"


ConfidenceLevel = Literal["low", "medium", "high"]
Confidence = Union[ConfidenceLevel, int, float]


class DateMention(BaseModel):
    """A date found in recognized text."""

    raw: str = Field(description="Date text exactly as it appeared")
    parsed: str = Field(description="Calendar date in YYYY-MM-DD format")


class MoneyMention(BaseModel):
    """A currency amount found in recognized text."""

    raw: str = Field(description="Amount text exactly as it appeared")
    parsed: float = Field(ge=0, description="Numeric amount")


class ReceiptFields(BaseModel):
    """Structured fields derived from a receipt's recognized text."""

    model_config = ConfigDict(populate_by_name=True)

    purchase_date: Optional[str] = Field(default=None, alias="purchaseDate")
    warranty_expiration: Optional[str] = Field(default=None, alias="warrantyExpiration")
    purchase_price: Optional[str] = Field(default=None, alias="purchasePrice")
    store_name: Optional[str] = Field(default=None, alias="storeName")
    product_name: Optional[str] = Field(default=None, alias="productName")
    dates: list[DateMention] = Field(default_factory=list)
    prices: list[MoneyMention] = Field(
        default_factory=list, description="Amounts sorted largest first"
    )
    text: str = Field(default="", description="Full recognized text")
    confidence: Optional[Confidence] = None
    error: Optional[str] = None


class RecognitionResult(BaseModel):
    """Normalized output of an OCR provider."""

    text: str = ""
    dates: list[DateMention] = Field(default_factory=list)
    vendors: list[str] = Field(default_factory=list)
    confidence: Optional[Confidence] = None
    source: OCRSource
    error: Optional[str] = None
    receipt: Optional[ReceiptFields] = Field(
        default=None, description="Receipt fields, when the provider derived them"
    )


class InventoryProduct(BaseModel):
    """An existing inventory record. Read-only to the matcher."""

    model_config = ConfigDict(extra="allow")

    id: Any
    name: Optional[str] = None


class MatchCandidate(BaseModel):
    """Best-scoring product for a piece of recognized text."""

    product: InventoryProduct
    score: float = Field(ge=0.0, description="Composite score; may exceed 1 with the substring bonus")
    method: MatchMethod


class ProductRecognition(BaseModel):
    """Brand and product type recognized from a product photo."""

    model_config = ConfigDict(populate_by_name=True)

    brand: Optional[str] = None
    product_name: Optional[str] = Field(default=None, alias="productName")
    confidence: Confidence = 0
    text: str = ""


class ReceiptTextRequest(BaseModel):
    """Request to extract receipt fields from already recognized text."""

    text: str
    confidence: Optional[Confidence] = None


class MatchRequest(BaseModel):
    """Request to match recognized text against the inventory."""

    products: list[InventoryProduct] = Field(default_factory=list)
    text: str = ""


class MatchResponse(BaseModel):
    """Matcher outcome. `match` is null when nothing clears the threshold."""

    match: Optional[MatchCandidate] = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(description="Service status")
    version: str = Field(description="Service version")
    ocr_sources: list[OCRSource] = Field(description="OCR providers in fallback order")
    remote_configured: bool = Field(description="Whether a remote OCR credential is set")
    distance_engine: str = Field(description="Edit-distance implementation in use")
