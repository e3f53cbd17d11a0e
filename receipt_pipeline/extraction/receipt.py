"""Receipt field extraction from recognized text."""

import asyncio
import calendar
import re
from datetime import date
from pathlib import Path
from typing import Optional, Union
from urllib.parse import unquote, urlparse

import structlog
from pydantic import ValidationError

from ..config import get_settings
from ..models.base import BaseRecognitionEngine, terminate_quietly
from ..models.tesseract import TesseractEngine, configure_tesseract
from ..schemas.recognition import Confidence, DateMention, MoneyMention, ReceiptFields
from .patterns import (
    DATE_PATTERN,
    LETTERS,
    MONTHS,
    PRICE_PATTERN,
    SUMMARY_LINE_PATTERN,
)

logger = structlog.get_logger()

DEFAULT_WARRANTY_YEARS = 1

_TRAILING_PRICE = re.compile(r"[\s:@-]*" + PRICE_PATTERN.pattern + r"\s*$")

ImageRef = Union[str, Path]


def _lines(text: str) -> list[str]:
    return [line.strip() for line in (text or "").splitlines() if line.strip()]


def _date_from_match(match: re.Match) -> Optional[date]:
    if match.group("iso"):
        year = int(match.group("iso_year"))
        month = int(match.group("iso_month"))
        day = int(match.group("iso_day"))
    elif match.group("us"):
        # US receipts: month first
        month = int(match.group("us_month"))
        day = int(match.group("us_day"))
        year = int(match.group("us_year"))
        if len(match.group("us_year")) == 2:
            year += 2000 if year < 50 else 1900
    else:
        month = MONTHS[match.group("named_month")[:3].lower()]
        day = int(match.group("named_day"))
        year = int(match.group("named_year"))

    try:
        return date(year, month, day)
    except ValueError:
        return None


def extract_dates(text: str) -> list[DateMention]:
    """All valid calendar dates in `text`, in the order they appear."""
    mentions: list[DateMention] = []
    for match in DATE_PATTERN.finditer(text or ""):
        parsed = _date_from_match(match)
        if parsed is None:
            continue
        mentions.append(DateMention(raw=match.group(0), parsed=parsed.isoformat()))
    return mentions


def extract_prices(text: str) -> list[MoneyMention]:
    """
    All dollar amounts in `text`, largest first.

    Equal amounts keep the order they appear in.
    """
    mentions: list[MoneyMention] = []
    for match in PRICE_PATTERN.finditer(text or ""):
        amount = float(f"{match.group('amount').replace(',', '')}.{match.group('cents')}")
        mentions.append(MoneyMention(raw=match.group(0), parsed=amount))
    return sorted(mentions, key=lambda m: m.parsed, reverse=True)


def extract_store_name(text: str) -> Optional[str]:
    """The first non-empty line, assumed to be the receipt header."""
    lines = _lines(text)
    return lines[0] if lines else None


def _is_description_line(line: str) -> bool:
    if SUMMARY_LINE_PATTERN.match(line):
        return False
    remainder = PRICE_PATTERN.sub(" ", DATE_PATTERN.sub(" ", line))
    return LETTERS.search(remainder) is not None


def extract_product_name(text: str) -> Optional[str]:
    """
    Best-effort item description.

    The first line after the store line that is more than a date, price or
    receipt summary, with any trailing price removed.
    """
    for line in _lines(text)[1:]:
        if not _is_description_line(line):
            continue
        name = _TRAILING_PRICE.sub("", line).strip()
        if name:
            return name
    return None


def calculate_warranty(
    purchase_date: Union[str, date, None],
    years: int = DEFAULT_WARRANTY_YEARS,
) -> Optional[str]:
    """
    Same month and day `years` later, as YYYY-MM-DD.

    Feb 29 maps to Feb 28 when the target year is not a leap year. None
    when the date is unparseable or the target year is out of range.
    """
    if not purchase_date:
        return None

    if isinstance(purchase_date, str):
        try:
            purchase_date = date.fromisoformat(purchase_date)
        except ValueError:
            return None

    target_year = purchase_date.year + years
    if not date.min.year <= target_year <= date.max.year:
        return None

    day = purchase_date.day
    if (purchase_date.month, day) == (2, 29) and not calendar.isleap(target_year):
        day = 28
    return purchase_date.replace(year=target_year, day=day).isoformat()


def parse_receipt_text(
    text: str,
    confidence: Optional[Confidence] = None,
    warranty_years: int = DEFAULT_WARRANTY_YEARS,
) -> ReceiptFields:
    """Derive receipt fields from already recognized text."""
    dates = extract_dates(text)
    prices = extract_prices(text)

    purchase_date = dates[0].parsed if dates else None
    purchase_price = f"{prices[0].parsed:.2f}" if prices else None

    return ReceiptFields(
        purchase_date=purchase_date,
        warranty_expiration=calculate_warranty(purchase_date, warranty_years),
        purchase_price=purchase_price,
        store_name=extract_store_name(text),
        product_name=extract_product_name(text),
        dates=dates,
        prices=prices,
        text=text or "",
        confidence=confidence,
    )


def failed_receipt(error: Exception) -> ReceiptFields:
    """Receipt fields for a recognition that raised."""
    return ReceiptFields(error=str(error) or error.__class__.__name__)


def resolve_image_path(image_ref: ImageRef) -> Path:
    """Turn a path or file:// URI into a filesystem path."""
    if isinstance(image_ref, Path):
        return image_ref

    parsed = urlparse(image_ref)
    if parsed.scheme == "file":
        return Path(unquote(parsed.path))
    return Path(image_ref)


async def read_image(image_ref: ImageRef) -> bytes:
    """Read the encoded image bytes behind an image reference."""
    path = resolve_image_path(image_ref)
    return await asyncio.to_thread(path.read_bytes)


async def recognize_receipt(
    engine: BaseRecognitionEngine,
    image_ref: ImageRef,
    warranty_years: int = DEFAULT_WARRANTY_YEARS,
) -> ReceiptFields:
    """
    Recognize a receipt with an initialized engine and extract its fields.

    Never raises: failures come back as ReceiptFields with `error` set.
    """
    try:
        image = await read_image(image_ref)
        output = await engine.recognize(image)
    except Exception as e:
        logger.warning("Receipt recognition failed", image_ref=str(image_ref), error=str(e))
        return failed_receipt(e)

    try:
        fields = parse_receipt_text(output.text, round(output.confidence), warranty_years)
    except Exception as e:
        logger.warning("Receipt field extraction failed", image_ref=str(image_ref), error=str(e))
        return failed_receipt(e)

    logger.info(
        "Receipt parsed",
        engine=engine.engine_name,
        date_count=len(fields.dates),
        price_count=len(fields.prices),
        has_store=fields.store_name is not None,
    )
    return fields


async def parse_receipt(
    image_ref: ImageRef,
    engine: Optional[BaseRecognitionEngine] = None,
    language: Optional[str] = None,
    warranty_years: Optional[int] = None,
) -> ReceiptFields:
    """
    Run local OCR on a receipt image and extract its fields.

    The engine (a new TesseractEngine when none is given) is loaded,
    used once and terminated. Never raises.
    """
    if engine is None or language is None or warranty_years is None:
        try:
            settings = get_settings()
        except ValidationError as e:
            logger.warning("Invalid OCR settings", error=str(e))
            if engine is not None:
                await terminate_quietly(engine)
            return failed_receipt(e)

        if engine is None:
            configure_tesseract(settings.tesseract_cmd)
            engine = TesseractEngine()
        language = language or settings.ocr_language
        if warranty_years is None:
            warranty_years = settings.warranty_years

    try:
        await engine.load_language(language)
        await engine.initialize(language)
    except Exception as e:
        logger.warning("Failed to start recognition engine", engine=engine.engine_name, error=str(e))
        await terminate_quietly(engine)
        return failed_receipt(e)

    try:
        return await recognize_receipt(engine, image_ref, warranty_years)
    finally:
        await terminate_quietly(engine)
