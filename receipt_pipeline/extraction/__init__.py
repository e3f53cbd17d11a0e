# Receipt field extraction
from .receipt import (
    calculate_warranty,
    extract_dates,
    extract_prices,
    extract_product_name,
    extract_store_name,
    parse_receipt,
    parse_receipt_text,
    recognize_receipt,
)

__all__ = [
    "calculate_warranty",
    "extract_dates",
    "extract_prices",
    "extract_product_name",
    "extract_store_name",
    "parse_receipt",
    "parse_receipt_text",
    "recognize_receipt",
]
