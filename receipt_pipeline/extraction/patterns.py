"""Regular expressions and keyword tables used by the receipt extractor."""

import re

MONTHS: dict[str, int] = {
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "apr": 4,
    "may": 5,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sep": 9,
    "oct": 10,
    "nov": 11,
    "dec": 12,
}

# One alternation scanned left to right, so "2025-11-12" is never also
# reported as "25-11-12".
DATE_PATTERN = re.compile(
    r"(?<![\d/-])(?:"
    r"(?P<iso>(?P<iso_year>\d{4})[/-](?P<iso_month>\d{1,2})[/-](?P<iso_day>\d{1,2}))"
    r"|(?P<us>(?P<us_month>\d{1,2})[/-](?P<us_day>\d{1,2})[/-](?P<us_year>\d{4}|\d{2}))"
    r"|(?P<named>\b(?P<named_month>jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)[a-z]*\.?"
    r"[\s,]+(?P<named_day>\d{1,2})(?:st|nd|rd|th)?[\s,]+(?P<named_year>\d{4}))"
    r")(?![\d/-])",
    re.IGNORECASE,
)

# $1,234.56 / $ 19.99 / $5.00
PRICE_PATTERN = re.compile(r"\$\s*(?P<amount>\d{1,3}(?:,\d{3})+|\d+)\.(?P<cents>\d{2})(?!\d)")

# Receipt lines that summarise the purchase rather than describe an item.
SUMMARY_LINE_PATTERN = re.compile(
    r"^\s*(?:sub[\s-]?total|total|tax|sales\s+tax|change|cash|balance|amount(?:\s+due)?|"
    r"paid|payment|visa|mastercard|amex|debit|credit|tender|receipt|date|time|thank\s+you)\b",
    re.IGNORECASE,
)

LETTERS = re.compile(r"[A-Za-z]")

COMMON_BRANDS: list[str] = [
    # Appliances
    "KitchenAid", "Cuisinart", "Instant Pot", "Ninja", "Hamilton Beach", "Black+Decker",
    "Breville", "Oster", "Whirlpool", "GE", "Samsung", "LG", "Frigidaire", "Kenmore",
    # Electronics
    "Sony", "Apple", "Dell", "HP", "Canon", "Epson", "Logitech", "Microsoft", "Roku",
    "Amazon", "Google", "Nest", "Ring", "Dyson",
    # Furniture & home
    "IKEA", "Ashley", "Wayfair", "West Elm", "Pottery Barn", "Crate & Barrel",
    # Tools
    "DeWalt", "Craftsman", "Milwaukee", "Bosch", "Makita", "Stanley", "Black & Decker",
    # Cookware
    "Lodge", "Le Creuset", "Calphalon", "T-fal", "All-Clad", "Pyrex", "Corningware",
    # Cleaning
    "Shark", "Bissell", "Hoover", "iRobot", "Roomba",
]

PRODUCT_KEYWORDS: list[str] = [
    "Blender", "Mixer", "Toaster", "Coffee Maker", "Microwave", "Oven", "Refrigerator",
    "Vacuum", "Air Fryer", "Slow Cooker", "Pressure Cooker", "Food Processor",
    "Stand Mixer", "Hand Mixer", "Kettle", "Iron", "Fan", "Heater", "Humidifier",
    "Lamp", "Chair", "Table", "Desk", "Sofa", "Bed", "Dresser", "Cabinet",
    "Drill", "Saw", "Wrench", "Hammer", "Screwdriver", "Ladder", "Toolbox",
    "TV", "Monitor", "Printer", "Speaker", "Keyboard", "Mouse", "Router", "Camera",
    "Pan", "Pot", "Skillet", "Wok", "Dutch Oven", "Baking Sheet", "Cutting Board",
]

MODEL_PATTERN = re.compile(r"[A-Z]{2,}\d{2,}|Series\s+\d+|Model\s+[\w-]+", re.IGNORECASE)
