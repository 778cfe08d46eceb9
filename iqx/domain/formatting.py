"""
Display formatters shared by every view.

Numbers follow the vi-VN convention the dashboard is shown in:
"." groups thousands and "," separates decimals (1234567 -> "1.234.567").
Signed percentages keep a "." decimal point to match how the tables
have always shown them ("+20.00%").
"""

import math
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

from dateutil import parser as dateparser

Number = Union[int, float, Decimal]

PLACEHOLDER = "-"
NBSP = " "
CURRENCY_SYMBOLS = {"VND": "₫", "USD": "US$", "EUR": "€"}


def _is_missing(value: Optional[Number]) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and not math.isfinite(value):
        return True
    return False


def format_number(
    value: Optional[Number], min_decimals: int = 0, max_decimals: int = 3
) -> str:
    """Format a number with vi-VN grouping.

    Args:
        value: Number to format. None/NaN render as a placeholder.
        min_decimals: Minimum digits kept after the decimal comma.
        max_decimals: Maximum digits after rounding half up.

    Returns:
        Grouped string, e.g. 1234567.5 -> "1.234.567,5".
    """
    if _is_missing(value):
        return PLACEHOLDER

    quantum = Decimal(1).scaleb(-max_decimals)
    amount = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    sign = "-" if amount < 0 else ""
    amount = abs(amount)

    int_part, _, frac = f"{amount:.{max_decimals}f}".partition(".")
    frac = frac.rstrip("0").ljust(min_decimals, "0")
    grouped = f"{int(int_part):,}".replace(",", ".")

    if grouped == "0" and not frac.strip("0"):
        sign = ""
    return f"{sign}{grouped},{frac}" if frac else f"{sign}{grouped}"


def format_currency(value: Optional[Number], currency: str = "VND") -> str:
    """Format an amount as money, e.g. 1234567 -> "1.234.567 ₫".

    VND has no minor unit; other currencies keep two decimals.
    """
    if _is_missing(value):
        return PLACEHOLDER
    decimals = 0 if currency == "VND" else 2
    symbol = CURRENCY_SYMBOLS.get(currency, currency)
    amount = format_number(value, min_decimals=decimals, max_decimals=decimals)
    return f"{amount}{NBSP}{symbol}"


def format_percent(
    value: Optional[Number], decimals: int = 2, show_sign: bool = True
) -> str:
    """Format a percentage with an explicit sign, e.g. 20 -> "+20.00%"."""
    if _is_missing(value):
        return PLACEHOLDER
    number = float(value)
    sign = "+" if show_sign and number > 0 else ""
    return f"{sign}{number:.{decimals}f}%"


def trend_of(value: Optional[Number]) -> str:
    """Classify a signed value as "positive", "negative" or "neutral"."""
    if _is_missing(value) or float(value) == 0:
        return "neutral"
    return "positive" if float(value) > 0 else "negative"


def parse_percentage(value: Union[str, Number, None]) -> float:
    """Convert an API percentage (often a string like "-0.0515") to float."""
    if value is None:
        return 0.0
    if isinstance(value, (int, float, Decimal)):
        return float(value)
    try:
        return float(value.strip().rstrip("%"))
    except ValueError:
        return 0.0


def format_date(value: Union[str, date, datetime, None], pattern: str = "%d/%m/%Y") -> str:
    """Format an ISO string or date as dd/mm/yyyy."""
    if value is None or value == "":
        return PLACEHOLDER
    if isinstance(value, str):
        try:
            value = dateparser.isoparse(value)
        except ValueError:
            return value
    return value.strftime(pattern)


def format_time(value: datetime) -> str:
    """Format a chat timestamp as HH:MM."""
    return value.strftime("%H:%M")
