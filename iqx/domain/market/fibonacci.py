"""
Fibonacci retracement and extension levels between a swing high and low.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

FIBONACCI_RATIOS = (
    ("0%", 0.0),
    ("23.6%", 0.236),
    ("38.2%", 0.382),
    ("50%", 0.5),
    ("61.8%", 0.618),
    ("76.4%", 0.764),
    ("100%", 1.0),
    ("138.2%", 1.382),
    ("161.8%", 1.618),
    ("200%", 2.0),
    ("261.8%", 2.618),
)


class TrendDirection(str, Enum):
    UPTREND = "uptrend"
    DOWNTREND = "downtrend"


@dataclass(frozen=True)
class FibonacciLevel:
    level: str
    ratio: float
    retracement: float
    extension: float


def fibonacci_levels(high: float, low: float, direction: TrendDirection) -> list[FibonacciLevel]:
    """Uptrends retrace down from the high; downtrends retrace up from the low."""
    diff = high - low
    levels = []
    for label, ratio in FIBONACCI_RATIOS:
        if direction is TrendDirection.UPTREND:
            retracement, extension = high - diff * ratio, high + diff * ratio
        else:
            retracement, extension = low + diff * ratio, low - diff * ratio
        levels.append(FibonacciLevel(label, ratio, retracement, extension))
    return levels


def retracement_percent(
    high: float, low: float, price: float, direction: TrendDirection
) -> Optional[float]:
    """How far `price` has retraced, in percent with two decimals.

    None when high equals low.
    """
    diff = high - low
    if diff == 0:
        return None
    if direction is TrendDirection.UPTREND:
        value = (high - price) / diff * 100
    else:
        value = (price - low) / diff * 100
    return round(value, 2)
