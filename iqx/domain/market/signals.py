"""
Technical signal schemas and filters.

The flag names are the backend's (Vietnamese) identifiers:
xu_huong_tang (uptrend), suy_yeu (weakening), tin_hieu_ban (sell signal),
qua_mua (overbought), qua_ban (oversold).
"""

from enum import Enum
from typing import Iterable, Mapping, Optional

from pydantic import Field

from iqx.domain.schema import WireModel

SIGNAL_FLAGS = ("xu_huong_tang", "suy_yeu", "tin_hieu_ban", "qua_mua", "qua_ban")


class Trend(str, Enum):
    UPTREND = "UPTREND"
    DOWNTREND = "DOWNTREND"
    SIDEWAYS = "SIDEWAYS"


class Strength(str, Enum):
    STRONG = "STRONG"
    WEAK = "WEAK"
    MODERATE = "MODERATE"


class Macd(WireModel):
    macd: float
    signal: float
    histogram: float


class Indicators(WireModel):
    ema20: float
    ema50: float
    ema200: float
    rsi: float
    macd: Macd
    return_1d: float = Field(alias="return1D")


class ConditionDetail(WireModel):
    condition: str
    actual: float
    required: float
    satisfied: bool


class ConditionCheck(WireModel):
    met: bool
    details: list[ConditionDetail]


class AnalysisSignals(WireModel):
    xu_huong_tang: bool
    suy_yeu: bool
    tin_hieu_ban: bool
    qua_mua: bool
    qua_ban: bool


class AnalysisConditions(WireModel):
    xu_huong_tang: ConditionCheck
    suy_yeu: ConditionCheck
    tin_hieu_ban: ConditionCheck
    qua_mua: ConditionCheck
    qua_ban: ConditionCheck


class Analysis(WireModel):
    trend: Trend
    strength: Strength
    signals: AnalysisSignals
    conditions: AnalysisConditions


class SignalDataItem(WireModel):
    symbol: str
    timestamp: str
    price: float
    indicators: Indicators
    analysis: Analysis
    price_vs_ema20: float = Field(alias="priceVsEMA20")
    price_vs_ema50: float = Field(alias="priceVsEMA50")

    def has_signal(self, flag: str) -> bool:
        return bool(getattr(self.analysis.signals, flag, False))


class GetSignalsRequest(WireModel):
    symbols: list[str]


class GetSignalsResponse(WireModel):
    success: bool
    data: list[SignalDataItem]
    count: int


def filter_signals(
    items: Iterable[SignalDataItem],
    trend: Optional[Trend] = None,
    strength: Optional[Strength] = None,
    has_signal: Optional[str] = None,
) -> list[SignalDataItem]:
    """Keep items matching every given criterion.

    Raises:
        ValueError: If has_signal is not a known flag.
    """
    if has_signal is not None and has_signal not in SIGNAL_FLAGS:
        raise ValueError(f"Unknown signal flag: {has_signal}")
    result = []
    for item in items:
        if trend is not None and item.analysis.trend != trend:
            continue
        if strength is not None and item.analysis.strength != strength:
            continue
        if has_signal is not None and not item.has_signal(has_signal):
            continue
        result.append(item)
    return result


def signal_alerts(
    items: Iterable[SignalDataItem], alert_on: Mapping[str, bool]
) -> list[SignalDataItem]:
    """Items raising any of the flags switched on in alert_on."""
    wanted = [flag for flag, enabled in alert_on.items() if enabled and flag in SIGNAL_FLAGS]
    return [item for item in items if any(item.has_signal(flag) for flag in wanted)]
