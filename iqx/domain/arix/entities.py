"""
ARIX hub records.

Rows come out of spreadsheet ranges as lists of strings and are parsed
into these records by iqx.domain.arix.calculators.
"""

from datetime import datetime
from typing import Optional

from iqx.domain.schema import SnakeWireModel, WireModel


class SheetValues(WireModel):
    """Values payload of the spreadsheet API for a single range."""

    range: str
    major_dimension: str
    values: list[list[str]] = []


class ArixPlanPosition(WireModel):
    """A recommended entry with its stop loss and target."""

    symbol: str
    buy_price: float
    stop_loss: float
    target: float
    return_risk: float


class ArixHoldPosition(WireModel):
    """An open holding. Price fields are filled once market data is merged."""

    symbol: str
    date: str
    price: float
    volume: float
    current_price: Optional[float] = None
    profit_loss: Optional[float] = None
    profit_loss_percent: Optional[float] = None

    @property
    def investment(self) -> float:
        return self.price * self.volume


class ArixSellTrade(WireModel):
    """A closed trade. return_percent stays as the sheet shows it ("26%")."""

    stock_code: str
    buy_date: str
    buy_price: float
    quantity: float
    sell_date: str
    sell_price: float
    return_percent: str
    profit_loss: float
    days_held: int


class ArixPlanResponse(WireModel):
    positions: list[ArixPlanPosition]
    total_positions: int
    last_updated: datetime


class ArixHoldResponse(WireModel):
    positions: list[ArixHoldPosition]
    total_positions: int
    last_updated: datetime
    total_profit_loss: float = 0.0
    total_profit_loss_percent: float = 0.0


class ArixSellResponse(WireModel):
    trades: list[ArixSellTrade]
    total_trades: int
    last_updated: datetime


class MarketPriceSeries(SnakeWireModel):
    """One symbol's OHLC arrays from the gap-chart endpoint."""

    symbol: str
    o: list[float] = []
    h: list[float] = []
    l: list[float] = []  # noqa: E741
    c: list[float] = []
    v: list[float] = []


class PlanPositionReturns(ArixPlanPosition):
    potential_return: float
    potential_return_percent: float
    risk_amount: float
    risk_percent: float


class PlanStatistics(WireModel):
    total_positions: int
    avg_buy_price: float
    avg_target: float
    avg_return_risk: float
    positions_with_returns: list[PlanPositionReturns]
    top_opportunities: list[ArixPlanPosition]


class RiskRewardRow(WireModel):
    symbol: str
    buy_price: float
    stop_loss: float
    target: float
    potential_gain: float
    potential_loss: float
    risk_reward_ratio: float
    potential_gain_percent: float
    potential_loss_percent: float
    return_risk: float


class HoldStatistics(WireModel):
    total_positions: int
    total_value: float
    total_volume: float
    avg_price: float
    unique_symbols: int
    symbol_groups: dict[str, list[ArixHoldPosition]]


class SellStatistics(WireModel):
    total_trades: int
    total_profit: float
    profitable_trades: int
    loss_trades: int
    win_rate: float
    avg_days_held: float
    avg_profit: float
    avg_loss: float
