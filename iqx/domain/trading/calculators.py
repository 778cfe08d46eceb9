"""
Order cost arithmetic and client-side order checks.

Fees and taxes are rounded half up to whole VND, the way the trading
backend settles them.
"""

import math
from dataclasses import dataclass
from typing import Iterable, Optional, Union

from iqx.domain.errors import VirtualTradingError
from iqx.domain.formatting import parse_percentage
from iqx.domain.trading.entities import (
    OrderRequest,
    OrderType,
    TransactionType,
    VirtualHolding,
    VirtualPortfolio,
)

TRADING_FEE_RATE = 0.0015
SELLING_TAX_RATE = 0.001
MAX_BUY_QUANTITY = 1_000_000
CASH_BUCKET = "CASH"


@dataclass(frozen=True)
class TradingCost:
    total_amount: float
    fee: int
    tax: int
    net_amount: float


@dataclass(frozen=True)
class Affordability:
    can_afford: bool
    required: float
    shortfall: float


@dataclass(frozen=True)
class AllocationSlice:
    symbol: str
    percentage: float
    value: float


@dataclass(frozen=True)
class PortfolioMetrics:
    total_asset_value: float
    cash_balance: float
    stock_value: float
    total_pnl: float
    pnl_percentage: float
    win_rate: float
    total_transactions: int
    successful_trades: int


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def calculate_trading_cost(
    total_amount: float, transaction_type: Union[TransactionType, str]
) -> TradingCost:
    """Fee on both sides, tax on sells only.

    A buy costs total + fee; a sell returns total - fee - tax.
    """
    side = TransactionType(transaction_type)
    fee = _round_half_up(total_amount * TRADING_FEE_RATE)
    tax = _round_half_up(total_amount * SELLING_TAX_RATE) if side is TransactionType.SELL else 0
    if side is TransactionType.BUY:
        net_amount = total_amount + fee
    else:
        net_amount = total_amount - fee - tax
    return TradingCost(total_amount=total_amount, fee=fee, tax=tax, net_amount=net_amount)


def can_afford_purchase(
    cash_balance: float, quantity: int, price_per_share: float
) -> Affordability:
    required = calculate_trading_cost(quantity * price_per_share, TransactionType.BUY).net_amount
    return Affordability(
        can_afford=cash_balance >= required,
        required=required,
        shortfall=max(0.0, required - cash_balance),
    )


def max_purchase_quantity(cash_balance: float, price_per_share: float) -> int:
    """Largest share count whose cost including fees fits in cash_balance."""
    if price_per_share <= 0:
        return 0
    low, high = 0, math.floor(cash_balance / price_per_share) + 100
    best = 0
    while low <= high:
        mid = (low + high) // 2
        if can_afford_purchase(cash_balance, mid, price_per_share).can_afford:
            best = mid
            low = mid + 1
        else:
            high = mid - 1
    return best


def calculate_win_rate(successful_trades: int, total_transactions: int) -> float:
    if total_transactions == 0:
        return 0.0
    return successful_trades / total_transactions * 100


def calculate_allocation(
    holdings: Iterable[VirtualHolding], cash_balance: float
) -> list[AllocationSlice]:
    """Share of total value per holding plus a CASH bucket, largest first."""
    holdings = list(holdings)
    total_value = sum(h.current_value for h in holdings) + cash_balance
    if total_value == 0:
        return []
    slices = [
        AllocationSlice(
            symbol=h.symbol_code,
            percentage=h.current_value / total_value * 100,
            value=h.current_value,
        )
        for h in holdings
    ]
    slices.append(
        AllocationSlice(
            symbol=CASH_BUCKET,
            percentage=cash_balance / total_value * 100,
            value=cash_balance,
        )
    )
    return sorted(slices, key=lambda s: s.value, reverse=True)


def portfolio_metrics(portfolio: VirtualPortfolio) -> PortfolioMetrics:
    return PortfolioMetrics(
        total_asset_value=portfolio.total_asset_value,
        cash_balance=portfolio.cash_balance,
        stock_value=portfolio.stock_value,
        total_pnl=portfolio.total_profit_loss,
        pnl_percentage=parse_percentage(portfolio.profit_loss_percentage),
        win_rate=calculate_win_rate(portfolio.successful_trades, portfolio.total_transactions),
        total_transactions=portfolio.total_transactions,
        successful_trades=portfolio.successful_trades,
    )


def percentage_color(value: Union[str, float, None]) -> str:
    number = parse_percentage(value)
    if number > 0:
        return "green"
    if number < 0:
        return "red"
    return "gray"


def validate_order(
    symbol_code: Optional[str],
    quantity: Union[int, float, None],
    order_type: Union[OrderType, str, None],
    limit_price: Optional[float],
    side: TransactionType,
) -> OrderRequest:
    """Check an order before it is sent.

    Raises:
        VirtualTradingError: On a missing symbol, a non-positive or
            fractional quantity, a buy above the quantity cap, an unknown
            order type or a LIMIT order without a positive price.
    """
    if not symbol_code or not isinstance(symbol_code, str):
        raise VirtualTradingError("Invalid stock symbol")
    if (
        quantity is None
        or isinstance(quantity, bool)
        or quantity < 1
        or int(quantity) != quantity
    ):
        raise VirtualTradingError("Quantity must be a positive integer")
    if side is TransactionType.BUY and quantity > MAX_BUY_QUANTITY:
        raise VirtualTradingError("Quantity cannot exceed 1,000,000 shares")
    try:
        order_type = OrderType(order_type)
    except ValueError as exc:
        raise VirtualTradingError("Invalid order type") from exc
    if order_type is OrderType.LIMIT and (not limit_price or limit_price <= 0):
        raise VirtualTradingError("Limit price must be greater than 0")
    return OrderRequest(
        symbol_code=symbol_code,
        quantity=int(quantity),
        order_type=order_type,
        limit_price=limit_price,
    )
