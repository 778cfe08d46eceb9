"""
Pure ARIX hub calculations.

Parses spreadsheet rows into records and derives the return, risk and
profit figures shown in the hub tables. No IO.
"""

import re
from collections import defaultdict
from typing import Iterable, Mapping

from iqx.domain.arix.entities import (
    ArixHoldPosition,
    ArixPlanPosition,
    ArixSellTrade,
    HoldStatistics,
    PlanPositionReturns,
    PlanStatistics,
    RiskRewardRow,
    SellStatistics,
)

PLAN_COLUMNS = 5
HOLD_COLUMNS = 4
SELL_COLUMNS = 9
TOP_OPPORTUNITIES = 5
DEFAULT_RECENT_TRADES = 10


_LEADING_NUMBER = re.compile(r"\s*([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)")


def _parse_number(value: str, separators: str) -> float:
    """Strip thousand separators and parse the leading number.

    Trailing junk is ignored ("12abc" is 12); no leading number yields 0.
    """
    if not value:
        return 0.0
    cleaned = re.sub(f"[{re.escape(separators)}]", "", value)
    match = _LEADING_NUMBER.match(cleaned)
    return float(match.group(1)) if match else 0.0


def _parse_int(value: str) -> int:
    match = re.match(r"\s*(-?\d+)", value or "")
    return int(match.group(1)) if match else 0


def _cell(row: list[str], index: int) -> str:
    return row[index] if index < len(row) else ""


def parse_plan_rows(values: list[list[str]]) -> list[ArixPlanPosition]:
    """Skip the header row and drop rows missing columns.

    Plan prices may use "," or "." as thousand separators.
    """
    return [
        ArixPlanPosition(
            symbol=row[0] or "",
            buy_price=_parse_number(row[1], ",."),
            stop_loss=_parse_number(row[2], ",."),
            target=_parse_number(row[3], ",."),
            return_risk=_parse_number(row[4], ",."),
        )
        for row in values[1:]
        if len(row) >= PLAN_COLUMNS
    ]


def parse_hold_rows(values: list[list[str]]) -> list[ArixHoldPosition]:
    """Skip the header row and drop rows missing columns."""
    return [
        ArixHoldPosition(
            symbol=row[0] or "",
            date=row[1] or "",
            price=_parse_number(row[2], "."),
            volume=_parse_number(row[3], "."),
        )
        for row in values[1:]
        if len(row) >= HOLD_COLUMNS
    ]


def parse_sell_rows(values: list[list[str]]) -> list[ArixSellTrade]:
    """Skip the header row and drop rows missing columns."""
    return [
        ArixSellTrade(
            stock_code=row[0] or "",
            buy_date=row[1] or "",
            buy_price=_parse_number(row[2], "."),
            quantity=_parse_number(row[3], "."),
            sell_date=row[4] or "",
            sell_price=_parse_number(row[5], "."),
            return_percent=(_cell(row, 6) or "0%").strip(),
            profit_loss=_parse_number(row[7], "."),
            days_held=_parse_int(row[8]),
        )
        for row in values[1:]
        if len(row) >= SELL_COLUMNS
    ]


def return_percent(buy_price: float, target: float) -> float:
    """Potential return in percent. 0 when the buy price is 0."""
    if buy_price == 0:
        return 0.0
    return (target - buy_price) / buy_price * 100


def risk_percent(buy_price: float, stop_loss: float) -> float:
    """Distance to the stop loss in percent. 0 when the buy price is 0."""
    if buy_price == 0:
        return 0.0
    return (buy_price - stop_loss) / buy_price * 100


def risk_reward_ratio(buy_price: float, stop_loss: float, target: float) -> float:
    potential_loss = buy_price - stop_loss
    if potential_loss == 0:
        return 0.0
    return (target - buy_price) / potential_loss


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def plan_statistics(positions: list[ArixPlanPosition]) -> PlanStatistics:
    with_returns = [
        PlanPositionReturns(
            **position.model_dump(),
            potential_return=position.target - position.buy_price,
            potential_return_percent=return_percent(position.buy_price, position.target),
            risk_amount=position.buy_price - position.stop_loss,
            risk_percent=risk_percent(position.buy_price, position.stop_loss),
        )
        for position in positions
    ]
    ranked = sorted(positions, key=lambda p: p.return_risk, reverse=True)
    return PlanStatistics(
        total_positions=len(positions),
        avg_buy_price=round(_mean([p.buy_price for p in positions]), 2),
        avg_target=round(_mean([p.target for p in positions]), 2),
        avg_return_risk=round(_mean([p.return_risk for p in positions]), 2),
        positions_with_returns=with_returns,
        top_opportunities=ranked[:TOP_OPPORTUNITIES],
    )


def positions_by_potential_return(
    positions: list[ArixPlanPosition],
) -> list[PlanPositionReturns]:
    stats = plan_statistics(positions)
    return sorted(
        stats.positions_with_returns,
        key=lambda p: p.potential_return_percent,
        reverse=True,
    )


def risk_reward_analysis(positions: list[ArixPlanPosition]) -> list[RiskRewardRow]:
    rows = []
    for position in positions:
        gain = position.target - position.buy_price
        loss = position.buy_price - position.stop_loss
        rows.append(
            RiskRewardRow(
                symbol=position.symbol,
                buy_price=position.buy_price,
                stop_loss=position.stop_loss,
                target=position.target,
                potential_gain=gain,
                potential_loss=loss,
                risk_reward_ratio=round(
                    risk_reward_ratio(position.buy_price, position.stop_loss, position.target), 2
                ),
                potential_gain_percent=round(return_percent(position.buy_price, position.target), 2),
                potential_loss_percent=round(risk_percent(position.buy_price, position.stop_loss), 2),
                return_risk=position.return_risk,
            )
        )
    return rows


def merge_market_prices(
    positions: list[ArixHoldPosition], prices: Mapping[str, float]
) -> tuple[list[ArixHoldPosition], float, float]:
    """Attach current prices and P/L to each holding.

    Holdings without a known (non-zero) price keep their purchase data only
    but still count towards total investment.

    Returns:
        (positions, total_profit_loss, total_profit_loss_percent)
    """
    merged = []
    total_profit_loss = 0.0
    total_investment = 0.0
    for position in positions:
        total_investment += position.investment
        current = prices.get(position.symbol)
        if not current:
            merged.append(position)
            continue
        profit_loss = (current - position.price) * position.volume
        total_profit_loss += profit_loss
        merged.append(
            position.model_copy(
                update={
                    "current_price": current,
                    "profit_loss": profit_loss,
                    "profit_loss_percent": return_percent(position.price, current),
                }
            )
        )
    total_percent = (
        total_profit_loss / total_investment * 100 if total_investment > 0 else 0.0
    )
    return merged, total_profit_loss, total_percent


def hold_statistics(positions: list[ArixHoldPosition]) -> HoldStatistics:
    groups: dict[str, list[ArixHoldPosition]] = defaultdict(list)
    for position in positions:
        groups[position.symbol].append(position)
    return HoldStatistics(
        total_positions=len(positions),
        total_value=sum(p.investment for p in positions),
        total_volume=sum(p.volume for p in positions),
        avg_price=round(_mean([p.price for p in positions]), 2),
        unique_symbols=len(groups),
        symbol_groups=dict(groups),
    )


def positions_by_value(positions: list[ArixHoldPosition]) -> list[ArixHoldPosition]:
    return sorted(positions, key=lambda p: p.investment, reverse=True)


def sell_statistics(trades: list[ArixSellTrade]) -> SellStatistics:
    winners = [t.profit_loss for t in trades if t.profit_loss > 0]
    losers = [t.profit_loss for t in trades if t.profit_loss < 0]
    win_rate = len(winners) / len(trades) * 100 if trades else 0.0
    return SellStatistics(
        total_trades=len(trades),
        total_profit=sum(t.profit_loss for t in trades),
        profitable_trades=len(winners),
        loss_trades=len(losers),
        win_rate=round(win_rate, 2),
        avg_days_held=round(_mean([t.days_held for t in trades]), 1),
        avg_profit=_mean(winners),
        avg_loss=_mean(losers),
    )


def recent_trades(
    trades: list[ArixSellTrade], limit: int = DEFAULT_RECENT_TRADES
) -> list[ArixSellTrade]:
    """Last `limit` trades of the sheet, newest first."""
    if limit <= 0:
        return []
    return list(reversed(trades[-limit:]))


def filter_by_symbol(records: Iterable, symbol: str, attribute: str = "symbol") -> list:
    """Case-insensitive match of records on a ticker attribute."""
    wanted = symbol.lower()
    return [r for r in records if getattr(r, attribute).lower() == wanted]
