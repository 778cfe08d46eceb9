"""
View-model builders.

Turn domain results into the display-ready rows the front end renders:
grouped numbers, signed percentages with a trend, dd/mm/yyyy dates and
the visible part of the downline tree.
"""

from typing import Optional

from iqx.domain.arix.calculators import return_percent, risk_percent
from iqx.domain.arix.entities import ArixHoldResponse, ArixPlanResponse, ArixSellResponse
from iqx.domain.assistant.entities import ChatMessage
from iqx.domain.formatting import (
    PLACEHOLDER,
    format_currency,
    format_date,
    format_number,
    format_percent,
    format_time,
    trend_of,
)
from iqx.domain.market.fibonacci import FibonacciLevel
from iqx.domain.referral.commission_calculator import UplinePayout, total_payout
from iqx.domain.referral.downline import DownlineTreeView
from iqx.domain.referral.entities import CommissionSetting
from iqx.domain.trading.calculators import calculate_allocation, portfolio_metrics
from iqx.domain.trading.entities import VirtualPortfolio
from iqx.interfaces.schemas import (
    AllocationItem,
    ChatMessageItem,
    CommissionCalculatorResponse,
    DownlineRowItem,
    DownlineTreeResponse,
    FibonacciLevelItem,
    FormattedValue,
    HoldRow,
    HoldTable,
    PlanRow,
    PlanTable,
    PortfolioSummaryResponse,
    SellRow,
    SellTable,
    UplinePayoutItem,
)

NO_DATA_MESSAGE = "Không có dữ liệu"
DATETIME_PATTERN = "%H:%M:%S %d/%m/%Y"


def signed_percent(value: Optional[float]) -> FormattedValue:
    return FormattedValue(value=value, display=format_percent(value), trend=trend_of(value))


def signed_amount(value: Optional[float]) -> FormattedValue:
    if value is None:
        return FormattedValue(display=PLACEHOLDER)
    display = format_number(value)
    if value > 0:
        display = f"+{display}"
    return FormattedValue(value=value, display=display, trend=trend_of(value))


def _empty(rows: list) -> Optional[str]:
    return NO_DATA_MESSAGE if not rows else None


# ── ARIX ──────────────────────────────────────────────────────────


def plan_table(response: ArixPlanResponse) -> PlanTable:
    rows = [
        PlanRow(
            symbol=p.symbol,
            buy_price=format_number(p.buy_price),
            stop_loss=format_number(p.stop_loss),
            target=format_number(p.target),
            return_risk=format_number(p.return_risk, max_decimals=2),
            potential_return=signed_percent(return_percent(p.buy_price, p.target)),
            risk=signed_percent(-risk_percent(p.buy_price, p.stop_loss) or 0.0),
        )
        for p in response.positions
    ]
    return PlanTable(
        rows=rows,
        total_positions=response.total_positions,
        last_updated=format_date(response.last_updated, DATETIME_PATTERN),
        empty_message=_empty(rows),
    )


def hold_table(response: ArixHoldResponse) -> HoldTable:
    rows = [
        HoldRow(
            symbol=p.symbol,
            date=p.date,
            price=format_number(p.price),
            volume=format_number(p.volume),
            investment=format_number(p.investment),
            current_price=format_number(p.current_price),
            profit_loss=signed_amount(p.profit_loss),
            profit_loss_percent=signed_percent(p.profit_loss_percent),
        )
        for p in response.positions
    ]
    return HoldTable(
        rows=rows,
        total_positions=response.total_positions,
        total_profit_loss=signed_amount(response.total_profit_loss),
        total_profit_loss_percent=signed_percent(response.total_profit_loss_percent),
        last_updated=format_date(response.last_updated, DATETIME_PATTERN),
        empty_message=_empty(rows),
    )


def sell_table(response: ArixSellResponse) -> SellTable:
    rows = [
        SellRow(
            symbol=t.stock_code,
            buy_date=t.buy_date,
            sell_date=t.sell_date,
            buy_price=format_number(t.buy_price),
            sell_price=format_number(t.sell_price),
            quantity=format_number(t.quantity),
            return_percent=t.return_percent,
            profit_loss=signed_amount(t.profit_loss),
            days_held=t.days_held,
        )
        for t in response.trades
    ]
    return SellTable(
        rows=rows,
        total_trades=response.total_trades,
        last_updated=format_date(response.last_updated, DATETIME_PATTERN),
        empty_message=_empty(rows),
    )


# ── Referral ──────────────────────────────────────────────────────


def downline_tree(
    view: DownlineTreeView, total_downline: Optional[int] = None
) -> DownlineTreeResponse:
    rows = [DownlineRowItem(**row.__dict__) for row in view.visible_rows()]
    return DownlineTreeResponse(
        rows=rows,
        expanded=view.expanded_ids,
        collapsed=view.collapsed_ids,
        total_downline=total_downline,
        empty_message=view.empty_message,
    )


def commission_breakdown(
    setting: CommissionSetting, payouts: list[UplinePayout]
) -> CommissionCalculatorResponse:
    total = total_payout(payouts)
    return CommissionCalculatorResponse(
        setting_id=setting.id,
        setting_name=setting.name,
        payouts=[
            UplinePayoutItem(
                upline_tier=p.upline_tier,
                tier_label=p.tier_label,
                percentage=p.percentage,
                percentage_display=format_percent(p.percentage * 100, show_sign=False),
                commission_per_sale=p.commission_per_sale,
                quantity=p.quantity,
                total_commission=p.total_commission,
                total_display=format_currency(p.total_commission),
            )
            for p in payouts
        ],
        total_commission=total,
        total_display=format_currency(total),
    )


# ── Trading ───────────────────────────────────────────────────────


def portfolio_summary(portfolio: VirtualPortfolio) -> PortfolioSummaryResponse:
    metrics = portfolio_metrics(portfolio)
    return PortfolioSummaryResponse(
        total_asset_value=format_currency(metrics.total_asset_value),
        cash_balance=format_currency(metrics.cash_balance),
        stock_value=format_currency(metrics.stock_value),
        total_pnl=signed_amount(metrics.total_pnl),
        pnl_percentage=signed_percent(metrics.pnl_percentage),
        win_rate=format_percent(metrics.win_rate, decimals=1, show_sign=False),
        total_transactions=metrics.total_transactions,
        successful_trades=metrics.successful_trades,
        allocation=[
            AllocationItem(symbol=s.symbol, percentage=round(s.percentage, 2), value=s.value)
            for s in calculate_allocation(portfolio.holdings, portfolio.cash_balance)
        ],
    )


# ── Market / assistant ────────────────────────────────────────────


def fibonacci_rows(levels: list[FibonacciLevel]) -> list[FibonacciLevelItem]:
    return [
        FibonacciLevelItem(
            level=level.level,
            ratio=level.ratio,
            retracement=round(level.retracement, 2),
            extension=round(level.extension, 2),
        )
        for level in levels
    ]


def chat_message(message: ChatMessage) -> ChatMessageItem:
    return ChatMessageItem(
        id=message.id,
        content=message.content,
        sender=message.sender.value,
        time=format_time(message.timestamp),
        timestamp=message.timestamp.isoformat(),
        type=message.type.value if message.type else None,
        data=message.data,
    )
