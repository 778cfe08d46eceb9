"""
Pydantic schemas for the dashboard API.

Requests the domain already models (screening, commission settings, user
admin, subscriptions) are accepted as-is; the schemas here cover request
bodies specific to this API and the view models it returns.
No business logic belongs here.
"""

from typing import Optional

from pydantic import BaseModel, Field

from iqx.domain.extensions.entities import ApiExtensionPackage
from iqx.domain.formatting import format_currency
from iqx.domain.market.fibonacci import TrendDirection
from iqx.domain.market.price_action import PriceActionItem, PriceActionStats
from iqx.domain.market.signals import SignalDataItem
from iqx.domain.trading.entities import OrderType
from iqx.domain.watchlist.entities import WatchlistItem

SYMBOL_DESCRIPTION = "Ticker symbol listed on HSX, HNX or UPCOM"
SYMBOL_PATTERN = r"^[A-Za-z0-9]+$"
SYMBOL_MIN_LEN = 1
SYMBOL_MAX_LEN = 20


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: Optional[str] = None


# ── Market ────────────────────────────────────────────────────────


class FibonacciRequest(BaseModel):
    """Swing high/low and the trend the levels are drawn for.

    Attributes:
        high: Swing high price.
        low: Swing low price, below high.
        direction: "uptrend" or "downtrend".
        custom_price: Optional price whose retracement percent is returned.
    """

    high: float = Field(..., gt=0)
    low: float = Field(..., ge=0)
    direction: TrendDirection = TrendDirection.UPTREND
    custom_price: Optional[float] = Field(default=None, ge=0)


class FibonacciLevelItem(BaseModel):
    level: str
    ratio: float
    retracement: float
    extension: float


class FibonacciResponse(BaseModel):
    levels: list[FibonacciLevelItem]
    custom_price_percent: Optional[float] = None


class ConvertRequest(BaseModel):
    amount: float = Field(..., ge=0)
    base: str = Field(..., min_length=3, max_length=10)
    target: str = Field(..., min_length=3, max_length=10)


class CurrencyItem(BaseModel):
    code: str
    name: str
    symbol: str
    flag: str
    group: str


class PriceActionView(BaseModel):
    """Filtered and sorted rows with statistics over the full list."""

    items: list[PriceActionItem]
    stats: PriceActionStats
    total: int


class SignalListResponse(BaseModel):
    data: list[SignalDataItem]
    count: int


# ── ARIX ──────────────────────────────────────────────────────────


class FormattedValue(BaseModel):
    """A number next to its display string and trend color."""

    value: Optional[float] = None
    display: str
    trend: str = "neutral"


class PlanRow(BaseModel):
    symbol: str
    buy_price: str
    stop_loss: str
    target: str
    return_risk: str
    potential_return: FormattedValue
    risk: FormattedValue


class HoldRow(BaseModel):
    symbol: str
    date: str
    price: str
    volume: str
    investment: str
    current_price: str
    profit_loss: FormattedValue
    profit_loss_percent: FormattedValue


class SellRow(BaseModel):
    symbol: str
    buy_date: str
    sell_date: str
    buy_price: str
    sell_price: str
    quantity: str
    return_percent: str
    profit_loss: FormattedValue
    days_held: int


class PlanTable(BaseModel):
    rows: list[PlanRow]
    total_positions: int
    last_updated: str
    empty_message: Optional[str] = None


class HoldTable(BaseModel):
    rows: list[HoldRow]
    total_positions: int
    total_profit_loss: FormattedValue
    total_profit_loss_percent: FormattedValue
    last_updated: str
    empty_message: Optional[str] = None


class SellTable(BaseModel):
    rows: list[SellRow]
    total_trades: int
    last_updated: str
    empty_message: Optional[str] = None


# ── Referral ──────────────────────────────────────────────────────


class DownlineRowItem(BaseModel):
    id: str
    depth: int
    label: str
    email: str
    level_badge: str
    children_count: int
    total_referrals: int
    commission: str
    joined: str
    has_children: bool
    expanded: bool


class DownlineTreeResponse(BaseModel):
    """Visible rows plus the expand/collapse state to send back on toggle."""

    rows: list[DownlineRowItem]
    expanded: list[str]
    collapsed: list[str]
    total_downline: Optional[int] = None
    empty_message: Optional[str] = None


class ReferralLinkResponse(BaseModel):
    code: Optional[str] = None
    link: Optional[str] = None


class CommissionCalculatorRequest(BaseModel):
    """Seller tier F_n (n >= 1) selling `quantity` packages at `price`.

    When setting_id is omitted the active setting is used.
    """

    price: float = Field(..., gt=0)
    seller_tier: int = Field(..., ge=1, le=20)
    quantity: int = Field(default=1, ge=1)
    setting_id: Optional[str] = None


class UplinePayoutItem(BaseModel):
    upline_tier: str
    tier_label: str
    percentage: float
    percentage_display: str
    commission_per_sale: int
    quantity: int
    total_commission: int
    total_display: str


class CommissionCalculatorResponse(BaseModel):
    setting_id: str
    setting_name: str
    payouts: list[UplinePayoutItem]
    total_commission: int
    total_display: str


# ── Billing ───────────────────────────────────────────────────────


class PendingOrderResponse(BaseModel):
    order_code: Optional[int] = None


class ExpiryDateResponse(BaseModel):
    duration_days: int
    expires_at: str
    display: str


# ── Watchlist ─────────────────────────────────────────────────────


class WatchlistItemView(BaseModel):
    """A watchlist entry with its display name and alert check."""

    item: WatchlistItem
    display_name: str
    alert_valid: bool

    @classmethod
    def of(cls, item: WatchlistItem) -> "WatchlistItemView":
        return cls(item=item, display_name=item.display_name, alert_valid=item.has_valid_alert)


class WatchlistCount(BaseModel):
    count: int


class ToggleWatchlistResponse(BaseModel):
    symbol: str
    in_watchlist: bool


class BatchAddRequest(BaseModel):
    symbols: list[str] = Field(..., min_length=1, max_length=50)


# ── API extensions ────────────────────────────────────────────────


class ExtensionPackageView(BaseModel):
    package: ApiExtensionPackage
    price_per_call: int
    price_display: str

    @classmethod
    def of(cls, package: ApiExtensionPackage) -> "ExtensionPackageView":
        return cls(
            package=package,
            price_per_call=package.price_per_call,
            price_display=format_currency(package.price, package.currency),
        )


class PurchaseExtensionRequest(BaseModel):
    package_id: str = Field(..., min_length=1)
    return_url: Optional[str] = None
    cancel_url: Optional[str] = None


# ── Trading ───────────────────────────────────────────────────────


class PlaceOrderRequest(BaseModel):
    """Order as typed by the user. Checked again before it is sent."""

    symbol_code: str = Field(
        ...,
        min_length=SYMBOL_MIN_LEN,
        max_length=SYMBOL_MAX_LEN,
        pattern=SYMBOL_PATTERN,
        description=SYMBOL_DESCRIPTION,
    )
    quantity: int
    order_type: OrderType = OrderType.MARKET
    limit_price: Optional[float] = None


class AllocationItem(BaseModel):
    symbol: str
    percentage: float
    value: float


class PortfolioSummaryResponse(BaseModel):
    total_asset_value: str
    cash_balance: str
    stock_value: str
    total_pnl: FormattedValue
    pnl_percentage: FormattedValue
    win_rate: str
    total_transactions: int
    successful_trades: int
    allocation: list[AllocationItem]


class TradingCostResponse(BaseModel):
    total_amount: float
    fee: int
    tax: int
    net_amount: float
    max_quantity: Optional[int] = None
    can_afford: Optional[bool] = None
    shortfall: Optional[float] = None


# ── Assistant ─────────────────────────────────────────────────────


class ChatSendRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=4000)


class ArixProSendRequest(ChatSendRequest):
    model: Optional[str] = None


class ChatMessageItem(BaseModel):
    id: str
    content: str
    sender: str
    time: str
    timestamp: str
    type: Optional[str] = None
    data: Optional[dict] = None


class ChatHistoryResponse(BaseModel):
    session_id: str
    is_loading: bool
    messages: list[ChatMessageItem]


class SuggestionsListResponse(BaseModel):
    suggestions: list[str]


class UsageResponse(BaseModel):
    current_usage: int
    limit: int
    remaining: int
    reset_date: str
    percentage_used: float
    is_near_limit: bool
    is_at_limit: bool
