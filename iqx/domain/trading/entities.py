"""
Virtual trading schemas.

Percentages arrive as decimal strings ("-0.0515"); they are kept as
strings on the wire models and converted with parse_percentage.
"""

from enum import Enum
from typing import Any, Optional, Union

from iqx.domain.schema import WireModel

INITIAL_PORTFOLIO_BALANCE = 10_000_000_000


class TransactionType(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class OrderType(str, Enum):
    MARKET = "MARKET"
    LIMIT = "LIMIT"


class TransactionStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class VirtualHolding(WireModel):
    id: str
    portfolio_id: Optional[str] = None
    symbol_code: str
    symbol_name: str
    quantity: int
    average_price: float
    current_price: float
    current_value: float
    unrealized_profit_loss: float
    profit_loss_percentage: Union[str, float]
    total_cost: float
    last_price_update: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class VirtualPortfolio(WireModel):
    id: str
    user_id: str
    cash_balance: float
    total_asset_value: float
    stock_value: float
    total_profit_loss: float
    profit_loss_percentage: Union[str, float]
    total_transactions: int
    successful_trades: int
    is_active: bool
    created_at: str
    updated_at: str
    holdings: list[VirtualHolding] = []


class CreatedPortfolio(WireModel):
    id: str
    cash_balance: float
    total_asset_value: float


class VirtualTransaction(WireModel):
    id: str
    portfolio_id: str
    symbol_code: str
    transaction_type: TransactionType
    quantity: int
    price_per_share: float
    total_amount: float
    fee: float
    tax: float
    net_amount: float
    status: TransactionStatus
    failure_reason: Optional[str] = None
    market_data: Optional[dict[str, Any]] = None
    portfolio_balance_before: float
    portfolio_balance_after: float
    created_at: str
    executed_at: Optional[str] = None


class StockPrice(WireModel):
    symbol: str
    current_price: float
    timestamp: str


class LeaderboardEntry(WireModel):
    rank: int
    user_id: str
    username: str
    total_asset_value: float
    profit_loss: float
    profit_loss_percentage: Union[str, float]
    total_transactions: int
    successful_trades: int
    cash_balance: float
    stock_value: float
    created_at: str
    initial_balance: Optional[float] = None
    total_profit_loss: Optional[float] = None
    win_rate: Optional[float] = None


class OrderRequest(WireModel):
    symbol_code: str
    quantity: int
    order_type: OrderType = OrderType.MARKET
    limit_price: Optional[float] = None


class BuyStockResponse(WireModel):
    transaction_id: str
    symbol_code: str
    quantity: int
    price_per_share: float
    total_amount: float
    fee: float
    net_amount: float
    message: str = ""


class SellStockResponse(BuyStockResponse):
    tax: float


class TransactionsMeta(WireModel):
    page: int
    limit: int
    total: int
    total_pages: int


class PortfolioResponse(WireModel):
    data: VirtualPortfolio
    message: str = ""


class CreatePortfolioResponse(WireModel):
    data: CreatedPortfolio
    message: str = ""


class TransactionsResponse(WireModel):
    data: list[VirtualTransaction]
    meta: TransactionsMeta
    message: str = ""


class PriceResponse(WireModel):
    data: StockPrice
    message: str = ""


class LeaderboardResponse(WireModel):
    data: list[LeaderboardEntry]
    message: str = ""
