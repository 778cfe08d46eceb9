"""
FastAPI router for virtual trading.

Orders are validated locally before they reach the trading service; a
rejected order comes back as a 400 through the centralized handlers.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from iqx.application.queries.trading import TradingQueries
from iqx.domain.trading.calculators import (
    calculate_trading_cost,
    can_afford_purchase,
    max_purchase_quantity,
)
from iqx.domain.trading.entities import (
    BuyStockResponse,
    CreatePortfolioResponse,
    LeaderboardResponse,
    PortfolioResponse,
    PriceResponse,
    SellStockResponse,
    TransactionsResponse,
    TransactionType,
)
from iqx.interfaces import views
from iqx.interfaces.dependencies import get_trading_queries
from iqx.interfaces.schemas import (
    ErrorResponse,
    PlaceOrderRequest,
    PortfolioSummaryResponse,
    TradingCostResponse,
)

router = APIRouter(prefix="/trading", tags=["trading"])

ORDER_ERRORS = {400: {"model": ErrorResponse}, 422: {"model": ErrorResponse}}


@router.get(
    "/portfolio",
    response_model=PortfolioResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Virtual portfolio",
)
def portfolio(queries: TradingQueries = Depends(get_trading_queries)) -> PortfolioResponse:
    return queries.portfolio()


@router.get(
    "/portfolio/summary",
    response_model=PortfolioSummaryResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Portfolio summary cards",
)
def portfolio_summary(
    queries: TradingQueries = Depends(get_trading_queries),
) -> PortfolioSummaryResponse:
    return views.portfolio_summary(queries.portfolio().data)


@router.post(
    "/portfolio",
    response_model=CreatePortfolioResponse,
    status_code=201,
    summary="Open a virtual portfolio",
)
def create_portfolio(
    queries: TradingQueries = Depends(get_trading_queries),
) -> CreatePortfolioResponse:
    return queries.create_portfolio()


@router.post("/buy", response_model=BuyStockResponse, responses=ORDER_ERRORS, summary="Buy")
def buy(
    request: PlaceOrderRequest, queries: TradingQueries = Depends(get_trading_queries)
) -> BuyStockResponse:
    return queries.buy(
        request.symbol_code, request.quantity, request.order_type, request.limit_price
    )


@router.post("/sell", response_model=SellStockResponse, responses=ORDER_ERRORS, summary="Sell")
def sell(
    request: PlaceOrderRequest, queries: TradingQueries = Depends(get_trading_queries)
) -> SellStockResponse:
    return queries.sell(
        request.symbol_code, request.quantity, request.order_type, request.limit_price
    )


@router.get("/transactions", response_model=TransactionsResponse, summary="Transactions")
def transactions(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    type: Optional[TransactionType] = Query(default=None),
    queries: TradingQueries = Depends(get_trading_queries),
) -> TransactionsResponse:
    return queries.transactions(page, limit, type)


@router.get(
    "/price/{symbol}",
    response_model=PriceResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Current price",
)
def price(symbol: str, queries: TradingQueries = Depends(get_trading_queries)) -> PriceResponse:
    return queries.price(symbol)


@router.get("/leaderboard", response_model=LeaderboardResponse, summary="Leaderboard")
def leaderboard(
    limit: int = Query(default=50, ge=1, le=200),
    sort_by: str = Query(default="percentage", pattern="^(percentage|value)$"),
    queries: TradingQueries = Depends(get_trading_queries),
) -> LeaderboardResponse:
    return queries.leaderboard(limit, sort_by)


@router.get(
    "/cost",
    response_model=TradingCostResponse,
    summary="Trading cost",
    description=(
        "Fee and tax for an order. With `cash_balance`, also whether a buy "
        "is affordable and the largest quantity that is."
    ),
)
def trading_cost(
    quantity: int = Query(..., ge=1),
    price: float = Query(..., gt=0),
    type: TransactionType = Query(default=TransactionType.BUY),
    cash_balance: Optional[float] = Query(default=None, ge=0),
) -> TradingCostResponse:
    cost = calculate_trading_cost(quantity * price, type)
    response = TradingCostResponse(
        total_amount=cost.total_amount, fee=cost.fee, tax=cost.tax, net_amount=cost.net_amount
    )
    if cash_balance is not None and type is TransactionType.BUY:
        affordability = can_afford_purchase(cash_balance, quantity, price)
        response.can_afford = affordability.can_afford
        response.shortfall = affordability.shortfall
        response.max_quantity = max_purchase_quantity(cash_balance, price)
    return response
