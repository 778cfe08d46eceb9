"""
Virtual trading queries.

The portfolio is kept warm every 30 seconds while it is being watched;
a user without a portfolio gets a 404, which is not retried.
"""

from typing import Optional

from iqx.application.queries import MINUTE, SECOND
from iqx.application.query_client import QueryClient
from iqx.application.refetch import RefetchScheduler
from iqx.domain.errors import DashboardApiError
from iqx.domain.trading.calculators import validate_order
from iqx.domain.trading.entities import (
    BuyStockResponse,
    CreatePortfolioResponse,
    LeaderboardResponse,
    OrderType,
    PortfolioResponse,
    PriceResponse,
    SellStockResponse,
    TransactionsResponse,
    TransactionType,
)
from iqx.infrastructure.clients.trading import VirtualTradingClient

PORTFOLIO = ("virtual-trading", "portfolio")
TRANSACTIONS = ("virtual-trading", "transactions")
LEADERBOARD = ("virtual-trading", "leaderboard")

PORTFOLIO_REFETCH_INTERVAL = 30 * SECOND
LEADERBOARD_REFETCH_INTERVAL = 2 * MINUTE


def retry_unless_missing(failure_count: int, error: DashboardApiError) -> bool:
    if error.status_code == 404:
        return False
    return failure_count < 3


class TradingQueries:
    def __init__(
        self,
        queries: QueryClient,
        client: VirtualTradingClient,
        scheduler: Optional[RefetchScheduler] = None,
    ) -> None:
        self._queries = queries
        self._client = client
        self._scheduler = scheduler

    def portfolio(self) -> PortfolioResponse:
        result = self._queries.fetch(
            PORTFOLIO,
            self._client.get_portfolio,
            stale_time=30 * SECOND,
            gc_time=5 * MINUTE,
            retry=retry_unless_missing,
        )
        self._keep_warm(
            PORTFOLIO, self._client.get_portfolio, PORTFOLIO_REFETCH_INTERVAL, 30 * SECOND, 5 * MINUTE
        )
        return result

    def price(self, symbol: str) -> PriceResponse:
        return self._queries.fetch(
            ("virtual-trading", "price", symbol.strip().upper()),
            lambda: self._client.get_price(symbol),
            stale_time=15 * SECOND,
            gc_time=2 * MINUTE,
        )

    def transactions(
        self,
        page: int = 1,
        limit: int = 20,
        type_: Optional[TransactionType] = None,
    ) -> TransactionsResponse:
        return self._queries.fetch(
            (*TRANSACTIONS, page, limit, type_.value if type_ else None),
            lambda: self._client.get_transactions(page, limit, type_),
            stale_time=MINUTE,
            gc_time=10 * MINUTE,
        )

    def leaderboard(self, limit: int = 50, sort_by: str = "percentage") -> LeaderboardResponse:
        key = (*LEADERBOARD, limit, sort_by)
        fn = lambda: self._client.get_leaderboard(limit, sort_by)  # noqa: E731
        result = self._queries.fetch(key, fn, stale_time=5 * MINUTE, gc_time=15 * MINUTE)
        self._keep_warm(key, fn, LEADERBOARD_REFETCH_INTERVAL, 5 * MINUTE, 15 * MINUTE)
        return result

    def create_portfolio(self) -> CreatePortfolioResponse:
        return self._queries.mutate(self._client.create_portfolio, invalidates=[PORTFOLIO])

    def buy(
        self,
        symbol_code: str,
        quantity: int,
        order_type: OrderType = OrderType.MARKET,
        limit_price: Optional[float] = None,
    ) -> BuyStockResponse:
        """Validate and place a buy order.

        Raises:
            VirtualTradingError: If the order is invalid, before any request.
        """
        order = validate_order(symbol_code, quantity, order_type, limit_price, TransactionType.BUY)
        return self._queries.mutate(
            lambda: self._client.buy(order), invalidates=[PORTFOLIO, TRANSACTIONS]
        )

    def sell(
        self,
        symbol_code: str,
        quantity: int,
        order_type: OrderType = OrderType.MARKET,
        limit_price: Optional[float] = None,
    ) -> SellStockResponse:
        order = validate_order(symbol_code, quantity, order_type, limit_price, TransactionType.SELL)
        return self._queries.mutate(
            lambda: self._client.sell(order), invalidates=[PORTFOLIO, TRANSACTIONS]
        )

    def _keep_warm(self, key: tuple, fn, interval: float, stale_time: float, gc_time: float) -> None:
        # Only called after a successful fetch.
        if self._scheduler is not None and not self._scheduler.is_registered(key):
            self._scheduler.register(
                key, fn, interval=interval, stale_time=stale_time, gc_time=gc_time
            )
