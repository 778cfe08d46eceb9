"""
Adapter: virtual trading client.
"""

import logging
from typing import Optional

from iqx.domain.errors import VirtualTradingError
from iqx.domain.trading.entities import (
    BuyStockResponse,
    CreatePortfolioResponse,
    LeaderboardResponse,
    OrderRequest,
    PortfolioResponse,
    PriceResponse,
    SellStockResponse,
    TransactionsResponse,
    TransactionType,
)
from iqx.infrastructure.http import ApiHttpClient

logger = logging.getLogger(__name__)

DEFAULT_LEADERBOARD_LIMIT = 50
MAX_LEADERBOARD_LIMIT = 100
PRICE_FETCHED_MESSAGE = "Price fetched successfully"


def _order_body(order: OrderRequest) -> dict:
    return order.model_dump(by_alias=True, mode="json", exclude_none=True)


class VirtualTradingClient:
    """Paper-trading portfolio of the signed-in user.

    Orders are expected to have been checked by
    iqx.domain.trading.calculators.validate_order.
    """

    def __init__(self, http: ApiHttpClient) -> None:
        self._http = http

    def create_portfolio(self) -> CreatePortfolioResponse:
        data = self._http.post("/portfolio")
        logger.info("Created virtual portfolio")
        return self._http.parse(CreatePortfolioResponse, data, "portfolio")

    def get_portfolio(self) -> PortfolioResponse:
        data = self._http.get("/portfolio")
        return self._http.parse(PortfolioResponse, data, "portfolio")

    def buy(self, order: OrderRequest) -> BuyStockResponse:
        data = self._http.post("/buy", json=_order_body(order))
        logger.info("Buy order placed: %s x%d", order.symbol_code, order.quantity)
        return self._http.parse(BuyStockResponse, data, "buy order")

    def sell(self, order: OrderRequest) -> SellStockResponse:
        data = self._http.post("/sell", json=_order_body(order))
        logger.info("Sell order placed: %s x%d", order.symbol_code, order.quantity)
        return self._http.parse(SellStockResponse, data, "sell order")

    def get_transactions(
        self,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        type_: Optional[TransactionType] = None,
    ) -> TransactionsResponse:
        params = {"page": page or 1, "limit": limit or 20}
        if type_ is not None:
            params["type"] = type_.value
        data = self._http.get("/transactions", params=params)
        return self._http.parse(TransactionsResponse, data, "transactions")

    def get_price(self, symbol: str) -> PriceResponse:
        """Current price. Accepts both the wrapped and the flat reply."""
        if not symbol or not symbol.strip():
            raise VirtualTradingError("Invalid stock symbol")
        data = self._http.get(f"/price/{symbol.strip().upper()}")
        if isinstance(data, dict) and not data.get("data"):
            data = {
                "data": {
                    "symbol": data.get("symbol"),
                    "currentPrice": data.get("currentPrice"),
                    "timestamp": data.get("timestamp"),
                },
                "message": data.get("message") or PRICE_FETCHED_MESSAGE,
            }
        return self._http.parse(PriceResponse, data, "price")

    def get_leaderboard(
        self, limit: Optional[int] = None, sort_by: Optional[str] = None
    ) -> LeaderboardResponse:
        params = {
            "limit": min(limit or DEFAULT_LEADERBOARD_LIMIT, MAX_LEADERBOARD_LIMIT),
            "sortBy": sort_by or "percentage",
        }
        data = self._http.get("/leaderboard", params=params)
        return self._http.parse(LeaderboardResponse, data, "leaderboard")
