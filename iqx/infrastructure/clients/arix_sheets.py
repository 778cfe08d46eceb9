"""
Adapter: ARIX hub spreadsheet client.

The PLAN, HOLD and SELL logs are ranges of one spreadsheet. Holdings are
enriched with the latest close from the market gap-chart endpoint; if
that endpoint fails the holdings are returned without current prices.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Optional

from pydantic import TypeAdapter

from iqx.domain.arix.calculators import (
    merge_market_prices,
    parse_hold_rows,
    parse_plan_rows,
    parse_sell_rows,
)
from iqx.domain.arix.entities import (
    ArixHoldResponse,
    ArixPlanResponse,
    ArixSellResponse,
    MarketPriceSeries,
    SheetValues,
)
from iqx.domain.errors import ArixHoldError, ArixPlanError, ArixSellError, DashboardApiError
from iqx.infrastructure.http import ApiHttpClient

logger = logging.getLogger(__name__)

PLAN_RANGE = "ArixPlan"
HOLD_RANGE = "ArixHold"
SELL_RANGE = "ARIXSELL"

MARKET_PRICE_HEADERS = {
    "Referer": "https://trading.vietcap.com.vn/",
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
}

_price_series = TypeAdapter(list[MarketPriceSeries])


class MarketPriceClient:
    """Latest one-minute closes for a set of symbols."""

    def __init__(self, http: ApiHttpClient) -> None:
        self._http = http

    def latest_closes(self, symbols: list[str]) -> dict[str, float]:
        """Map symbol -> last close. Any failure yields an empty map."""
        unique = list(dict.fromkeys(symbols))
        if not unique:
            return {}
        body = {
            "timeFrame": "ONE_MINUTE",
            "symbols": unique,
            "to": int(time.time() * 1000),
            "countBack": len(unique),
        }
        try:
            data = self._http.post("", json=body)
            series = self._http.parse(_price_series, data, "market price")
        except DashboardApiError as exc:
            logger.warning("Market prices unavailable: %s", exc.message)
            return {}
        return {item.symbol: item.c[-1] for item in series if item.c}


class ArixSheetsClient:
    """Reads the ARIX logs and turns rows into records."""

    def __init__(
        self,
        http: ApiHttpClient,
        spreadsheet_id: str,
        api_key: Optional[str] = None,
        market_prices: Optional[MarketPriceClient] = None,
    ) -> None:
        self._http = http
        self._spreadsheet_id = spreadsheet_id
        self._api_key = api_key
        self._market_prices = market_prices

    def _values(self, range_name: str, error_type: type) -> SheetValues:
        params = {"key": self._api_key} if self._api_key else None
        try:
            data = self._http.get(
                f"/{self._spreadsheet_id}/values/{range_name}", params=params
            )
        except DashboardApiError as exc:
            raise error_type(
                f"Failed to fetch {range_name} data: {exc.message}",
                status_code=exc.status_code,
            ) from exc
        try:
            return self._http.parse(SheetValues, data, f"{range_name} sheet")
        except DashboardApiError as exc:
            raise error_type(exc.message) from exc

    def get_plan(self) -> ArixPlanResponse:
        positions = parse_plan_rows(self._values(PLAN_RANGE, ArixPlanError).values)
        logger.info("Loaded %d ARIX plan positions", len(positions))
        return ArixPlanResponse(
            positions=positions,
            total_positions=len(positions),
            last_updated=datetime.now(timezone.utc),
        )

    def get_hold(self) -> ArixHoldResponse:
        positions = parse_hold_rows(self._values(HOLD_RANGE, ArixHoldError).values)
        prices = {}
        if self._market_prices is not None:
            prices = self._market_prices.latest_closes([p.symbol for p in positions])
        merged, total_pl, total_pct = merge_market_prices(positions, prices)
        logger.info(
            "Loaded %d ARIX holdings, %d with market prices", len(merged), len(prices)
        )
        return ArixHoldResponse(
            positions=merged,
            total_positions=len(merged),
            last_updated=datetime.now(timezone.utc),
            total_profit_loss=total_pl,
            total_profit_loss_percent=total_pct,
        )

    def get_sell(self) -> ArixSellResponse:
        trades = parse_sell_rows(self._values(SELL_RANGE, ArixSellError).values)
        logger.info("Loaded %d ARIX closed trades", len(trades))
        return ArixSellResponse(
            trades=trades,
            total_trades=len(trades),
            last_updated=datetime.now(timezone.utc),
        )
