"""
ARIX hub queries.

The three sheets change a few times a day, so each is cached for an hour.
Lookups by symbol and statistics are derived from the cached sheet rather
than fetched separately.
"""

from iqx.application.queries import HOUR
from iqx.application.query_client import QueryClient
from iqx.domain.arix import calculators
from iqx.domain.arix.entities import (
    ArixHoldPosition,
    ArixHoldResponse,
    ArixPlanPosition,
    ArixPlanResponse,
    ArixSellResponse,
    ArixSellTrade,
    HoldStatistics,
    PlanStatistics,
    SellStatistics,
)
from iqx.infrastructure.clients.arix_sheets import ArixSheetsClient

PLAN_KEY = ("arix-plan-positions",)
HOLD_KEY = ("arix-hold-positions",)
SELL_KEY = ("arix-sell-trades",)


class ArixQueries:
    def __init__(self, queries: QueryClient, client: ArixSheetsClient) -> None:
        self._queries = queries
        self._client = client

    def plan(self) -> ArixPlanResponse:
        return self._queries.fetch(PLAN_KEY, self._client.get_plan, stale_time=HOUR, gc_time=HOUR)

    def hold(self) -> ArixHoldResponse:
        return self._queries.fetch(HOLD_KEY, self._client.get_hold, stale_time=HOUR, gc_time=HOUR)

    def sell(self) -> ArixSellResponse:
        return self._queries.fetch(SELL_KEY, self._client.get_sell, stale_time=HOUR, gc_time=HOUR)

    def plan_for_symbol(self, symbol: str) -> list[ArixPlanPosition]:
        return calculators.filter_by_symbol(self.plan().positions, symbol)

    def hold_for_symbol(self, symbol: str) -> list[ArixHoldPosition]:
        return calculators.filter_by_symbol(self.hold().positions, symbol)

    def sell_for_symbol(self, symbol: str) -> list[ArixSellTrade]:
        return calculators.filter_by_symbol(self.sell().trades, symbol, "stock_code")

    def plan_statistics(self) -> PlanStatistics:
        return calculators.plan_statistics(self.plan().positions)

    def hold_statistics(self) -> HoldStatistics:
        return calculators.hold_statistics(self.hold().positions)

    def sell_statistics(self) -> SellStatistics:
        return calculators.sell_statistics(self.sell().trades)

    def refresh(self) -> None:
        """Drop every cached sheet so the next read goes to the spreadsheet."""
        self._queries.invalidate(PLAN_KEY, HOLD_KEY, SELL_KEY)
