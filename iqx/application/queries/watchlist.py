"""
Watchlist queries.

Every write invalidates everything under the "watchlist" prefix, so the
list, the count, the alerts and the per-symbol checks refetch together.
"""

import logging
from typing import Optional

from iqx.application.queries import HOUR, MINUTE
from iqx.application.query_client import QueryClient
from iqx.domain.errors import WatchlistError
from iqx.domain.watchlist.entities import (
    AddToWatchlistRequest,
    AddToWatchlistResponse,
    BatchAddFailure,
    BatchAddResult,
    CheckWatchlistResponse,
    ClearWatchlistResponse,
    DeleteWatchlistResponse,
    PopularStocksResponse,
    UpdateWatchlistRequest,
    UpdateWatchlistResponse,
    WatchlistItem,
    WatchlistStats,
    is_valid_symbol_code,
)
from iqx.domain.watchlist.stats import compute_stats
from iqx.infrastructure.clients.watchlist import WatchlistClient

logger = logging.getLogger(__name__)

WATCHLIST = ("watchlist",)
LIST = ("watchlist", "list")
COUNT = ("watchlist", "count")
ALERTS = ("watchlist", "alerts")


def check_key(symbol_code: str) -> tuple:
    return ("watchlist", "check", symbol_code.strip().upper())


class WatchlistQueries:
    def __init__(self, queries: QueryClient, client: WatchlistClient) -> None:
        self._queries = queries
        self._client = client

    def items(self) -> list[WatchlistItem]:
        return self._queries.fetch(
            LIST, self._client.get_watchlist, stale_time=2 * MINUTE, gc_time=15 * MINUTE
        )

    def count(self) -> int:
        return self._queries.fetch(
            COUNT, self._client.get_count, stale_time=5 * MINUTE, gc_time=30 * MINUTE
        )

    def alerts(self) -> list[WatchlistItem]:
        return self._queries.fetch(
            ALERTS, self._client.get_alerts, stale_time=MINUTE, gc_time=10 * MINUTE
        )

    def popular(self, limit: int = 10) -> PopularStocksResponse:
        return self._queries.fetch(
            ("watchlist", "popular", limit),
            lambda: self._client.get_popular(limit),
            stale_time=30 * MINUTE,
            gc_time=HOUR,
        )

    def check(self, symbol_code: str) -> Optional[CheckWatchlistResponse]:
        """Membership of one symbol; None for a code that is not a ticker."""
        return self._queries.fetch(
            check_key(symbol_code or ""),
            lambda: self._client.check(symbol_code),
            stale_time=MINUTE,
            gc_time=5 * MINUTE,
            enabled=is_valid_symbol_code(symbol_code),
        )

    def stats(self) -> WatchlistStats:
        return compute_stats(self.items())

    def add(self, request: AddToWatchlistRequest) -> AddToWatchlistResponse:
        return self._queries.mutate(lambda: self._client.add(request), invalidates=[WATCHLIST])

    def update(self, item_id: str, request: UpdateWatchlistRequest) -> UpdateWatchlistResponse:
        return self._queries.mutate(
            lambda: self._client.update(item_id, request), invalidates=[WATCHLIST]
        )

    def remove(self, item_id: str) -> DeleteWatchlistResponse:
        return self._queries.mutate(lambda: self._client.remove(item_id), invalidates=[WATCHLIST])

    def remove_by_symbol(self, symbol_code: str) -> DeleteWatchlistResponse:
        return self._queries.mutate(
            lambda: self._client.remove_by_symbol(symbol_code), invalidates=[WATCHLIST]
        )

    def clear(self) -> ClearWatchlistResponse:
        return self._queries.mutate(self._client.clear, invalidates=[WATCHLIST])

    def toggle(self, symbol_code: str) -> bool:
        """Add the symbol if it is missing, remove it otherwise.

        Returns whether the symbol is in the watchlist afterwards.
        """
        checked = self.check(symbol_code)
        if checked is not None and checked.is_in_watchlist:
            self.remove_by_symbol(symbol_code)
            return False
        self.add(AddToWatchlistRequest(symbol_code=symbol_code))
        return True

    def batch_add(self, symbol_codes: list[str]) -> BatchAddResult:
        """Add each symbol in turn; one failure does not stop the rest."""
        result = BatchAddResult()
        for code in symbol_codes:
            try:
                self._client.add(AddToWatchlistRequest(symbol_code=code))
            except WatchlistError as exc:
                result.failed.append(BatchAddFailure(symbol=code, error=exc.message))
            else:
                result.successful.append(code)
        if result.successful:
            self._queries.invalidate(WATCHLIST)
        if result.failed:
            logger.warning("%d of %d symbols could not be added", len(result.failed), len(symbol_codes))
        return result
