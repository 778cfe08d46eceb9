"""
Market data queries: symbols, signals, news, screening, peers, price
action and exchange rates.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from iqx.application.queries import MINUTE, HOUR, SECOND
from iqx.application.query_client import QueryClient, freeze, no_retry_on_client_error
from iqx.application.refetch import RefetchScheduler
from iqx.domain.market.currency import Conversion, ExchangeRateData, ExchangeRateResponse, convert
from iqx.domain.market.news import IqxNewsQuery, IqxNewsResponse, NewsResponse
from iqx.domain.market.price_action import PriceActionResponse
from iqx.domain.market.screening import PeerComparisonItem, ScreeningData, ScreeningRequest
from iqx.domain.market.signals import GetSignalsResponse, SignalDataItem
from iqx.domain.market.symbols import (
    AllSymbolsResponse,
    SymbolCountResponse,
    SymbolDetailResponse,
    SymbolListResponse,
    SymbolQuery,
    SyncSymbolsResponse,
)
from iqx.infrastructure.clients.currency import CurrencyClient
from iqx.infrastructure.clients.news import IqxNewsClient, NewsClient
from iqx.infrastructure.clients.price_action import PriceActionClient
from iqx.infrastructure.clients.screening import PeerComparisonClient, ScreeningClient
from iqx.infrastructure.clients.signals import SignalsClient
from iqx.infrastructure.clients.symbols import SymbolClient

logger = logging.getLogger(__name__)


class SymbolQueries:
    """Symbol catalogue reads. Sync invalidates every cached list."""

    def __init__(self, queries: QueryClient, client: SymbolClient) -> None:
        self._queries = queries
        self._client = client

    def list_symbols(self, query: Optional[SymbolQuery] = None) -> SymbolListResponse:
        query = query or SymbolQuery()
        return self._queries.fetch(
            ("symbols", "list", freeze(query.to_params())),
            lambda: self._client.list_symbols(query),
            stale_time=5 * MINUTE,
            gc_time=10 * MINUTE,
        )

    def all_symbols(self, query: Optional[SymbolQuery] = None) -> AllSymbolsResponse:
        query = query or SymbolQuery()
        return self._queries.fetch(
            ("symbols", "all", freeze(query.to_params(paged=False))),
            lambda: self._client.get_all_symbols(query),
            stale_time=30 * MINUTE,
            gc_time=HOUR,
        )

    def search(self, query: SymbolQuery) -> Optional[SymbolListResponse]:
        """Search; disabled until a search term is given."""
        return self._queries.fetch(
            ("symbols", "search", freeze(query.to_params())),
            lambda: self._client.search_symbols(query),
            stale_time=30 * SECOND,
            gc_time=5 * MINUTE,
            enabled=bool(query.search),
        )

    def detail(self, symbol: str, include_prices: bool = False) -> SymbolDetailResponse:
        # Prices move, names do not.
        return self._queries.fetch(
            ("symbols", "detail", symbol.upper(), include_prices),
            lambda: self._client.get_symbol(symbol, include_prices),
            stale_time=MINUTE if include_prices else 10 * MINUTE,
            gc_time=5 * MINUTE if include_prices else 30 * MINUTE,
        )

    def count(self) -> SymbolCountResponse:
        return self._queries.fetch(
            ("symbols", "count"),
            self._client.count_symbols,
            stale_time=HOUR,
            gc_time=2 * HOUR,
        )

    def sync(self) -> SyncSymbolsResponse:
        return self._queries.mutate(self._client.sync_symbols, invalidates=[("symbols",)])


class SignalQueries:
    """Technical signals. Realtime reads are kept warm by the scheduler."""

    REALTIME_INTERVAL = 60 * SECOND

    def __init__(
        self,
        queries: QueryClient,
        client: SignalsClient,
        scheduler: Optional[RefetchScheduler] = None,
    ) -> None:
        self._queries = queries
        self._client = client
        self._scheduler = scheduler

    @staticmethod
    def key(symbols: list[str]) -> tuple:
        return ("signals", *(s.upper() for s in symbols))

    def signals(self, symbols: list[str]) -> Optional[GetSignalsResponse]:
        return self._queries.fetch(
            self.key(symbols),
            lambda: self._client.get_signals(symbols),
            stale_time=MINUTE,
            gc_time=5 * MINUTE,
            enabled=bool(symbols),
        )

    def signal(self, symbol: str) -> SignalDataItem:
        return self._queries.fetch(
            ("signals", "single", symbol.upper()),
            lambda: self._client.get_signal(symbol),
            stale_time=MINUTE,
            gc_time=5 * MINUTE,
        )

    def realtime(self, symbols: list[str]) -> Optional[GetSignalsResponse]:
        """Like `signals` but refreshed in the background every minute."""
        if not symbols:
            return None
        key = ("signals", "realtime", *(s.upper() for s in symbols))
        fn = lambda: self._client.get_signals(symbols)  # noqa: E731
        result = self._queries.fetch(key, fn, stale_time=30 * SECOND, gc_time=5 * MINUTE)
        if self._scheduler is not None and not self._scheduler.is_registered(key):
            self._scheduler.register(
                key, fn, interval=self.REALTIME_INTERVAL, stale_time=30 * SECOND, gc_time=5 * MINUTE
            )
        return result


class NewsQueries:
    def __init__(
        self, queries: QueryClient, news: NewsClient, iqx_news: IqxNewsClient
    ) -> None:
        self._queries = queries
        self._news = news
        self._iqx_news = iqx_news

    def latest(self, industry: str = "", page_size: int = 12) -> NewsResponse:
        return self._queries.fetch(
            ("news", "latest", industry, page_size),
            lambda: self._news.get_latest_news(industry, page_size),
            stale_time=5 * MINUTE,
            gc_time=10 * MINUTE,
        )

    def iqx(self, query: Optional[IqxNewsQuery] = None) -> IqxNewsResponse:
        query = query or IqxNewsQuery()
        return self._queries.fetch(
            ("iqx-news", "info", freeze(query.to_params())),
            lambda: self._iqx_news.get_news(query),
            stale_time=5 * MINUTE,
            gc_time=15 * MINUTE,
            retry=no_retry_on_client_error(2),
        )


class ScreeningQueries:
    def __init__(
        self,
        queries: QueryClient,
        screening: ScreeningClient,
        peers: PeerComparisonClient,
    ) -> None:
        self._queries = queries
        self._screening = screening
        self._peers = peers

    def screen(self, request: ScreeningRequest) -> ScreeningData:
        return self._queries.fetch(
            ("screening", freeze(request.model_dump(mode="json"))),
            lambda: self._screening.screen(request),
            stale_time=5 * MINUTE,
            gc_time=10 * MINUTE,
        )

    def peers(self, symbol: str) -> list[PeerComparisonItem]:
        return self._queries.fetch(
            ("peer-comparison", symbol.upper()),
            lambda: self._peers.get_peers(symbol),
            stale_time=30 * MINUTE,
            gc_time=HOUR,
        )


class PriceActionQueries:
    def __init__(self, queries: QueryClient, client: PriceActionClient) -> None:
        self._queries = queries
        self._client = client

    def price_action(self) -> PriceActionResponse:
        return self._queries.fetch(
            ("price-action",),
            self._client.get_price_action,
            stale_time=5 * MINUTE,
            gc_time=10 * MINUTE,
        )


class CurrencyQueries:
    """Exchange rates. Converting a currency into itself never hits the API."""

    REFETCH_INTERVAL = 5 * MINUTE

    def __init__(
        self,
        queries: QueryClient,
        client: CurrencyClient,
        scheduler: Optional[RefetchScheduler] = None,
    ) -> None:
        self._queries = queries
        self._client = client
        self._scheduler = scheduler

    def exchange_rate(self, base: str, target: str) -> Optional[ExchangeRateResponse]:
        base, target = base.upper(), target.upper()
        key = ("exchange-rate", base, target)
        fn = lambda: self._client.get_exchange_rate(base, target)  # noqa: E731
        enabled = bool(base) and bool(target) and base != target
        result = self._queries.fetch(key, fn, stale_time=MINUTE, enabled=enabled)
        if enabled and self._scheduler is not None and not self._scheduler.is_registered(key):
            self._scheduler.register(key, fn, interval=self.REFETCH_INTERVAL, stale_time=MINUTE)
        return result

    def convert(self, amount: float, base: str, target: str) -> Conversion:
        if base.upper() == target.upper():
            rate = ExchangeRateData(
                base=base.upper(),
                target=target.upper(),
                mid=1.0,
                unit=1,
                timestamp=datetime.now(timezone.utc).isoformat(),
            )
            return convert(amount, rate)
        return convert(amount, self.exchange_rate(base, target).data)
