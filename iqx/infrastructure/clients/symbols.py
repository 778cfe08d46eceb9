"""
Adapter: stock symbol catalogue client.
"""

import logging
from typing import Optional

from iqx.domain.market.symbols import (
    AllSymbolsResponse,
    SymbolCountResponse,
    SymbolDetailResponse,
    SymbolListResponse,
    SymbolQuery,
    SyncSymbolsResponse,
)
from iqx.infrastructure.http import ApiHttpClient

logger = logging.getLogger(__name__)


class SymbolClient:
    """Reads the symbol catalogue from the first-party backend."""

    def __init__(self, http: ApiHttpClient) -> None:
        self._http = http

    def list_symbols(self, query: Optional[SymbolQuery] = None) -> SymbolListResponse:
        query = query or SymbolQuery()
        data = self._http.get("/symbols", params=query.to_params())
        return self._http.parse(SymbolListResponse, data, "symbols")

    def search_symbols(self, query: SymbolQuery) -> SymbolListResponse:
        data = self._http.get("/symbols/search", params=query.to_params())
        return self._http.parse(SymbolListResponse, data, "symbols")

    def get_all_symbols(self, query: Optional[SymbolQuery] = None) -> AllSymbolsResponse:
        query = query or SymbolQuery()
        data = self._http.get("/symbols/all", params=query.to_params(paged=False))
        return self._http.parse(AllSymbolsResponse, data, "symbols")

    def get_symbol(self, symbol: str, include_prices: bool = False) -> SymbolDetailResponse:
        data = self._http.get(
            f"/symbols/{symbol.upper()}",
            params={"includePrices": include_prices},
        )
        return self._http.parse(SymbolDetailResponse, data, "symbol")

    def count_symbols(self) -> SymbolCountResponse:
        data = self._http.get("/symbols/count")
        return self._http.parse(SymbolCountResponse, data, "symbol count")

    def sync_symbols(self) -> SyncSymbolsResponse:
        logger.info("Requesting symbol catalogue sync")
        data = self._http.post("/symbols/sync")
        return self._http.parse(SyncSymbolsResponse, data or {}, "sync")
