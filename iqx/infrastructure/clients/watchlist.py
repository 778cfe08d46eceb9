"""
Adapter: watchlist client.

Symbol codes are trimmed and upper-cased before they reach the backend.
A 404 or 409 from a write is rewritten into a message naming the symbol
or item it was about.
"""

import logging
from typing import Optional

from iqx.domain.errors import WatchlistError
from iqx.domain.watchlist.entities import (
    DEFAULT_POPULAR_LIMIT,
    AddToWatchlistRequest,
    AddToWatchlistResponse,
    CheckWatchlistResponse,
    ClearWatchlistResponse,
    DeleteWatchlistResponse,
    PopularStocksResponse,
    UpdateWatchlistRequest,
    UpdateWatchlistResponse,
    WatchlistCountResponse,
    WatchlistItem,
    WatchlistListResponse,
    normalize_symbol_code,
    require_item_id,
    validate_update,
)
from iqx.infrastructure.http import ApiHttpClient

logger = logging.getLogger(__name__)

BASE_PATH = "/watchlist"
ITEM_NOT_FOUND = "Watchlist item does not exist or does not belong to you"


def _rewrite(exc: WatchlistError, messages: dict[int, str]) -> WatchlistError:
    message = messages.get(exc.status_code)
    if message is None:
        return exc
    rewritten = WatchlistError(
        message, status_code=exc.status_code, code=exc.code, errors=exc.errors
    )
    rewritten.body = exc.body
    return rewritten


class WatchlistClient:
    def __init__(self, http: ApiHttpClient) -> None:
        self._http = http

    def get_watchlist(self) -> list[WatchlistItem]:
        data = self._http.get(BASE_PATH)
        return self._http.parse(WatchlistListResponse, data, "watchlist").data

    def get_count(self) -> int:
        data = self._http.get(f"{BASE_PATH}/count")
        return self._http.parse(WatchlistCountResponse, data, "watchlist count").count

    def get_alerts(self) -> list[WatchlistItem]:
        """Items with price alerts enabled."""
        data = self._http.get(f"{BASE_PATH}/alerts")
        return self._http.parse(WatchlistListResponse, data, "watchlist alerts").data

    def get_popular(self, limit: Optional[int] = None) -> PopularStocksResponse:
        data = self._http.get(f"{BASE_PATH}/popular", params={"limit": limit or DEFAULT_POPULAR_LIMIT})
        return self._http.parse(PopularStocksResponse, data, "popular stocks")

    def check(self, symbol_code: str) -> CheckWatchlistResponse:
        code = normalize_symbol_code(symbol_code)
        data = self._http.get(f"{BASE_PATH}/check/{code}")
        return self._http.parse(CheckWatchlistResponse, data, "watchlist check")

    def add(self, request: AddToWatchlistRequest) -> AddToWatchlistResponse:
        code = normalize_symbol_code(request.symbol_code)
        body = request.model_copy(update={"symbol_code": code})
        try:
            data = self._http.post(BASE_PATH, json=body.model_dump(by_alias=True, exclude_none=True))
        except WatchlistError as exc:
            raise _rewrite(exc, {
                404: f"Symbol {code} does not exist",
                409: f"Symbol {code} is already in the watchlist",
            }) from exc
        logger.info("Added %s to the watchlist", code)
        return self._http.parse(AddToWatchlistResponse, data, "watchlist item")

    def update(self, item_id: str, request: UpdateWatchlistRequest) -> UpdateWatchlistResponse:
        item_id = require_item_id(item_id)
        validate_update(request)
        try:
            data = self._http.put(
                f"{BASE_PATH}/{item_id}",
                json=request.model_dump(by_alias=True, exclude_none=True),
            )
        except WatchlistError as exc:
            raise _rewrite(exc, {404: ITEM_NOT_FOUND}) from exc
        return self._http.parse(UpdateWatchlistResponse, data, "watchlist item")

    def remove(self, item_id: str) -> DeleteWatchlistResponse:
        item_id = require_item_id(item_id)
        try:
            data = self._http.delete(f"{BASE_PATH}/{item_id}")
        except WatchlistError as exc:
            raise _rewrite(exc, {404: ITEM_NOT_FOUND}) from exc
        return self._http.parse(DeleteWatchlistResponse, data or {}, "watchlist delete")

    def remove_by_symbol(self, symbol_code: str) -> DeleteWatchlistResponse:
        code = normalize_symbol_code(symbol_code)
        try:
            data = self._http.delete(f"{BASE_PATH}/symbol/{code}")
        except WatchlistError as exc:
            raise _rewrite(exc, {404: f"Symbol {code} is not in the watchlist"}) from exc
        logger.info("Removed %s from the watchlist", code)
        return self._http.parse(DeleteWatchlistResponse, data or {}, "watchlist delete")

    def clear(self) -> ClearWatchlistResponse:
        data = self._http.delete(BASE_PATH)
        response = self._http.parse(ClearWatchlistResponse, data, "watchlist clear")
        logger.info("Cleared %d watchlist items", response.deleted_count)
        return response
