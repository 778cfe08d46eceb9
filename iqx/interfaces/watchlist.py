"""
FastAPI router for the user's watchlist.
"""

from fastapi import APIRouter, Depends, Query, Response

from iqx.application.queries.watchlist import WatchlistQueries
from iqx.domain.watchlist.entities import (
    DEFAULT_POPULAR_LIMIT,
    AddToWatchlistRequest,
    AddToWatchlistResponse,
    BatchAddResult,
    CheckWatchlistResponse,
    ClearWatchlistResponse,
    DeleteWatchlistResponse,
    PopularStocksResponse,
    UpdateWatchlistRequest,
    UpdateWatchlistResponse,
    WatchlistStats,
    normalize_symbol_code,
)
from iqx.interfaces.dependencies import get_watchlist_queries
from iqx.interfaces.schemas import (
    BatchAddRequest,
    ErrorResponse,
    ToggleWatchlistResponse,
    WatchlistCount,
    WatchlistItemView,
)

router = APIRouter(prefix="/watchlist", tags=["watchlist"])

NOT_FOUND = {404: {"model": ErrorResponse}}
BAD_REQUEST = {400: {"model": ErrorResponse}}


# ── Reads ─────────────────────────────────────────────────────────


@router.get("", response_model=list[WatchlistItemView], summary="Watchlist")
def watchlist(
    queries: WatchlistQueries = Depends(get_watchlist_queries),
) -> list[WatchlistItemView]:
    return [WatchlistItemView.of(item) for item in queries.items()]


@router.get("/count", response_model=WatchlistCount, summary="Number of watched symbols")
def count(queries: WatchlistQueries = Depends(get_watchlist_queries)) -> WatchlistCount:
    return WatchlistCount(count=queries.count())


@router.get(
    "/alerts",
    response_model=list[WatchlistItemView],
    summary="Items with price alerts enabled",
)
def alerts(
    queries: WatchlistQueries = Depends(get_watchlist_queries),
) -> list[WatchlistItemView]:
    return [WatchlistItemView.of(item) for item in queries.alerts()]


@router.get(
    "/popular",
    response_model=PopularStocksResponse,
    summary="Most watched symbols across users",
)
def popular(
    limit: int = Query(default=DEFAULT_POPULAR_LIMIT, ge=1, le=100),
    queries: WatchlistQueries = Depends(get_watchlist_queries),
) -> PopularStocksResponse:
    return queries.popular(limit)


@router.get(
    "/stats",
    response_model=WatchlistStats,
    summary="Watchlist summary",
    description="Totals, enabled alerts, the five largest sectors and the newest items.",
)
def stats(queries: WatchlistQueries = Depends(get_watchlist_queries)) -> WatchlistStats:
    return queries.stats()


@router.get(
    "/check/{symbol}",
    response_model=CheckWatchlistResponse,
    responses={204: {"description": "Not a valid ticker"}},
    summary="Whether a symbol is watched",
)
def check(symbol: str, queries: WatchlistQueries = Depends(get_watchlist_queries)):
    result = queries.check(symbol)
    if result is None:
        return Response(status_code=204)
    return result


# ── Writes ────────────────────────────────────────────────────────


@router.post(
    "",
    response_model=AddToWatchlistResponse,
    responses={**BAD_REQUEST, **NOT_FOUND, 409: {"model": ErrorResponse}},
    summary="Add a symbol",
)
def add(
    request: AddToWatchlistRequest,
    queries: WatchlistQueries = Depends(get_watchlist_queries),
) -> AddToWatchlistResponse:
    return queries.add(request)


@router.post(
    "/toggle/{symbol}",
    response_model=ToggleWatchlistResponse,
    responses=BAD_REQUEST,
    summary="Add a symbol or remove it",
)
def toggle(
    symbol: str, queries: WatchlistQueries = Depends(get_watchlist_queries)
) -> ToggleWatchlistResponse:
    code = normalize_symbol_code(symbol)
    return ToggleWatchlistResponse(symbol=code, in_watchlist=queries.toggle(code))


@router.post(
    "/batch",
    response_model=BatchAddResult,
    summary="Add several symbols",
    description="Symbols are added one by one; failures are reported, not raised.",
)
def batch_add(
    request: BatchAddRequest,
    queries: WatchlistQueries = Depends(get_watchlist_queries),
) -> BatchAddResult:
    return queries.batch_add(request.symbols)


@router.delete(
    "/symbol/{symbol}",
    response_model=DeleteWatchlistResponse,
    responses=NOT_FOUND,
    summary="Remove a symbol",
)
def remove_symbol(
    symbol: str, queries: WatchlistQueries = Depends(get_watchlist_queries)
) -> DeleteWatchlistResponse:
    return queries.remove_by_symbol(symbol)


@router.delete("", response_model=ClearWatchlistResponse, summary="Clear the watchlist")
def clear(queries: WatchlistQueries = Depends(get_watchlist_queries)) -> ClearWatchlistResponse:
    return queries.clear()


@router.put(
    "/{item_id}",
    response_model=UpdateWatchlistResponse,
    responses={**BAD_REQUEST, **NOT_FOUND},
    summary="Edit an item's name, notes or alerts",
)
def update(
    item_id: str,
    request: UpdateWatchlistRequest,
    queries: WatchlistQueries = Depends(get_watchlist_queries),
) -> UpdateWatchlistResponse:
    return queries.update(item_id, request)


@router.delete(
    "/{item_id}",
    response_model=DeleteWatchlistResponse,
    responses=NOT_FOUND,
    summary="Remove an item",
)
def remove(
    item_id: str, queries: WatchlistQueries = Depends(get_watchlist_queries)
) -> DeleteWatchlistResponse:
    return queries.remove(item_id)
