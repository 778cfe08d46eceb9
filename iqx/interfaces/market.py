"""
FastAPI router for market data.

Symbols, technical signals, news, screening, peer comparison, price
action, exchange rates and the Fibonacci tool. All routes delegate to
query bindings; error mapping is handled by centralized error handlers.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from iqx.application.queries.market import (
    CurrencyQueries,
    NewsQueries,
    PriceActionQueries,
    ScreeningQueries,
    SignalQueries,
    SymbolQueries,
)
from iqx.domain.market.currency import CURRENCIES, Conversion, ExchangeRateResponse
from iqx.domain.market.fibonacci import fibonacci_levels, retracement_percent
from iqx.domain.market.news import IqxNewsQuery, IqxNewsResponse, NewsResponse
from iqx.domain.market.price_action import calculate_stats, filter_items, sort_items
from iqx.domain.market.screening import PeerComparisonItem, ScreeningData, ScreeningRequest
from iqx.domain.market.signals import (
    SIGNAL_FLAGS,
    SignalDataItem,
    Strength,
    Trend,
    filter_signals,
    signal_alerts,
)
from iqx.domain.market.symbols import (
    AllSymbolsResponse,
    Board,
    SymbolCountResponse,
    SymbolDetailResponse,
    SymbolListResponse,
    SymbolQuery,
    SymbolType,
    SyncSymbolsResponse,
)
from iqx.interfaces.dependencies import (
    get_currency_queries,
    get_news_queries,
    get_price_action_queries,
    get_screening_queries,
    get_signal_queries,
    get_symbol_queries,
)
from iqx.interfaces.schemas import (
    ConvertRequest,
    CurrencyItem,
    ErrorResponse,
    FibonacciRequest,
    FibonacciResponse,
    PriceActionView,
    SignalListResponse,
)
from iqx.interfaces.views import fibonacci_rows

router = APIRouter(prefix="/market", tags=["market"])


def _split_symbols(symbols: str) -> list[str]:
    return [s.strip().upper() for s in symbols.split(",") if s.strip()]


def _symbol_query(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    search: Optional[str] = Query(default=None),
    symbol: Optional[str] = Query(default=None),
    type: Optional[SymbolType] = Query(default=None),
    board: Optional[Board] = Query(default=None),
    include_prices: bool = Query(default=False),
) -> SymbolQuery:
    return SymbolQuery(
        page=page,
        limit=limit,
        search=search,
        symbol=symbol,
        type=type,
        board=board,
        include_prices=include_prices,
    )


# ── Symbols ───────────────────────────────────────────────────────


@router.get(
    "/symbols",
    response_model=SymbolListResponse,
    summary="List symbols",
    description="Paginated symbol catalogue with optional type/board filters.",
)
def list_symbols(
    query: SymbolQuery = Depends(_symbol_query),
    queries: SymbolQueries = Depends(get_symbol_queries),
) -> SymbolListResponse:
    return queries.list_symbols(query)


@router.get("/symbols/all", response_model=AllSymbolsResponse, summary="All symbols")
def all_symbols(
    query: SymbolQuery = Depends(_symbol_query),
    queries: SymbolQueries = Depends(get_symbol_queries),
) -> AllSymbolsResponse:
    return queries.all_symbols(query)


@router.get(
    "/symbols/search",
    response_model=SymbolListResponse,
    responses={422: {"model": ErrorResponse}},
    summary="Search symbols",
)
def search_symbols(
    query: SymbolQuery = Depends(_symbol_query),
    queries: SymbolQueries = Depends(get_symbol_queries),
) -> SymbolListResponse:
    if not query.search:
        raise HTTPException(status_code=422, detail="search is required")
    return queries.search(query)


@router.get("/symbols/count", response_model=SymbolCountResponse, summary="Count symbols")
def count_symbols(queries: SymbolQueries = Depends(get_symbol_queries)) -> SymbolCountResponse:
    return queries.count()


@router.post("/symbols/sync", response_model=SyncSymbolsResponse, summary="Sync symbols")
def sync_symbols(queries: SymbolQueries = Depends(get_symbol_queries)) -> SyncSymbolsResponse:
    return queries.sync()


@router.get(
    "/symbols/{symbol}",
    response_model=SymbolDetailResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Symbol detail",
)
def get_symbol(
    symbol: str,
    include_prices: bool = Query(default=False),
    queries: SymbolQueries = Depends(get_symbol_queries),
) -> SymbolDetailResponse:
    return queries.detail(symbol, include_prices)


# ── Signals ───────────────────────────────────────────────────────


@router.get(
    "/signals",
    response_model=SignalListResponse,
    responses={422: {"model": ErrorResponse}},
    summary="Technical signals",
    description="Signals for comma-separated symbols, optionally filtered.",
)
def get_signals(
    symbols: str = Query(..., description="Comma-separated symbols"),
    trend: Optional[Trend] = Query(default=None),
    strength: Optional[Strength] = Query(default=None),
    has_signal: Optional[str] = Query(default=None, description="One of the signal flags"),
    realtime: bool = Query(default=False, description="Keep refreshing every minute"),
    queries: SignalQueries = Depends(get_signal_queries),
) -> SignalListResponse:
    wanted = _split_symbols(symbols)
    if not wanted:
        raise HTTPException(status_code=422, detail="symbols is required")
    response = queries.realtime(wanted) if realtime else queries.signals(wanted)
    try:
        items = filter_signals(response.data, trend, strength, has_signal)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return SignalListResponse(data=items, count=len(items))


@router.get(
    "/signals/alerts",
    response_model=SignalListResponse,
    summary="Signal alerts",
    description="Symbols currently raising any of the given flags.",
)
def get_signal_alerts(
    symbols: str = Query(..., description="Comma-separated symbols"),
    flags: str = Query(default=",".join(SIGNAL_FLAGS), description="Comma-separated flags"),
    queries: SignalQueries = Depends(get_signal_queries),
) -> SignalListResponse:
    response = queries.realtime(_split_symbols(symbols))
    if response is None:
        return SignalListResponse(data=[], count=0)
    alert_on = {flag.strip(): True for flag in flags.split(",") if flag.strip()}
    items = signal_alerts(response.data, alert_on)
    return SignalListResponse(data=items, count=len(items))


@router.get(
    "/signals/{symbol}",
    response_model=SignalDataItem,
    responses={404: {"model": ErrorResponse}},
    summary="Signal for one symbol",
)
def get_signal(symbol: str, queries: SignalQueries = Depends(get_signal_queries)) -> SignalDataItem:
    return queries.signal(symbol)


# ── News ──────────────────────────────────────────────────────────


@router.get("/news", response_model=NewsResponse, summary="Latest market news")
def latest_news(
    industry: str = Query(default=""),
    page_size: int = Query(default=12, ge=1, le=100),
    queries: NewsQueries = Depends(get_news_queries),
) -> NewsResponse:
    return queries.latest(industry, page_size)


@router.get("/news/iqx", response_model=IqxNewsResponse, summary="IQX news feed")
def iqx_news(
    page: int = Query(default=1, ge=1),
    ticker: Optional[str] = Query(default=None),
    industry: Optional[str] = Query(default=None),
    update_from: Optional[str] = Query(default=None),
    update_to: Optional[str] = Query(default=None),
    sentiment: Optional[str] = Query(default=None),
    newsfrom: Optional[str] = Query(default=None),
    language: str = Query(default="vi"),
    page_size: int = Query(default=12, ge=1, le=100),
    queries: NewsQueries = Depends(get_news_queries),
) -> IqxNewsResponse:
    query = IqxNewsQuery(
        page=page,
        ticker=ticker,
        industry=industry,
        update_from=update_from,
        update_to=update_to,
        sentiment=sentiment,
        newsfrom=newsfrom,
        language=language,
        page_size=page_size,
    )
    return queries.iqx(query)


# ── Screening / peers ─────────────────────────────────────────────


@router.post(
    "/screening",
    response_model=ScreeningData,
    responses={422: {"model": ErrorResponse}},
    summary="Screen stocks",
)
def screen(
    request: ScreeningRequest,
    queries: ScreeningQueries = Depends(get_screening_queries),
) -> ScreeningData:
    return queries.screen(request)


@router.get(
    "/peers/{symbol}",
    response_model=list[PeerComparisonItem],
    summary="Peer comparison",
)
def peers(
    symbol: str, queries: ScreeningQueries = Depends(get_screening_queries)
) -> list[PeerComparisonItem]:
    return queries.peers(symbol)


# ── Price action ──────────────────────────────────────────────────


@router.get(
    "/price-action",
    response_model=PriceActionView,
    responses={422: {"model": ErrorResponse}},
    summary="Price action",
    description="Momentum table with filters, sorting and market statistics.",
)
def price_action(
    min_change_1d: Optional[float] = Query(default=None),
    max_change_1d: Optional[float] = Query(default=None),
    min_volume: Optional[float] = Query(default=None, ge=0),
    ticker: Optional[str] = Query(default=None),
    sort_by: Optional[str] = Query(default=None),
    order: str = Query(default="desc", pattern="^(asc|desc)$"),
    queries: PriceActionQueries = Depends(get_price_action_queries),
) -> PriceActionView:
    data = queries.price_action().data
    items = filter_items(data, min_change_1d, max_change_1d, min_volume, ticker)
    if sort_by:
        try:
            items = sort_items(items, sort_by, order)
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
    return PriceActionView(items=items, stats=calculate_stats(data), total=len(items))


# ── Currency ──────────────────────────────────────────────────────


@router.get("/currencies", response_model=list[CurrencyItem], summary="Supported currencies")
def currencies(group: Optional[str] = Query(default=None)) -> list[CurrencyItem]:
    return [
        CurrencyItem(code=c.code, name=c.name, symbol=c.symbol, flag=c.flag, group=c.group)
        for c in CURRENCIES
        if group is None or c.group == group
    ]


@router.get(
    "/exchange-rate",
    response_model=ExchangeRateResponse,
    responses={422: {"model": ErrorResponse}},
    summary="Exchange rate",
)
def exchange_rate(
    base: str = Query(..., min_length=3, max_length=10),
    target: str = Query(..., min_length=3, max_length=10),
    queries: CurrencyQueries = Depends(get_currency_queries),
) -> ExchangeRateResponse:
    response = queries.exchange_rate(base, target)
    if response is None:
        raise HTTPException(status_code=422, detail="base and target must differ")
    return response


@router.post("/convert", response_model=Conversion, summary="Convert an amount")
def convert_amount(
    request: ConvertRequest,
    queries: CurrencyQueries = Depends(get_currency_queries),
) -> Conversion:
    return queries.convert(request.amount, request.base, request.target)


# ── Tools ─────────────────────────────────────────────────────────


@router.post(
    "/fibonacci",
    response_model=FibonacciResponse,
    responses={422: {"model": ErrorResponse}},
    summary="Fibonacci levels",
)
def fibonacci(request: FibonacciRequest) -> FibonacciResponse:
    if request.low >= request.high:
        raise HTTPException(status_code=422, detail="low must be below high")
    custom = None
    if request.custom_price is not None:
        custom = retracement_percent(
            request.high, request.low, request.custom_price, request.direction
        )
    return FibonacciResponse(
        levels=fibonacci_rows(fibonacci_levels(request.high, request.low, request.direction)),
        custom_price_percent=custom,
    )
