"""
Stock screening and peer comparison schemas.

The screening service answers with a Spring-style page wrapped in an
envelope; only the page is handed to callers.
"""

from typing import Any, Literal, Optional

from pydantic import Field

from iqx.domain.schema import WireModel


class ConditionOption(WireModel):
    """Either a discrete value or a from/to range."""

    type: Optional[Literal["value"]] = None
    value: Optional[str] = None
    from_: Optional[float] = Field(default=None, alias="from")
    to: Optional[float] = None


class FilterItem(WireModel):
    name: str
    extra_name: Optional[str] = None
    condition_options: list[ConditionOption]


class ScreeningRequest(WireModel):
    page: int = Field(default=0, ge=0)
    page_size: int = Field(default=50, gt=0)
    sort_fields: list[str] = []
    sort_orders: list[str] = []
    filter: list[FilterItem] = []


class ScreeningTickerItem(WireModel):
    ticker: str
    exchange: str
    ref_price: Optional[float] = None
    ceiling: Optional[float] = None
    market_price: Optional[float] = None
    floor: Optional[float] = None
    accumulated_value: Optional[float] = None
    accumulated_volume: Optional[float] = None
    market_cap: Optional[float] = None
    daily_price_change_percent: Optional[float] = None
    trading_value_adtv10_days: Optional[float] = Field(default=None, alias="tradingValueAdtv10Days")
    est_volume: Optional[float] = None
    ttm_pb: Optional[float] = None
    ttm_roe: Optional[float] = None
    match_price_time: Optional[str] = None
    ema_time: Optional[str] = None
    rsi: Optional[float] = None
    last_modified_date: Optional[str] = None
    en_organ_name: Optional[str] = None
    en_organ_short_name: Optional[str] = None
    vi_organ_name: Optional[str] = None
    vi_organ_short_name: Optional[str] = None
    icb_code_lv2: Optional[str] = Field(default=None, alias="icbCodeLv2")
    en_sector: Optional[str] = None
    vi_sector: Optional[str] = None
    icb_code_lv4: Optional[str] = Field(default=None, alias="icbCodeLv4")
    stock_strength: Optional[float] = None


class PageableOrder(WireModel):
    direction: str
    property: str
    ignore_case: bool
    null_handling: str
    descending: bool
    ascending: bool


class PageableSort(WireModel):
    orders: list[PageableOrder] = []
    unsorted: bool
    sorted: bool
    empty: bool


class Pageable(WireModel):
    page_number: int
    page_size: int
    sort: PageableSort
    offset: int
    unpaged: bool
    paged: bool


class ScreeningData(WireModel):
    content: list[ScreeningTickerItem]
    pageable: Pageable
    total: int
    total_pages: int
    total_elements: int
    last: bool
    number_of_elements: int
    first: bool
    size: int
    number: int
    sort: PageableSort
    empty: bool


class ScreeningEnvelope(WireModel):
    server_date_time: str
    status: int
    code: int
    msg: str
    exception: Optional[Any] = None
    successful: bool
    data: ScreeningData


class ForecastPair(WireModel):
    """Forward estimates keyed by forecast year."""

    y2025: float = Field(alias="2025F")
    y2026: float = Field(alias="2026F")


class PeerComparisonItem(WireModel):
    id: int
    symbol: str
    stock_symbol_id: Optional[Any] = None
    ticker: str
    market_cap: Optional[Any] = None
    projected_tsr: float = Field(alias="projectedTSR")
    npatmi_growth: ForecastPair
    pe: ForecastPair
    pb: ForecastPair
    sector_type: str
    fetched_at: str
    created_at: str
    updated_at: str
