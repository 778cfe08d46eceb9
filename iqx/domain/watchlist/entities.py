"""
Watchlist schemas and the checks run before a request is sent.
"""

import re
from typing import Optional

from pydantic import Field

from iqx.domain.errors import WatchlistError
from iqx.domain.schema import WireModel

SYMBOL_CODE_PATTERN = re.compile(r"^[A-Z]{3,4}$")
DEFAULT_POPULAR_LIMIT = 10


class WatchlistSymbol(WireModel):
    id: str
    symbol: str
    organ_name: Optional[str] = None
    organ_short_name: Optional[str] = None
    en_organ_name: Optional[str] = None
    en_organ_short_name: Optional[str] = None
    type: str
    board: str


class WatchlistItem(WireModel):
    id: str
    user_id: str
    symbol_id: str
    symbol: WatchlistSymbol
    custom_name: Optional[str] = None
    notes: Optional[str] = None
    alert_price_high: Optional[float] = None
    alert_price_low: Optional[float] = None
    is_alert_enabled: bool = False
    created_at: str
    updated_at: str

    @property
    def display_name(self) -> str:
        return (
            self.custom_name
            or self.symbol.organ_short_name
            or self.symbol.organ_name
            or self.symbol.symbol
        )

    @property
    def has_valid_alert(self) -> bool:
        """Disabled alerts are always valid; enabled ones need a sane bound."""
        if not self.is_alert_enabled:
            return True
        high = self.alert_price_high if self.alert_price_high and self.alert_price_high > 0 else None
        low = self.alert_price_low if self.alert_price_low and self.alert_price_low > 0 else None
        if high is not None and low is not None:
            return high > low
        return high is not None or low is not None


class WatchlistListResponse(WireModel):
    data: list[WatchlistItem]
    count: int = 0
    message: str = ""


class WatchlistCountResponse(WireModel):
    count: int
    message: str = ""


class PopularStock(WireModel):
    symbol: WatchlistSymbol
    count: int


class PopularStocksResponse(WireModel):
    data: list[PopularStock]
    message: str = ""


class CheckWatchlistResponse(WireModel):
    is_in_watchlist: bool
    watchlist_item: Optional[WatchlistItem] = None
    message: str = ""


class AddToWatchlistRequest(WireModel):
    symbol_code: str
    custom_name: Optional[str] = None
    notes: Optional[str] = None


class AddedWatchlistItem(WireModel):
    id: str
    user_id: str
    symbol_id: str
    custom_name: Optional[str] = None
    notes: Optional[str] = None
    created_at: str


class AddToWatchlistResponse(WireModel):
    data: AddedWatchlistItem
    message: str = ""


class UpdateWatchlistRequest(WireModel):
    custom_name: Optional[str] = None
    notes: Optional[str] = None
    alert_price_high: Optional[float] = Field(default=None, ge=0)
    alert_price_low: Optional[float] = Field(default=None, ge=0)
    is_alert_enabled: Optional[bool] = None


class UpdateWatchlistResponse(WireModel):
    data: WatchlistItem
    message: str = ""


class DeleteWatchlistResponse(WireModel):
    message: str = ""


class ClearWatchlistResponse(WireModel):
    deleted_count: int
    message: str = ""


class SectorCount(WireModel):
    sector: str
    count: int


class WatchlistStats(WireModel):
    total_items: int
    alerts_enabled: int
    top_sectors: list[SectorCount]
    recently_added: list[WatchlistItem]


class BatchAddFailure(WireModel):
    symbol: str
    error: str


class BatchAddResult(WireModel):
    successful: list[str] = Field(default_factory=list)
    failed: list[BatchAddFailure] = Field(default_factory=list)


def normalize_symbol_code(symbol_code: Optional[str]) -> str:
    """Trim and upper-case a symbol code.

    Raises:
        WatchlistError: When the code is blank.
    """
    code = (symbol_code or "").strip().upper()
    if not code:
        raise WatchlistError("Symbol code must not be empty", status_code=400)
    return code


def is_valid_symbol_code(symbol_code: Optional[str]) -> bool:
    """Vietnamese tickers are three or four letters."""
    if not symbol_code or not isinstance(symbol_code, str):
        return False
    return bool(SYMBOL_CODE_PATTERN.match(symbol_code.strip().upper()))


def require_item_id(item_id: Optional[str]) -> str:
    if not item_id or not item_id.strip():
        raise WatchlistError("Watchlist item id must not be empty", status_code=400)
    return item_id.strip()


def validate_update(request: UpdateWatchlistRequest) -> UpdateWatchlistRequest:
    """Reject an alert range whose high bound is not above its low bound.

    Raises:
        WatchlistError: With status 400, before any request is sent.
    """
    high, low = request.alert_price_high, request.alert_price_low
    if high and low and high <= low:
        raise WatchlistError(
            "High alert price must be greater than low alert price", status_code=400
        )
    return request
