"""
Symbol catalogue schemas.

A symbol is a listed instrument (stock, bond or futures contract) on one
of the three Vietnamese boards. The catalogue itself uses snake_case
names; the optional price fields come back in camelCase and are only
present when the caller asked for them.
"""

from enum import Enum
from typing import Optional

from pydantic import Field

from iqx.domain.schema import SnakeWireModel, WireModel

MAX_PAGE_SIZE = 100


class SymbolType(str, Enum):
    STOCK = "STOCK"
    BOND = "BOND"
    FU = "FU"


class Board(str, Enum):
    HSX = "HSX"
    HNX = "HNX"
    UPCOM = "UPCOM"


TYPE_DISPLAY_NAMES = {
    SymbolType.STOCK: "Cổ phiếu",
    SymbolType.BOND: "Trái phiếu",
    SymbolType.FU: "Phái sinh",
}


class Symbol(SnakeWireModel):
    """A listed instrument with its display names."""

    id: int
    symbol: str
    type: SymbolType
    board: Board
    en_organ_name: Optional[str] = None
    organ_short_name: Optional[str] = None
    organ_name: Optional[str] = None
    product_grp_id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def display_name(self) -> str:
        """Best available human-readable name, falling back to the ticker."""
        return self.organ_short_name or self.organ_name or self.en_organ_name or self.symbol


class SymbolWithPrice(Symbol):
    current_price: Optional[float] = Field(default=None, alias="currentPrice")
    open_price: Optional[float] = Field(default=None, alias="openPrice")
    high_price: Optional[float] = Field(default=None, alias="highPrice")
    low_price: Optional[float] = Field(default=None, alias="lowPrice")
    volume: Optional[float] = None
    percentage_change: Optional[float] = Field(default=None, alias="percentageChange")
    previous_close_price: Optional[float] = Field(default=None, alias="previousClosePrice")
    price_updated_at: Optional[str] = Field(default=None, alias="priceUpdatedAt")


class SymbolQuery(WireModel):
    """Filters shared by the list, search and all endpoints."""

    page: int = 1
    limit: int = 20
    search: Optional[str] = None
    symbol: Optional[str] = None
    type: Optional[SymbolType] = None
    board: Optional[Board] = None
    include_prices: bool = False

    def to_params(self, paged: bool = True) -> dict:
        params = self.model_dump(by_alias=True, mode="json", exclude_none=True)
        if paged:
            params["limit"] = min(self.limit or 20, MAX_PAGE_SIZE)
        else:
            params.pop("page", None)
            params.pop("limit", None)
        return params


class PaginationMeta(WireModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_previous_page: bool = False
    has_next_page: bool = False


class SymbolListResponse(WireModel):
    data: list[SymbolWithPrice]
    meta: PaginationMeta
    message: str = ""


class AllSymbolsResponse(WireModel):
    data: list[SymbolWithPrice]
    count: int
    message: str = ""


class SymbolDetailResponse(WireModel):
    data: Optional[SymbolWithPrice] = None
    message: str = ""


class SymbolCountResponse(WireModel):
    count: int
    message: str = ""


class SyncSymbolsResponse(WireModel):
    message: str = ""
