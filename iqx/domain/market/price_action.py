"""
Price action schemas and table operations.
"""

from typing import Iterable, Literal, Optional

from pydantic import ConfigDict, Field

from iqx.domain.schema import WireModel

SortOrder = Literal["asc", "desc"]


class PriceActionItem(WireModel):
    """Per-ticker momentum snapshot. Extra upstream fields are kept."""

    model_config = ConfigDict(extra="allow")

    ticker: str
    date: str
    current_price: float
    change_1d: float = Field(alias="change1D")
    change_7d: float = Field(alias="change7D")
    change_30d: float = Field(alias="change30D")
    volume: float
    avg_volume_3m: float = Field(alias="avgVolume3M")
    high_3m: float = Field(alias="high3M")
    percent_from_high_3m: float = Field(alias="percentFromHigh3M")


class PriceActionResponse(WireModel):
    model_config = ConfigDict(extra="allow")

    data: list[PriceActionItem]


class PriceActionStats(WireModel):
    total_stocks: int = 0
    positive_change_1d: int = Field(default=0, alias="positiveChange1D")
    negative_change_1d: int = Field(default=0, alias="negativeChange1D")
    avg_change_1d: float = Field(default=0.0, alias="avgChange1D")
    avg_change_7d: float = Field(default=0.0, alias="avgChange7D")
    avg_change_30d: float = Field(default=0.0, alias="avgChange30D")
    highest_gainer_1d: Optional[PriceActionItem] = Field(default=None, alias="highestGainer1D")
    highest_loser_1d: Optional[PriceActionItem] = Field(default=None, alias="highestLoser1D")


def calculate_stats(items: list[PriceActionItem]) -> PriceActionStats:
    if not items:
        return PriceActionStats()
    count = len(items)
    ranked = sorted(items, key=lambda i: i.change_1d, reverse=True)
    return PriceActionStats(
        total_stocks=count,
        positive_change_1d=sum(1 for i in items if i.change_1d > 0),
        negative_change_1d=sum(1 for i in items if i.change_1d < 0),
        avg_change_1d=sum(i.change_1d for i in items) / count,
        avg_change_7d=sum(i.change_7d for i in items) / count,
        avg_change_30d=sum(i.change_30d for i in items) / count,
        highest_gainer_1d=ranked[0],
        highest_loser_1d=ranked[-1],
    )


def filter_items(
    items: Iterable[PriceActionItem],
    min_change_1d: Optional[float] = None,
    max_change_1d: Optional[float] = None,
    min_volume: Optional[float] = None,
    ticker: Optional[str] = None,
) -> list[PriceActionItem]:
    """Bounds are inclusive; ticker is a case-insensitive substring."""
    result = list(items)
    if min_change_1d is not None:
        result = [i for i in result if i.change_1d >= min_change_1d]
    if max_change_1d is not None:
        result = [i for i in result if i.change_1d <= max_change_1d]
    if min_volume is not None:
        result = [i for i in result if i.volume >= min_volume]
    if ticker:
        term = ticker.upper()
        result = [i for i in result if term in i.ticker.upper()]
    return result


def sort_items(
    items: Iterable[PriceActionItem], sort_by: str, order: SortOrder = "desc"
) -> list[PriceActionItem]:
    """Sort by a field name (snake_case or wire alias).

    Raises:
        ValueError: If the field does not exist.
    """
    field = _resolve_field(sort_by)
    return sorted(items, key=lambda i: getattr(i, field), reverse=order == "desc")


def _resolve_field(name: str) -> str:
    fields = PriceActionItem.model_fields
    if name in fields:
        return name
    for field_name, info in fields.items():
        if info.alias == name:
            return field_name
    raise ValueError(f"Unknown price action field: {name}")
