"""
Watchlist statistics computed from the fetched items.
"""

from collections import Counter

from dateutil.parser import isoparse

from iqx.domain.watchlist.entities import SectorCount, WatchlistItem, WatchlistStats

TOP_SECTORS = 5
RECENTLY_ADDED = 5
OTHER_SECTOR = "Other"

# Rough mapping for the most watched tickers; everything else is "Other".
SECTORS = {
    "VCB": "Banking",
    "ACB": "Banking",
    "VNM": "Consumer Goods",
    "MSN": "Consumer Goods",
    "SAB": "Consumer Goods",
    "VIC": "Real Estate",
    "HPG": "Materials",
    "FPT": "Technology",
    "GAS": "Energy",
    "VJC": "Transportation",
}


def sector_of(symbol: str) -> str:
    return SECTORS.get(symbol.upper(), OTHER_SECTOR)


def compute_stats(items: list[WatchlistItem]) -> WatchlistStats:
    """Totals, alert count, top sectors and the newest items."""
    sectors = Counter(sector_of(item.symbol.symbol) for item in items)
    newest = sorted(items, key=lambda item: isoparse(item.created_at), reverse=True)
    return WatchlistStats(
        total_items=len(items),
        alerts_enabled=sum(1 for item in items if item.is_alert_enabled),
        top_sectors=[
            SectorCount(sector=sector, count=count)
            for sector, count in sectors.most_common(TOP_SECTORS)
        ],
        recently_added=newest[:RECENTLY_ADDED],
    )
