"""
Adapter: news feed clients (market-wide feed and IQX feed).
"""

from typing import Optional

from iqx.domain.market.news import (
    DEFAULT_LANGUAGE,
    DEFAULT_PAGE_SIZE,
    IqxNewsQuery,
    IqxNewsResponse,
    NewsResponse,
)
from iqx.infrastructure.http import ApiHttpClient


class NewsClient:
    """Latest market news from the aggregator."""

    def __init__(self, http: ApiHttpClient) -> None:
        self._http = http

    def get_latest_news(
        self, industry: str = "", page_size: int = DEFAULT_PAGE_SIZE
    ) -> NewsResponse:
        data = self._http.get(
            "/news_info",
            params={"industry": industry, "language": DEFAULT_LANGUAGE, "page_size": page_size},
        )
        return self._http.parse(NewsResponse, data, "news")


class IqxNewsClient:
    """Filterable news from the IQX proxy."""

    def __init__(self, http: ApiHttpClient) -> None:
        self._http = http

    def get_news(self, query: Optional[IqxNewsQuery] = None) -> IqxNewsResponse:
        query = query or IqxNewsQuery()
        data = self._http.get("/news_info", params=query.to_params())
        return self._http.parse(IqxNewsResponse, data, "news")
