"""
News feed schemas.

Two upstream feeds share the same envelope. The market-wide feed leaves
ticker and media fields nullable; the IQX feed always fills them.
"""

from typing import Optional

from iqx.domain.schema import SnakeWireModel

DEFAULT_PAGE_SIZE = 12
DEFAULT_LANGUAGE = "vi"
SENTIMENT_COLORS = {"Positive": "green", "Negative": "red", "Neutral": "gray"}


class NewsItem(SnakeWireModel):
    id: str
    ticker: Optional[str] = None
    industry: Optional[str] = None
    news_title: str
    news_short_content: Optional[str] = None
    news_source_link: str
    news_image_url: Optional[str] = None
    update_date: str
    news_from: str
    news_from_name: str
    sentiment: str
    score: float
    slug: str
    male_audio_duration: Optional[float] = None
    female_audio_duration: Optional[float] = None

    @property
    def sentiment_color(self) -> str:
        return SENTIMENT_COLORS.get(self.sentiment, "gray")


class IqxNewsItem(NewsItem):
    ticker: str
    industry: str
    news_image_url: str


class NewsResponse(SnakeWireModel):
    total_records: int
    name: str
    news_info: list[NewsItem]


class IqxNewsResponse(SnakeWireModel):
    total_records: int
    name: str
    news_info: list[IqxNewsItem]


class IqxNewsQuery(SnakeWireModel):
    """Filters accepted by the IQX news_info endpoint."""

    page: int = 1
    ticker: Optional[str] = None
    industry: Optional[str] = None
    update_from: Optional[str] = None
    update_to: Optional[str] = None
    sentiment: Optional[str] = None
    newsfrom: Optional[str] = None
    language: str = DEFAULT_LANGUAGE
    page_size: int = DEFAULT_PAGE_SIZE

    def to_params(self) -> dict:
        """Query string parameters; unset filters are left out."""
        return {k: v for k, v in self.model_dump().items() if v not in (None, "")}
