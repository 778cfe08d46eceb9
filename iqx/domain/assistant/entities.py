"""
Chat schemas for both assistants.

The general chatbot replies in snake_case; AriX Pro replies in camelCase
except for its token usage block.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import ConfigDict, Field

from iqx.domain.schema import SnakeWireModel, WireModel

USAGE_WARNING_PERCENT = 80


class Sender(str, Enum):
    USER = "user"
    BOT = "bot"


class MessageType(str, Enum):
    NORMAL = "normal"
    ERROR = "error"


class ChatMessage(SnakeWireModel):
    """One entry in a session's history.

    `data` keeps the raw assistant reply so it survives a storage round trip.
    """

    id: str
    content: str
    sender: Sender
    timestamp: datetime
    data: Optional[dict[str, Any]] = None
    type: Optional[MessageType] = None


# General chatbot


class ChartDataPoint(SnakeWireModel):
    time: str
    open: float
    high: float
    low: float
    close: float
    volume: float


class PriceData(SnakeWireModel):
    chart_ready: bool
    data: list[ChartDataPoint]


class StockContextData(SnakeWireModel):
    model_config = ConfigDict(extra="allow")

    price_data: Optional[PriceData] = None


class ChatQueryAnalysis(SnakeWireModel):
    model_config = ConfigDict(extra="allow")

    intent: Optional[str] = None
    symbols: Optional[list[str]] = None


class ChatResponseData(SnakeWireModel):
    success: bool
    response: str = ""
    session_id: Optional[str] = None
    context_data: Optional[dict[str, StockContextData]] = None
    query_analysis: Optional[ChatQueryAnalysis] = None
    data_sources_used: Optional[list[str]] = None
    error: Optional[str] = None


class SuggestionsResponse(SnakeWireModel):
    success: bool
    suggestions: list[str] = []


# AriX Pro


class StockReport(WireModel):
    title: str
    source: str
    issue_date: str
    recommend: str
    target_price: str
    current_price: Optional[str] = None
    upside: Optional[str] = None
    content: str


class QueryAnalysis(WireModel):
    intent: str
    confidence: float


class TokenUsage(SnakeWireModel):
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


class StockAnalysisResponse(WireModel):
    success: bool
    type: Literal["stock_analysis"]
    ticker: str
    message: str
    reports: list[StockReport]
    total_reports_analyzed: int
    query_analysis: QueryAnalysis
    usage: TokenUsage


class GeneralChatResponse(WireModel):
    success: bool
    type: Literal["general_chat"]
    message: str
    query_analysis: QueryAnalysis
    usage: TokenUsage


ArixProResponse = Annotated[
    Union[StockAnalysisResponse, GeneralChatResponse], Field(discriminator="type")
]


class ArixProChatRequest(WireModel):
    message: str = Field(min_length=1)
    model: Optional[str] = None


class ArixProUsage(WireModel):
    """Quota counters for the signed-in user.

    `reset_date` is an ISO timestamp, or a sentence on the free tier.
    """

    current_usage: int
    limit: int
    remaining: int
    reset_date: str

    @property
    def percentage_used(self) -> float:
        if self.limit <= 0:
            return 100.0
        return self.current_usage / self.limit * 100

    @property
    def is_near_limit(self) -> bool:
        return self.percentage_used >= USAGE_WARNING_PERCENT

    @property
    def is_at_limit(self) -> bool:
        return self.percentage_used >= 100


class ArixProStats(WireModel):
    """Per-day usage statistics. The shape is owned by the server."""

    model_config = ConfigDict(extra="allow")


class RateLimitBody(WireModel):
    message: str = "Rate limit exceeded"
    current_usage: Optional[int] = None
    limit: Optional[int] = None
    reset_date: Optional[str] = None
