"""
FastAPI router for the two chat assistants.

The general chatbot and AriX Pro each keep one server-side session with
persisted history. Sends go through the heavy rate limit.
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Request, Response

from iqx.application.queries.assistant import ArixProQueries, GeneralChatQueries
from iqx.domain.assistant.entities import ArixProStats, ChatMessage
from iqx.domain.assistant.session import ChatSession
from iqx.interfaces import views
from iqx.interfaces.dependencies import get_arix_pro_queries, get_general_chat_queries
from iqx.interfaces.schemas import (
    ArixProSendRequest,
    ChatHistoryResponse,
    ChatMessageItem,
    ChatSendRequest,
    ErrorResponse,
    SuggestionsListResponse,
    UsageResponse,
)
from iqx.shared.security.rate_limiting import HEAVY_RATE_LIMIT, limiter

router = APIRouter(prefix="/assistant", tags=["assistant"])

SEND_RESPONSES = {
    204: {"description": "Blank message or a send already in flight"},
    429: {"model": ErrorResponse},
}


def _history(session: ChatSession) -> ChatHistoryResponse:
    return ChatHistoryResponse(
        session_id=session.session_id,
        is_loading=session.is_loading,
        messages=[views.chat_message(m) for m in session.messages],
    )


def _reply(message: Optional[ChatMessage]):
    if message is None:
        return Response(status_code=204)
    return views.chat_message(message)


# ── General chat ──────────────────────────────────────────────────


@router.post(
    "/chat",
    response_model=ChatMessageItem,
    responses=SEND_RESPONSES,
    summary="Ask the chatbot",
    description="Returns the bot's reply. Failures come back as an error message entry.",
)
@limiter.limit(HEAVY_RATE_LIMIT)
def send_chat(
    request: Request,
    body: ChatSendRequest,
    queries: GeneralChatQueries = Depends(get_general_chat_queries),
):
    return _reply(queries.send(body.message))


@router.get("/chat/history", response_model=ChatHistoryResponse, summary="Chat history")
def chat_history(
    queries: GeneralChatQueries = Depends(get_general_chat_queries),
) -> ChatHistoryResponse:
    return _history(queries.session)


@router.delete("/chat/history", status_code=204, summary="Clear the chat")
def clear_chat(queries: GeneralChatQueries = Depends(get_general_chat_queries)) -> None:
    queries.session.clear()


@router.get(
    "/chat/suggestions",
    response_model=SuggestionsListResponse,
    summary="Suggested questions",
)
def suggestions(
    queries: GeneralChatQueries = Depends(get_general_chat_queries),
) -> SuggestionsListResponse:
    return SuggestionsListResponse(suggestions=queries.suggestions())


@router.get("/chat/stock/{symbol}", summary="Chatbot stock info")
def stock_info(
    symbol: str, queries: GeneralChatQueries = Depends(get_general_chat_queries)
) -> Any:
    return queries.stock_info(symbol)


# ── AriX Pro ──────────────────────────────────────────────────────


@router.post(
    "/arix-pro/chat",
    response_model=ChatMessageItem,
    responses=SEND_RESPONSES,
    summary="Ask AriX Pro",
)
@limiter.limit(HEAVY_RATE_LIMIT)
def send_arix_pro(
    request: Request,
    body: ArixProSendRequest,
    queries: ArixProQueries = Depends(get_arix_pro_queries),
):
    return _reply(queries.send(body.message, body.model))


@router.get("/arix-pro/history", response_model=ChatHistoryResponse, summary="AriX Pro history")
def arix_pro_history(
    queries: ArixProQueries = Depends(get_arix_pro_queries),
) -> ChatHistoryResponse:
    return _history(queries.session)


@router.delete("/arix-pro/history", status_code=204, summary="Clear the AriX Pro chat")
def clear_arix_pro(queries: ArixProQueries = Depends(get_arix_pro_queries)) -> None:
    queries.session.clear()


@router.get("/arix-pro/usage", response_model=UsageResponse, summary="AriX Pro quota")
def arix_pro_usage(queries: ArixProQueries = Depends(get_arix_pro_queries)) -> UsageResponse:
    usage = queries.usage()
    return UsageResponse(
        current_usage=usage.current_usage,
        limit=usage.limit,
        remaining=usage.remaining,
        reset_date=usage.reset_date,
        percentage_used=round(usage.percentage_used, 2),
        is_near_limit=usage.is_near_limit,
        is_at_limit=usage.is_at_limit,
    )


@router.get("/arix-pro/stats", response_model=ArixProStats, summary="AriX Pro usage stats")
def arix_pro_stats(
    days: int = 7, queries: ArixProQueries = Depends(get_arix_pro_queries)
) -> ArixProStats:
    return queries.stats(days)
