"""
Adapter: general IQX chatbot client.
"""

from typing import Any, Optional

from iqx.domain.assistant.entities import SuggestionsResponse
from iqx.domain.errors import DashboardApiError
from iqx.domain.ports import ChatTransport
from iqx.infrastructure.http import ApiHttpClient


class ChatbotClient(ChatTransport):
    """Talks to the public chatbot service. No authentication."""

    def __init__(self, http: ApiHttpClient) -> None:
        self._http = http

    def send(self, message: str, session_id: str, model: Optional[str] = None) -> dict:
        return self._http.post("/api/chat", json={"message": message, "session_id": session_id})

    def get_stock_info(self, symbol: str) -> Any:
        return self._http.get(f"/api/stock/{symbol.upper()}")

    def get_suggestions(self) -> SuggestionsResponse:
        """Starter questions. Any failure yields an empty, unsuccessful reply."""
        try:
            data = self._http.get("/api/suggestions")
            return self._http.parse(SuggestionsResponse, data, "suggestions")
        except DashboardApiError:
            return SuggestionsResponse(success=False, suggestions=[])
