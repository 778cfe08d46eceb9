"""
Assistant quota and suggestion queries.

Chat exchanges themselves are never cached; they live in the chat
sessions. Sending an AriX Pro message invalidates the usage counters.
"""

from typing import Optional

from iqx.application.queries import MINUTE, SECOND
from iqx.application.query_client import QueryClient
from iqx.domain.assistant.entities import ArixProStats, ArixProUsage, ChatMessage, SuggestionsResponse
from iqx.domain.assistant.session import ArixProChatSession, GeneralChatSession
from iqx.infrastructure.clients.arix_pro import ArixProClient
from iqx.infrastructure.clients.chatbot import ChatbotClient

ARIX_PRO = ("arix-pro",)
USAGE = ("arix-pro", "usage")


class GeneralChatQueries:
    def __init__(
        self, queries: QueryClient, client: ChatbotClient, session: GeneralChatSession
    ) -> None:
        self._queries = queries
        self._client = client
        self.session = session

    def suggestions(self) -> list[str]:
        """At most four suggested prompts; empty when the chatbot is down."""
        response: SuggestionsResponse = self._queries.fetch(
            ("chatbot", "suggestions"),
            self._client.get_suggestions,
            stale_time=10 * MINUTE,
        )
        self.session.set_suggestions(response)
        return self.session.suggestions

    def stock_info(self, symbol: str):
        return self._queries.fetch(
            ("chatbot", "stock", symbol.upper()),
            lambda: self._client.get_stock_info(symbol),
            stale_time=MINUTE,
        )

    def send(self, content: str) -> Optional[ChatMessage]:
        return self.session.send(content)


class ArixProQueries:
    def __init__(
        self, queries: QueryClient, client: ArixProClient, session: ArixProChatSession
    ) -> None:
        self._queries = queries
        self._client = client
        self.session = session

    def usage(self) -> ArixProUsage:
        return self._queries.fetch(USAGE, self._client.get_usage, stale_time=30 * SECOND)

    def stats(self, days: int = 7) -> ArixProStats:
        return self._queries.fetch(
            ("arix-pro", "stats", days),
            lambda: self._client.get_stats(days),
            stale_time=5 * MINUTE,
        )

    def send(self, content: str, model: Optional[str] = None) -> Optional[ChatMessage]:
        reply = self.session.send(content, model=model)
        if reply is not None:
            self._queries.invalidate(ARIX_PRO)
        return reply
