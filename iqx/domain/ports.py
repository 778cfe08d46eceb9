"""
Port interfaces (ABCs) shared across bounded contexts.

Ports define the contracts that the domain requires from the outside world.
Infrastructure adapters implement these interfaces.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class ClientStorage(ABC):
    """Port for the key/value client storage (the dashboard's local storage).

    Values are JSON-serializable. Missing keys read as None.
    """

    @abstractmethod
    def get_item(self, key: str) -> Optional[Any]:
        """Return the stored value for key, or None if absent."""
        raise NotImplementedError

    @abstractmethod
    def set_item(self, key: str, value: Any) -> None:
        """Store a JSON-serializable value under key."""
        raise NotImplementedError

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Delete key. Removing a missing key is a no-op."""
        raise NotImplementedError


class ChatTransport(ABC):
    """Port for a remote chat endpoint used by a chat session."""

    @abstractmethod
    def send(self, message: str, session_id: str, model: Optional[str] = None) -> dict:
        """Send a user message and return the raw JSON reply.

        Raises:
            DashboardApiError subclass on HTTP or connection failure.
        """
        raise NotImplementedError
