"""
Chat session managers.

A session owns an append-only message history, a loading flag and a
session id sent with every request. History is persisted to client
storage as a JSON array and reloaded (timestamps included) on start.

The general chatbot and AriX Pro share the send/persist/clear flow but
diverge on how replies and failures are turned into messages, so each
has its own subclass.
"""

import logging
import random
import string
import threading
import time
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import TypeAdapter, ValidationError

from iqx.domain.assistant.entities import (
    ArixProResponse,
    ChatMessage,
    ChatResponseData,
    MessageType,
    Sender,
    SuggestionsResponse,
)
from iqx.domain.errors import DashboardApiError
from iqx.domain.ports import ChatTransport, ClientStorage

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 4

GENERIC_APOLOGY = "Xin lỗi, đã có lỗi xảy ra. Vui lòng thử lại."
NOT_FOUND_MESSAGE = "Không tìm thấy thông tin yêu cầu."
SERVER_ERROR_MESSAGE = "Lỗi server. Vui lòng thử lại sau."
UNKNOWN_ERROR_MESSAGE = "Đã xảy ra lỗi. Vui lòng thử lại sau."

_ID_ALPHABET = string.ascii_lowercase + string.digits
_NETWORK_MARKERS = ("fetch", "connect", "reach", "timed out", "timeout")

_arix_pro_reply = TypeAdapter(ArixProResponse)


def generate_id(prefix: str) -> str:
    """Build `<prefix><9 random chars>_<epoch millis>`. Not for secrets."""
    token = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"{prefix}{token}_{int(time.time() * 1000)}"


class ChatSession:
    """Base session. Subclasses define the reply and error mapping."""

    session_prefix = "chat_"
    storage_key = "chat_history"
    network_error_message = "Không thể kết nối đến server. Vui lòng kiểm tra kết nối mạng."

    def __init__(
        self,
        transport: ChatTransport,
        storage: Optional[ClientStorage] = None,
    ) -> None:
        self._transport = transport
        self._storage = storage
        self._lock = threading.Lock()
        self._messages: list[ChatMessage] = []
        self._loading = False
        self.session_id = generate_id(self.session_prefix)
        self.load_history()

    @property
    def messages(self) -> list[ChatMessage]:
        with self._lock:
            return list(self._messages)

    @property
    def is_loading(self) -> bool:
        return self._loading

    def send(self, content: str, model: Optional[str] = None) -> Optional[ChatMessage]:
        """Send a user message and append the reply.

        Blank input, or a send while another one is in flight, does
        nothing and returns None. Otherwise returns the bot entry, which
        is an error entry when the call failed.
        """
        with self._lock:
            if not content.strip() or self._loading:
                return None
            self._loading = True
            self._messages.append(self._new_message(content, Sender.USER))

        reply = None
        try:
            reply = self._exchange(content, model)
        finally:
            with self._lock:
                if reply is not None:
                    self._messages.append(reply)
                    self._persist()
                self._loading = False
        return reply

    def clear(self) -> None:
        """Empty the history, drop the stored copy and start a new session id."""
        with self._lock:
            self._messages = []
            self.session_id = generate_id(self.session_prefix)
            if self._storage is not None:
                try:
                    self._storage.remove_item(self.storage_key)
                except OSError:
                    logger.error("Could not clear stored chat history", exc_info=True)

    def load_history(self) -> None:
        """Replace the in-memory history with the stored one, if any."""
        if self._storage is None:
            return
        try:
            saved = self._storage.get_item(self.storage_key)
            if not saved:
                return
            restored = [ChatMessage.model_validate(item) for item in saved]
        except (OSError, ValueError, TypeError):
            logger.error("Could not load chat history", exc_info=True)
            return
        with self._lock:
            self._messages = restored
        logger.info("Loaded %d chat messages for %s", len(restored), self.storage_key)

    def _exchange(self, content: str, model: Optional[str]) -> ChatMessage:
        try:
            raw = self._transport.send(content, self.session_id, model)
            if not isinstance(raw, dict):
                logger.warning("%s reply was not a JSON object", type(self).__name__)
                return self._new_message(GENERIC_APOLOGY, Sender.BOT, type_=MessageType.ERROR)
            return self._reply_to_message(raw)
        except DashboardApiError as exc:
            logger.warning(
                "%s request failed: status=%s", type(self).__name__, exc.status_code
            )
            return self._new_message(
                self._error_text(exc), Sender.BOT, type_=MessageType.ERROR
            )
        except ValidationError:
            logger.warning("%s reply did not match its schema", type(self).__name__)
            return self._new_message(GENERIC_APOLOGY, Sender.BOT, type_=MessageType.ERROR)

    def _persist(self) -> None:
        if self._storage is None or not self._messages:
            return
        try:
            self._storage.set_item(
                self.storage_key,
                [m.model_dump(mode="json") for m in self._messages],
            )
        except (OSError, TypeError):
            logger.error("Could not save chat history", exc_info=True)

    def _new_message(
        self,
        content: str,
        sender: Sender,
        data: Optional[dict[str, Any]] = None,
        type_: Optional[MessageType] = None,
    ) -> ChatMessage:
        return ChatMessage(
            id=generate_id("msg_"),
            content=content,
            sender=sender,
            timestamp=datetime.now(timezone.utc),
            data=data,
            type=type_,
        )

    def _error_text(self, exc: DashboardApiError) -> str:
        text = exc.message.lower()
        if any(marker in text for marker in _NETWORK_MARKERS):
            return self.network_error_message
        if "404" in text or exc.status_code == 404:
            return NOT_FOUND_MESSAGE
        if "500" in text or exc.status_code == 500:
            return SERVER_ERROR_MESSAGE
        return self._fallback_error_text(exc)

    def _fallback_error_text(self, exc: DashboardApiError) -> str:
        return UNKNOWN_ERROR_MESSAGE

    def _reply_to_message(self, raw: dict) -> ChatMessage:
        raise NotImplementedError


class GeneralChatSession(ChatSession):
    """The IQX market chatbot. Also holds the starter suggestions."""

    session_prefix = "iqx_"
    storage_key = "iqx_chat_history"

    def __init__(
        self,
        transport: ChatTransport,
        storage: Optional[ClientStorage] = None,
    ) -> None:
        super().__init__(transport, storage)
        self.suggestions: list[str] = []

    def set_suggestions(self, response: SuggestionsResponse) -> list[str]:
        if response.success and response.suggestions:
            self.suggestions = response.suggestions[:MAX_SUGGESTIONS]
        return self.suggestions

    def _reply_to_message(self, raw: dict) -> ChatMessage:
        reply = ChatResponseData.model_validate(raw)
        if reply.success:
            return self._new_message(reply.response, Sender.BOT, data=raw)
        return self._new_message(
            reply.error or GENERIC_APOLOGY, Sender.BOT, type_=MessageType.ERROR
        )


class ArixProChatSession(ChatSession):
    """The AriX Pro stock analyst. Unknown failures surface verbatim."""

    session_prefix = "arix_pro_"
    storage_key = "arix_pro_chat_history"
    network_error_message = (
        "Không thể kết nối đến AriX Pro. Vui lòng kiểm tra kết nối mạng."
    )

    def _reply_to_message(self, raw: dict) -> ChatMessage:
        if not raw.get("success"):
            return self._new_message(GENERIC_APOLOGY, Sender.BOT, type_=MessageType.ERROR)
        reply = _arix_pro_reply.validate_python(raw)
        return self._new_message(reply.message, Sender.BOT, data=raw)

    def _fallback_error_text(self, exc: DashboardApiError) -> str:
        return exc.message or UNKNOWN_ERROR_MESSAGE
