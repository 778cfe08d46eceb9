"""
Tests for the infrastructure adapters.

The HTTP transport runs over a mocked requests.Session; storage runs on
a temporary directory; chat sessions use an in-memory transport.
"""

from typing import Optional

import pytest
import requests

from iqx.domain.assistant.entities import MessageType, Sender
from iqx.domain.assistant.session import (
    GENERIC_APOLOGY,
    NOT_FOUND_MESSAGE,
    ArixProChatSession,
    GeneralChatSession,
)
from iqx.domain.errors import (
    ApiExtensionError,
    ArixProError,
    ChatbotError,
    DashboardApiError,
    ReferralError,
    WatchlistError,
)
from iqx.domain.extensions.entities import CreateExtensionPaymentRequest
from iqx.domain.ports import ChatTransport
from iqx.domain.referral.entities import ReferralStats
from iqx.domain.watchlist.entities import AddToWatchlistRequest, UpdateWatchlistRequest
from iqx.infrastructure.auth import TokenStore
from iqx.infrastructure.clients.api_extensions import ApiExtensionClient
from iqx.infrastructure.clients.arix_pro import ArixProClient
from iqx.infrastructure.clients.referral import ReferralClient
from iqx.infrastructure.clients.watchlist import WatchlistClient
from iqx.infrastructure.http import ApiHttpClient
from iqx.infrastructure.storage import JsonFileStorage

from conftest import MemoryStorage, extension_package_body, make_response, watchlist_item_body


class FakeTransport(ChatTransport):
    """Returns queued replies, or raises queued errors."""

    def __init__(self, *replies) -> None:
        self.replies = list(replies)
        self.sent: list[tuple] = []

    def send(self, message: str, session_id: str, model: Optional[str] = None) -> dict:
        self.sent.append((message, session_id, model))
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


# =====================================================================
# ApiHttpClient
# =====================================================================

class TestApiHttpClient:
    """Tests for status, error and schema mapping."""

    def test_returns_decoded_json(self, http, session):
        session.request.return_value = make_response(200, {"ok": True})

        assert http.get("/things", params={"page": 1}) == {"ok": True}

        args, kwargs = session.request.call_args
        assert args == ("GET", "https://api.example.test/api/things")
        assert kwargs["params"] == {"page": 1}

    def test_empty_body_is_none(self, http, session):
        session.request.return_value = make_response(204)
        assert http.delete("/things/1") is None

    def test_http_error_carries_server_details(self, http, session):
        session.request.return_value = make_response(
            409, {"message": "Code already taken", "code": "REFERRAL_CODE_TAKEN"}
        )

        with pytest.raises(DashboardApiError) as exc_info:
            http.put("/referral/my-code", json={"code": "ABC"})

        error = exc_info.value
        assert error.message == "Code already taken"
        assert error.status_code == 409
        assert error.code == "REFERRAL_CODE_TAKEN"
        assert error.body == {"message": "Code already taken", "code": "REFERRAL_CODE_TAKEN"}

    def test_validation_message_list_is_joined(self, http, session):
        session.request.return_value = make_response(
            400, {"message": ["quantity must be positive", "symbol is required"]}
        )

        with pytest.raises(DashboardApiError) as exc_info:
            http.post("/virtual-trading/buy", json={})

        assert exc_info.value.message == "quantity must be positive; symbol is required"
        assert exc_info.value.errors == ["quantity must be positive", "symbol is required"]

    def test_error_without_body_uses_status(self, http, session):
        session.request.return_value = make_response(503)

        with pytest.raises(DashboardApiError) as exc_info:
            http.get("/symbols")

        assert exc_info.value.message == "HTTP error, status 503"
        assert exc_info.value.body is None

    def test_connection_failure(self, http, session):
        session.request.side_effect = requests.ConnectionError("refused")

        with pytest.raises(DashboardApiError) as exc_info:
            http.get("/symbols")

        assert exc_info.value.message == "Cannot reach server"
        assert exc_info.value.status_code is None

    def test_configured_error_type_is_raised(self, session):
        http = ApiHttpClient("https://api.example.test", error_type=ReferralError, session=session)
        session.request.side_effect = requests.Timeout()

        with pytest.raises(ReferralError):
            http.get("/referral/stats")

    def test_schema_mismatch(self, http):
        with pytest.raises(DashboardApiError, match="Invalid referral stats data"):
            http.parse(ReferralStats, {"totalReferrals": "many"}, "referral stats")

    def test_bearer_token_is_attached(self, session):
        tokens = TokenStore(MemoryStorage({"access_token": "tok-123"}))
        http = ApiHttpClient("https://api.example.test", token_store=tokens, session=session)
        session.request.return_value = make_response(200, {})

        http.get("/subscriptions/my-plan")

        assert session.request.call_args.kwargs["headers"] == {"Authorization": "Bearer tok-123"}

    def test_no_token_no_header(self, session):
        http = ApiHttpClient(
            "https://api.example.test", token_store=TokenStore(MemoryStorage()), session=session
        )
        session.request.return_value = make_response(200, {})

        http.get("/subscriptions/my-plan")

        assert session.request.call_args.kwargs["headers"] == {}

    def test_absolute_urls_are_kept(self, http):
        assert http.url("https://other.example.test/x") == "https://other.example.test/x"
        assert http.url("/x") == "https://api.example.test/api/x"


# =====================================================================
# Clients
# =====================================================================

class TestReferralClient:
    """Tests for envelope parsing."""

    def test_stats(self, http, session):
        session.request.return_value = make_response(200, {
            "success": True,
            "data": {
                "referralCode": "ABC123",
                "totalReferrals": 2,
                "totalCommission": 150000,
                "directReferrals": [],
            },
        })

        stats = ReferralClient(http).get_stats()

        assert stats.referral_code == "ABC123"
        assert stats.total_commission == 150000
        assert session.request.call_args.args[1].endswith("/referral/stats")

    def test_missing_code_is_none(self, http, session):
        session.request.return_value = make_response(200, {"success": True, "data": None})
        assert ReferralClient(http).get_my_code() is None

    def test_generate_without_data_fails(self, http, session):
        session.request.return_value = make_response(200, {"success": False, "data": None})
        with pytest.raises(ReferralError):
            ReferralClient(http).generate_code()


class TestArixProClient:
    """Tests for AriX Pro error rewriting."""

    def _client(self, session) -> ArixProClient:
        http = ApiHttpClient("https://arix.example.test/api", error_type=ArixProError, session=session)
        return ArixProClient(http, default_model="gpt-4o-mini")

    def test_default_model_is_sent(self, session):
        session.request.return_value = make_response(200, {"success": True})

        self._client(session).send("Phân tích FPT", "arix_pro_x")

        assert session.request.call_args.kwargs["json"] == {
            "message": "Phân tích FPT",
            "model": "gpt-4o-mini",
        }

    def test_quota_error_carries_usage(self, session):
        session.request.return_value = make_response(429, {
            "message": "Rate limit exceeded",
            "currentUsage": 50,
            "limit": 50,
            "resetDate": "2024-05-02T00:00:00Z",
        })

        with pytest.raises(ArixProError) as exc_info:
            self._client(session).send("hi", "s1")

        error = exc_info.value
        assert error.status_code == 429
        assert error.current_usage == 50
        assert error.limit == 50
        assert error.message == "Rate limit exceeded. Used: 50/50. Reset: 00:00:00 02/05/2024"

    def test_unauthorized_is_rewritten(self, session):
        session.request.return_value = make_response(401, {"message": "jwt expired"})

        with pytest.raises(ArixProError) as exc_info:
            self._client(session).get_usage()

        assert exc_info.value.message == "Please log in again to keep using AriX Pro"


class TestWatchlistClient:
    """Tests for symbol normalization and error rewriting."""

    def _client(self, session) -> WatchlistClient:
        http = ApiHttpClient("https://api.example.test/api", error_type=WatchlistError, session=session)
        return WatchlistClient(http)

    def test_list_unwraps_envelope(self, session):
        session.request.return_value = make_response(200, {
            "data": [watchlist_item_body("FPT"), watchlist_item_body("VNM")],
            "count": 2,
            "message": "ok",
        })

        items = self._client(session).get_watchlist()

        assert [item.symbol.symbol for item in items] == ["FPT", "VNM"]

    def test_check_upper_cases_symbol(self, session):
        session.request.return_value = make_response(200, {"isInWatchlist": False})

        assert self._client(session).check(" fpt ").is_in_watchlist is False
        assert session.request.call_args.args[1].endswith("/watchlist/check/FPT")

    def test_add_sends_normalized_code(self, session):
        session.request.return_value = make_response(201, {"data": {
            "id": "item-1", "userId": "u1", "symbolId": "sym-1",
            "createdAt": "2024-05-01T00:00:00Z",
        }})

        self._client(session).add(AddToWatchlistRequest(symbol_code="vnm"))

        assert session.request.call_args.kwargs["json"] == {"symbolCode": "VNM"}

    def test_duplicate_add_names_the_symbol(self, session):
        session.request.return_value = make_response(409, {"message": "Conflict"})

        with pytest.raises(WatchlistError) as exc_info:
            self._client(session).add(AddToWatchlistRequest(symbol_code="fpt"))

        assert exc_info.value.status_code == 409
        assert exc_info.value.message == "Symbol FPT is already in the watchlist"

    def test_unknown_symbol_names_the_symbol(self, session):
        session.request.return_value = make_response(404, {"message": "Not Found"})

        with pytest.raises(WatchlistError, match="Symbol ZZZ does not exist"):
            self._client(session).add(AddToWatchlistRequest(symbol_code="ZZZ"))

    def test_blank_symbol_sends_nothing(self, session):
        with pytest.raises(WatchlistError) as exc_info:
            self._client(session).add(AddToWatchlistRequest(symbol_code="  "))

        assert exc_info.value.status_code == 400
        session.request.assert_not_called()

    def test_inverted_alert_range_sends_nothing(self, session):
        with pytest.raises(WatchlistError):
            self._client(session).update(
                "item-1", UpdateWatchlistRequest(alert_price_high=10, alert_price_low=20)
            )
        session.request.assert_not_called()

    def test_missing_item_is_rewritten(self, session):
        session.request.return_value = make_response(404, {"message": "Not Found"})

        with pytest.raises(WatchlistError, match="does not belong to you"):
            self._client(session).remove("item-9")

    def test_server_error_keeps_its_message(self, session):
        session.request.return_value = make_response(500, {"message": "Database down"})

        with pytest.raises(WatchlistError) as exc_info:
            self._client(session).remove_by_symbol("FPT")

        assert exc_info.value.message == "Database down"


class TestApiExtensionClient:
    """Tests for extension package parsing and payment paths."""

    def _client(self, session) -> ApiExtensionClient:
        http = ApiHttpClient(
            "https://api.example.test/api", error_type=ApiExtensionError, session=session
        )
        return ApiExtensionClient(http)

    def test_string_prices_are_numbers(self, session):
        session.request.return_value = make_response(200, [extension_package_body(price="49500.00")])

        packages = self._client(session).list_packages()

        assert packages[0].price == 49500.0
        assert session.request.call_args.args[1].endswith("/api-extensions/packages")

    def test_create_payment_keeps_extra_fields(self, session):
        session.request.return_value = make_response(200, {
            "orderCode": 555, "checkoutUrl": "https://pay.test/555", "paymentLinkId": "pl-1",
        })

        response = self._client(session).create_payment(
            CreateExtensionPaymentRequest(extension_package_id="ext-1")
        )

        assert response.order_code == 555
        assert response.model_extra == {"paymentLinkId": "pl-1"}
        args, kwargs = session.request.call_args
        assert args == ("POST", "https://api.example.test/api/api-extensions/payment/create")
        assert kwargs["json"] == {"extensionPackageId": "ext-1"}

    def test_check_payment_path(self, session):
        session.request.return_value = make_response(200, {"orderCode": 555, "status": "PAID"})

        status = self._client(session).check_payment(555)

        assert status.is_terminal
        assert session.request.call_args.args[1].endswith("/api-extensions/payment/check/555")


# =====================================================================
# Storage
# =====================================================================

class TestJsonFileStorage:
    """Tests for the file-backed client storage."""

    def test_round_trip(self, tmp_path):
        path = tmp_path / "state" / "storage.json"
        storage = JsonFileStorage(str(path))

        storage.set_item("extensionPaymentOrderCode", "12345")
        assert JsonFileStorage(str(path)).get_item("extensionPaymentOrderCode") == "12345"

        storage.remove_item("extensionPaymentOrderCode")
        assert storage.get_item("extensionPaymentOrderCode") is None

    def test_missing_file_reads_empty(self, tmp_path):
        assert JsonFileStorage(str(tmp_path / "none.json")).get_item("x") is None

    def test_corrupt_file_reads_empty(self, tmp_path):
        path = tmp_path / "storage.json"
        path.write_text("{not json", encoding="utf-8")
        assert JsonFileStorage(str(path)).get_item("x") is None


# =====================================================================
# Chat sessions
# =====================================================================

class TestChatSessions:
    """Tests for sending, persistence and error messages."""

    def test_reply_is_appended_and_persisted(self, storage):
        transport = FakeTransport({"success": True, "response": "FPT đang tăng."})
        session = GeneralChatSession(transport, storage)

        reply = session.send("Giá FPT?")

        assert reply.sender is Sender.BOT
        assert reply.content == "FPT đang tăng."
        assert [m.sender for m in session.messages] == [Sender.USER, Sender.BOT]
        assert transport.sent[0][1] == session.session_id
        assert session.session_id.startswith("iqx_")
        assert len(storage.data["iqx_chat_history"]) == 2

    def test_history_is_restored(self, storage):
        GeneralChatSession(FakeTransport({"success": True, "response": "ok"}), storage).send("hi")

        restored = GeneralChatSession(FakeTransport(), storage)

        assert [m.content for m in restored.messages] == ["hi", "ok"]
        assert restored.messages[0].timestamp.tzinfo is not None

    def test_blank_message_is_ignored(self, storage):
        transport = FakeTransport()
        session = GeneralChatSession(transport, storage)

        assert session.send("   ") is None
        assert session.messages == []
        assert transport.sent == []

    def test_unsuccessful_reply_becomes_error_entry(self):
        session = GeneralChatSession(FakeTransport({"success": False, "error": "Không có dữ liệu"}))

        reply = session.send("Giá XYZ?")

        assert reply.type is MessageType.ERROR
        assert reply.content == "Không có dữ liệu"

    def test_not_found_error_message(self):
        session = GeneralChatSession(FakeTransport(ChatbotError("Not found", status_code=404)))
        assert session.send("Giá XYZ?").content == NOT_FOUND_MESSAGE

    def test_network_error_message(self):
        session = ArixProChatSession(FakeTransport(ArixProError("Cannot reach server")))
        assert "AriX Pro" in session.send("hi").content

    def test_arix_pro_surfaces_server_message(self):
        session = ArixProChatSession(FakeTransport(ArixProError("Used: 50/50", status_code=429)))
        reply = session.send("hi")
        assert reply.content == "Used: 50/50"
        assert not session.is_loading

    @pytest.mark.parametrize("raw", [None, ["not", "an", "object"], "ok"])
    def test_non_object_reply_becomes_error_entry(self, storage, raw):
        session = ArixProChatSession(FakeTransport(raw), storage)

        reply = session.send("hi")

        assert reply.type is MessageType.ERROR
        assert reply.content == GENERIC_APOLOGY
        assert not session.is_loading
        assert len(storage.data["arix_pro_chat_history"]) == 2

    def test_empty_general_reply_becomes_error_entry(self):
        reply = GeneralChatSession(FakeTransport(None)).send("hi")
        assert reply.content == GENERIC_APOLOGY

    def test_clear_starts_new_session(self, storage):
        session = ArixProChatSession(FakeTransport({"success": False}), storage)
        session.send("hi")
        old_id = session.session_id

        session.clear()

        assert session.messages == []
        assert session.session_id != old_id
        assert "arix_pro_chat_history" not in storage.data
