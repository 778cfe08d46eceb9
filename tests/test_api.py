"""
Tests for the dashboard API endpoints.

Routes run against real query bindings over mocked API clients, wired in
through FastAPI dependency overrides. Validates request validation,
response schemas, and error mapping.
"""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from iqx.application.queries.assistant import GeneralChatQueries
from iqx.application.queries.billing import PaymentQueries
from iqx.application.queries.extensions import ExtensionQueries
from iqx.application.queries.market import SignalQueries
from iqx.application.queries.referral import CommissionQueries, ReferralQueries
from iqx.application.queries.trading import TradingQueries
from iqx.application.queries.watchlist import WatchlistQueries
from iqx.application.query_client import QueryClient
from iqx.domain.assistant.session import GeneralChatSession
from iqx.domain.billing.entities import PENDING_ORDER_STORAGE_KEY, PaymentStatusResponse
from iqx.domain.errors import ReferralError, WatchlistError
from iqx.domain.extensions.entities import (
    ApiExtensionPackage,
    ExtensionPaymentResponse,
    ExtensionPaymentStatus,
)
from iqx.domain.referral.entities import CommissionSetting, DownlineNode
from iqx.domain.watchlist.entities import CheckWatchlistResponse, WatchlistItem
from iqx.interfaces.dependencies import (
    get_commission_queries,
    get_extension_queries,
    get_general_chat_queries,
    get_payment_queries,
    get_query_client,
    get_referral_queries,
    get_signal_queries,
    get_storage,
    get_token_store,
    get_trading_queries,
    get_watchlist_queries,
)
from iqx.main import app

from conftest import MemoryStorage, extension_package_body, watchlist_item_body

client = TestClient(app)


@pytest.fixture(autouse=True)
def _reset_overrides():
    yield
    app.dependency_overrides.clear()


def _no_retry() -> QueryClient:
    return QueryClient(retry=0)


def _override(dependency, value) -> None:
    app.dependency_overrides[dependency] = lambda: value


def _referral(client_mock: MagicMock) -> None:
    _override(get_referral_queries, ReferralQueries(_no_retry(), client_mock))


class _Transport:
    def __init__(self, reply: dict) -> None:
        self.reply = reply

    def send(self, message, session_id, model=None) -> dict:
        return self.reply


# =====================================================================
# Health and middleware
# =====================================================================

class TestHealth:
    """Tests for GET /api/v1/health."""

    def test_health(self) -> None:
        response = client.get("/api/v1/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_security_headers_present(self) -> None:
        """All security headers must be present on every response."""
        response = client.get("/api/v1/health")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["Referrer-Policy"] == "strict-origin-when-cross-origin"
        assert response.headers["Content-Security-Policy"] == "default-src 'self'"


# =====================================================================
# Error mapping
# =====================================================================

class TestErrorMapping:
    """Tests for the domain error to HTTP status mapping."""

    def test_upstream_client_error_passes_through(self) -> None:
        referral = MagicMock()
        referral.get_stats.side_effect = ReferralError("Unauthorized", status_code=401)
        _referral(referral)

        response = client.get("/api/v1/referral/stats")

        assert response.status_code == 401
        assert response.json() == {"error": "ReferralError", "detail": "Unauthorized"}

    def test_upstream_server_error_is_bad_gateway(self) -> None:
        referral = MagicMock()
        referral.get_stats.side_effect = ReferralError("HTTP error, status 500", status_code=500)
        _referral(referral)

        assert client.get("/api/v1/referral/stats").status_code == 502

    def test_unreachable_upstream_is_bad_gateway(self) -> None:
        referral = MagicMock()
        referral.get_stats.side_effect = ReferralError("Cannot reach server")
        _referral(referral)

        response = client.get("/api/v1/referral/stats")

        assert response.status_code == 502
        assert response.json()["detail"] == "Cannot reach server"

    def test_rejected_order_is_bad_request(self) -> None:
        """An order failing local checks never reaches the backend."""
        trading = MagicMock()
        _override(get_trading_queries, TradingQueries(_no_retry(), trading))

        response = client.post(
            "/api/v1/trading/buy", json={"symbol_code": "FPT", "quantity": 10, "order_type": "LIMIT"}
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Limit price must be greater than 0"
        trading.buy.assert_not_called()

    def test_unexpected_error_hides_details(self) -> None:
        referral = MagicMock()
        referral.get_stats.side_effect = RuntimeError("secret internals")
        _referral(referral)

        response = TestClient(app, raise_server_exceptions=False).get("/api/v1/referral/stats")

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}


# =====================================================================
# Market
# =====================================================================

class TestMarketEndpoints:
    """Tests for /api/v1/market."""

    def test_fibonacci_levels(self) -> None:
        response = client.post("/api/v1/market/fibonacci", json={"high": 120, "low": 100})
        assert response.status_code == 200
        assert response.json()["levels"]

    def test_fibonacci_rejects_inverted_range(self) -> None:
        response = client.post("/api/v1/market/fibonacci", json={"high": 100, "low": 120})
        assert response.status_code == 422

    def test_signals_require_symbols(self) -> None:
        _override(get_signal_queries, SignalQueries(_no_retry(), MagicMock()))
        response = client.get("/api/v1/market/signals", params={"symbols": " , "})
        assert response.status_code == 422

    def test_signals_reject_unknown_flag(self) -> None:
        signals = MagicMock()
        signals.get_signals.return_value.data = []
        _override(get_signal_queries, SignalQueries(_no_retry(), signals))

        response = client.get(
            "/api/v1/market/signals", params={"symbols": "FPT", "has_signal": "moon"}
        )

        assert response.status_code == 422

    def test_same_currency_conversion(self) -> None:
        response = client.post(
            "/api/v1/market/convert", json={"amount": 10, "base": "USD", "target": "USD"}
        )
        assert response.status_code == 200
        assert response.json()["converted_amount"] == 10


# =====================================================================
# Referral
# =====================================================================

class TestReferralEndpoints:
    """Tests for /api/v1/referral."""

    def _tree(self) -> DownlineNode:
        child = DownlineNode(
            id="a", email="a@example.com", created_at="2024-03-01T08:00:00Z",
            total_referrals=0, total_commission=0, level=0, children_count=0,
        )
        return DownlineNode(
            id="root", email="root@example.com", created_at="2024-03-01T08:00:00Z",
            total_referrals=1, total_commission=0, level=-1, children_count=1, children=[child],
        )

    def test_downline_rows(self) -> None:
        referral = MagicMock()
        referral.get_downline_tree.return_value = self._tree()
        referral.get_total_downline.return_value = 1
        _referral(referral)

        response = client.get("/api/v1/referral/downline")

        assert response.status_code == 200
        body = response.json()
        assert [row["id"] for row in body["rows"]] == ["a"]
        assert body["total_downline"] == 1

    def test_toggle_unknown_node(self) -> None:
        referral = MagicMock()
        referral.get_downline_tree.return_value = self._tree()
        _referral(referral)

        response = client.get("/api/v1/referral/downline", params={"toggle": "nobody"})

        assert response.status_code == 404

    def test_calculator_uses_active_setting(self) -> None:
        commission = MagicMock()
        commission.list_settings.return_value = [
            CommissionSetting(
                id="s1", name="Default", commission_total_pct=0.17,
                tiers_pct=[0.1, 0.05, 0.02], is_active=True,
                created_at="2024-01-01", updated_at="2024-01-01",
            )
        ]
        _override(get_commission_queries, CommissionQueries(_no_retry(), commission))

        response = client.post(
            "/api/v1/referral/calculator",
            json={"price": 1000000, "seller_tier": 2, "quantity": 3},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["setting_id"] == "s1"
        assert [p["commission_per_sale"] for p in body["payouts"]] == [100000, 50000]
        assert body["total_commission"] == 450000

    def test_calculator_without_settings(self) -> None:
        commission = MagicMock()
        commission.list_settings.return_value = []
        _override(get_commission_queries, CommissionQueries(_no_retry(), commission))

        response = client.post(
            "/api/v1/referral/calculator", json={"price": 1000000, "seller_tier": 2}
        )

        assert response.status_code == 404


# =====================================================================
# Billing
# =====================================================================

class TestPaymentEndpoints:
    """Tests for the payment return flow."""

    def test_return_without_order_is_empty(self) -> None:
        payments = MagicMock()
        _override(get_payment_queries, PaymentQueries(_no_retry(), payments, MemoryStorage()))

        response = client.get("/api/v1/payments/return")

        assert response.status_code == 204
        payments.check_status.assert_not_called()

    def test_return_checks_redirect_order(self) -> None:
        payments = MagicMock()
        payments.check_status.return_value = PaymentStatusResponse(
            id="pay-1", user_id="u1", order_code=777, amount=199000, currency="VND",
            status="completed", payment_method="payos",
            created_at="2024-05-01T00:00:00Z", updated_at="2024-05-01T00:00:00Z",
        )
        _override(get_payment_queries, PaymentQueries(_no_retry(), payments, MemoryStorage()))

        response = client.get("/api/v1/payments/return", params={"orderCode": "777", "status": "PAID"})

        assert response.status_code == 200
        assert response.json()["orderCode"] == 777
        payments.check_status.assert_called_once_with(777)


# =====================================================================
# Trading
# =====================================================================

class TestTradingCostEndpoint:
    """Tests for GET /api/v1/trading/cost."""

    def test_buy_with_balance(self) -> None:
        response = client.get(
            "/api/v1/trading/cost",
            params={"quantity": 1000, "price": 1000, "cash_balance": 1001500},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["fee"] == 1500
        assert body["tax"] == 0
        assert body["net_amount"] == 1001500
        assert body["can_afford"] is True
        assert body["max_quantity"] == 1000

    def test_sell_has_no_affordability(self) -> None:
        response = client.get(
            "/api/v1/trading/cost",
            params={"quantity": 1000, "price": 1000, "type": "SELL", "cash_balance": 0},
        )

        body = response.json()
        assert body["tax"] == 1000
        assert body["can_afford"] is None

    def test_quantity_must_be_positive(self) -> None:
        response = client.get("/api/v1/trading/cost", params={"quantity": 0, "price": 1000})
        assert response.status_code == 422


# =====================================================================
# Assistant
# =====================================================================

class TestAssistantEndpoints:
    """Tests for /api/v1/assistant."""

    def _chat(self, reply: dict) -> GeneralChatQueries:
        session = GeneralChatSession(_Transport(reply), MemoryStorage())
        queries = GeneralChatQueries(_no_retry(), MagicMock(), session)
        _override(get_general_chat_queries, queries)
        return queries

    def test_send_returns_reply(self) -> None:
        self._chat({"success": True, "response": "FPT đang tăng."})

        response = client.post("/api/v1/assistant/chat", json={"message": "Giá FPT?"})

        assert response.status_code == 200
        assert response.json()["sender"] == "bot"
        assert response.json()["content"] == "FPT đang tăng."

    def test_blank_message_is_no_content(self) -> None:
        self._chat({"success": True, "response": "unused"})

        response = client.post("/api/v1/assistant/chat", json={"message": "   "})

        assert response.status_code == 204

    def test_history_lists_both_sides(self) -> None:
        queries = self._chat({"success": True, "response": "ok"})
        queries.send("hello")

        body = client.get("/api/v1/assistant/chat/history").json()

        assert body["session_id"] == queries.session.session_id
        assert [m["sender"] for m in body["messages"]] == ["user", "bot"]


# =====================================================================
# Watchlist
# =====================================================================

class TestWatchlistEndpoints:
    """Tests for /api/v1/watchlist."""

    def _watchlist(self, client_mock: MagicMock) -> None:
        _override(get_watchlist_queries, WatchlistQueries(_no_retry(), client_mock))

    def test_list_adds_display_fields(self) -> None:
        watchlist = MagicMock()
        watchlist.get_watchlist.return_value = [
            WatchlistItem.model_validate(watchlist_item_body("FPT", customName="My FPT")),
        ]
        self._watchlist(watchlist)

        response = client.get("/api/v1/watchlist")

        assert response.status_code == 200
        entry = response.json()[0]
        assert entry["display_name"] == "My FPT"
        assert entry["alert_valid"] is True
        assert entry["item"]["symbolId"] == "sym-FPT"

    def test_duplicate_add_is_conflict(self) -> None:
        watchlist = MagicMock()
        watchlist.add.side_effect = WatchlistError("Symbol FPT is already in the watchlist", status_code=409)
        self._watchlist(watchlist)

        response = client.post("/api/v1/watchlist", json={"symbolCode": "FPT"})

        assert response.status_code == 409
        assert response.json()["detail"] == "Symbol FPT is already in the watchlist"

    def test_check_of_non_ticker_is_no_content(self) -> None:
        watchlist = MagicMock()
        self._watchlist(watchlist)

        assert client.get("/api/v1/watchlist/check/12").status_code == 204
        watchlist.check.assert_not_called()

    def test_toggle_reports_new_state(self) -> None:
        watchlist = MagicMock()
        watchlist.check.return_value = CheckWatchlistResponse(is_in_watchlist=False)
        self._watchlist(watchlist)

        response = client.post("/api/v1/watchlist/toggle/fpt")

        assert response.json() == {"symbol": "FPT", "in_watchlist": True}

    def test_empty_batch_is_rejected(self) -> None:
        self._watchlist(MagicMock())
        assert client.post("/api/v1/watchlist/batch", json={"symbols": []}).status_code == 422

    def test_stats_of_empty_watchlist(self) -> None:
        watchlist = MagicMock()
        watchlist.get_watchlist.return_value = []
        self._watchlist(watchlist)

        body = client.get("/api/v1/watchlist/stats").json()

        assert body["totalItems"] == 0
        assert body["topSectors"] == []

    def test_count_route_is_not_an_item_id(self) -> None:
        watchlist = MagicMock()
        watchlist.get_count.return_value = 3
        self._watchlist(watchlist)

        assert client.get("/api/v1/watchlist/count").json() == {"count": 3}


# =====================================================================
# API extensions
# =====================================================================

class TestExtensionEndpoints:
    """Tests for /api/v1/api-extensions."""

    def _extensions(self, client_mock: MagicMock, storage=None) -> None:
        queries = ExtensionQueries(
            _no_retry(), client_mock, storage or MemoryStorage(), "https://app.example.test"
        )
        _override(get_extension_queries, queries)

    def test_packages_carry_price_per_call(self) -> None:
        extensions = MagicMock()
        extensions.list_packages.return_value = [
            ApiExtensionPackage.model_validate(extension_package_body(price="99000")),
        ]
        self._extensions(extensions)

        body = client.get("/api/v1/api-extensions/packages").json()

        assert body[0]["price_per_call"] == 99
        assert body[0]["package"]["additionalCalls"] == 1000

    def test_purchase_remembers_order(self) -> None:
        extensions, storage = MagicMock(), MemoryStorage()
        extensions.create_payment.return_value = ExtensionPaymentResponse(
            order_code=555, checkout_url="https://pay.test/555"
        )
        self._extensions(extensions, storage)

        response = client.post("/api/v1/api-extensions/purchase", json={"package_id": "ext-1"})

        assert response.status_code == 200
        assert response.json()["checkoutUrl"] == "https://pay.test/555"
        pending = client.get("/api/v1/api-extensions/payment/pending").json()
        assert pending == {"order_code": 555}

    def test_invalid_return_url_is_bad_request(self) -> None:
        extensions = MagicMock()
        self._extensions(extensions)

        response = client.post(
            "/api/v1/api-extensions/purchase",
            json={"package_id": "ext-1", "return_url": "/payment/success"},
        )

        assert response.status_code == 400
        extensions.create_payment.assert_not_called()

    def test_resume_without_pending_order(self) -> None:
        self._extensions(MagicMock())
        assert client.get("/api/v1/api-extensions/payment/resume").status_code == 204

    def test_status_of_settled_order(self) -> None:
        extensions = MagicMock()
        extensions.check_payment.return_value = ExtensionPaymentStatus(order_code=555, status="PAID")
        storage = MemoryStorage({PENDING_ORDER_STORAGE_KEY: "555"})
        self._extensions(extensions, storage)

        response = client.get("/api/v1/api-extensions/payment/status/555")

        assert response.json()["status"] == "PAID"
        assert PENDING_ORDER_STORAGE_KEY not in storage.data


# =====================================================================
# Composition root
# =====================================================================

class TestCompositionRoot:
    """The process serves one user: shared state is built once."""

    def test_user_state_is_process_wide(self) -> None:
        assert get_storage() is get_storage()
        assert get_token_store() is get_token_store()
        assert get_query_client() is get_query_client()

    def test_payment_flows_share_one_storage(self) -> None:
        assert get_extension_queries()._pending._storage is get_storage()
        assert get_payment_queries()._pending._storage is get_storage()
