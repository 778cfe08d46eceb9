"""
Tests for the application layer.

QueryClient caching, retry and invalidation run against a fake clock.
Query bindings are tested with mocked clients: each test checks what is
cached, what is invalidated and when the client is called.
"""

from unittest.mock import MagicMock, patch

import pytest

from iqx.application.queries.arix import ArixQueries
from iqx.application.queries.billing import PaymentQueries, PendingOrder, SubscriptionQueries
from iqx.application.queries.extensions import ExtensionQueries
from iqx.application.queries.market import CurrencyQueries, SignalQueries, SymbolQueries
from iqx.application.queries.referral import MY_CODE, ReferralQueries
from iqx.application.queries.trading import TradingQueries
from iqx.application.queries.users import UserQueries
from iqx.application.queries.watchlist import WatchlistQueries
from iqx.application.query_client import freeze, no_retry_on_client_error
from iqx.application.refetch import RefetchScheduler
from iqx.domain.arix.entities import ArixSellResponse, ArixSellTrade
from iqx.domain.billing.entities import (
    PENDING_ORDER_STORAGE_KEY,
    CreatePaymentRequest,
    CreatePaymentResponse,
    Payment,
    PaymentStatusResponse,
    SubscribeRequest,
)
from iqx.domain.errors import (
    ApiExtensionError,
    DashboardApiError,
    SignalsError,
    VirtualTradingError,
    WatchlistError,
)
from iqx.domain.extensions.entities import ExtensionPaymentResponse, ExtensionPaymentStatus
from iqx.domain.market.symbols import SymbolQuery
from iqx.domain.referral.entities import ReferralCode
from iqx.domain.users.entities import UserListParams
from iqx.domain.watchlist.entities import (
    AddToWatchlistRequest,
    CheckWatchlistResponse,
    WatchlistItem,
)

from conftest import MemoryStorage, watchlist_item_body


def _payment_fields(order_code: int, status: str) -> dict:
    return dict(
        id="pay-1",
        user_id="u1",
        order_code=order_code,
        amount=199000,
        currency="VND",
        status=status,
        payment_method="payos",
        created_at="2024-05-01T00:00:00Z",
        updated_at="2024-05-01T00:00:00Z",
    )


def _status(order_code: int, status: str) -> PaymentStatusResponse:
    return PaymentStatusResponse(**_payment_fields(order_code, status))


def _referral_code(code: str = "ABC123") -> ReferralCode:
    return ReferralCode(
        id="r1", user_id="u1", code=code, total_referrals=0, total_commission=0,
        is_active=True, created_at="2024-01-01", updated_at="2024-01-01",
    )


# =====================================================================
# QueryClient
# =====================================================================

class TestQueryClientCaching:
    """Tests for freshness and invalidation."""

    def test_fresh_data_is_served_from_cache(self, query_client, clock):
        fn = MagicMock(return_value="v1")
        query_client.fetch(("k",), fn, stale_time=60)
        clock.advance(30)
        assert query_client.fetch(("k",), fn, stale_time=60) == "v1"
        assert fn.call_count == 1

    def test_stale_data_is_refetched(self, query_client, clock):
        fn = MagicMock(side_effect=["v1", "v2"])
        query_client.fetch(("k",), fn, stale_time=60)
        clock.advance(60)
        assert query_client.fetch(("k",), fn, stale_time=60) == "v2"

    def test_zero_stale_time_always_refetches(self, query_client):
        fn = MagicMock(side_effect=["v1", "v2"])
        query_client.fetch(("k",), fn)
        assert query_client.fetch(("k",), fn) == "v2"

    def test_invalidate_by_prefix(self, query_client):
        for key in [("payments", "list"), ("payments", "detail", "p1"), ("symbols",)]:
            query_client.set_query_data(key, "x", stale_time=600)

        assert query_client.invalidate(("payments",)) == 2

        fn = MagicMock(return_value="fresh")
        assert query_client.fetch(("payments", "list"), fn, stale_time=600) == "fresh"
        assert query_client.fetch(("symbols",), fn, stale_time=600) == "x"

    def test_disabled_query_never_calls_fn(self, query_client):
        fn = MagicMock()
        assert query_client.fetch(("k",), fn, enabled=False) is None
        fn.assert_not_called()

    def test_mutate_invalidates_after_success(self, query_client):
        query_client.set_query_data(("a",), 1, stale_time=600)
        assert query_client.mutate(lambda: "done", invalidates=[("a",)]) == "done"
        fn = MagicMock(return_value=2)
        assert query_client.fetch(("a",), fn, stale_time=600) == 2

    def test_failed_mutation_invalidates_nothing(self, query_client):
        query_client.set_query_data(("a",), 1, stale_time=600)

        def boom():
            raise DashboardApiError("nope", status_code=400)

        with pytest.raises(DashboardApiError):
            query_client.mutate(boom, invalidates=[("a",)])
        assert query_client.fetch(("a",), MagicMock(), stale_time=600) == 1

    def test_collect_garbage_evicts_unused_entries(self, query_client, clock):
        query_client.set_query_data(("old",), 1, gc_time=10)
        query_client.set_query_data(("kept",), 2, gc_time=100)
        clock.advance(11)

        assert query_client.collect_garbage() == [("old",)]
        assert query_client.keys() == [("kept",)]

    def test_untouched_refetch_does_not_extend_lifetime(self, query_client, clock):
        query_client.set_query_data(("k",), 1, gc_time=10)
        clock.advance(6)
        query_client.refetch(("k",), MagicMock(return_value=2), gc_time=10, touch=False)
        clock.advance(6)

        assert query_client.collect_garbage() == [("k",)]

    def test_read_extends_lifetime(self, query_client, clock):
        query_client.set_query_data(("k",), 1, gc_time=10)
        clock.advance(6)
        query_client.get_query_data(("k",))
        clock.advance(6)

        assert query_client.collect_garbage() == []

    def test_freeze_makes_params_hashable(self):
        key = ("users", freeze({"page": 1, "search": None, "roles": ["admin"]}))
        assert hash(key) == hash(("users", (("page", 1), ("roles", ("admin",)))))


class TestQueryClientRetry:
    """Tests for retry with exponential backoff."""

    def test_retries_then_succeeds(self, query_client, clock):
        fn = MagicMock(side_effect=[SignalsError("down"), SignalsError("down"), "ok"])
        assert query_client.fetch(("k",), fn) == "ok"
        assert clock.sleeps == [1.0, 2.0]

    def test_gives_up_after_retry_count(self, query_client, clock):
        fn = MagicMock(side_effect=SignalsError("down"))
        with pytest.raises(SignalsError):
            query_client.fetch(("k",), fn)
        assert fn.call_count == 4
        assert clock.sleeps == [1.0, 2.0, 4.0]

    def test_backoff_is_capped(self, query_client):
        assert query_client.retry_delay(10) == 30.0

    def test_predicate_skips_client_errors(self, query_client, clock):
        fn = MagicMock(side_effect=DashboardApiError("bad", status_code=404))
        with pytest.raises(DashboardApiError):
            query_client.fetch(("k",), fn, retry=no_retry_on_client_error(2))
        assert fn.call_count == 1
        assert clock.sleeps == []

    def test_non_api_errors_are_not_retried(self, query_client):
        fn = MagicMock(side_effect=KeyError("bug"))
        with pytest.raises(KeyError):
            query_client.fetch(("k",), fn)
        assert fn.call_count == 1


class TestQueryClientPoll:
    """Tests for polling until a condition holds."""

    def test_stops_when_condition_holds(self, query_client, clock):
        fn = MagicMock(side_effect=["pending", "pending", "done"])
        result = query_client.poll(("k",), fn, interval=5, until=lambda r: r == "done", max_attempts=10)

        assert result == "done"
        assert clock.sleeps == [5, 5]

    def test_returns_last_result_when_attempts_run_out(self, query_client, clock):
        fn = MagicMock(return_value="pending")
        result = query_client.poll(("k",), fn, interval=5, until=lambda r: r == "done", max_attempts=3)

        assert result == "pending"
        assert fn.call_count == 3
        assert clock.sleeps == [5, 5]


# =====================================================================
# RefetchScheduler
# =====================================================================

class TestRefetchScheduler:
    """Tests for background refetching."""

    def test_register_before_start(self, query_client):
        scheduler = RefetchScheduler(query_client)
        scheduler.register(("signals", "realtime", "FPT"), MagicMock(), interval=60)

        assert scheduler.is_registered(("signals", "realtime", "FPT"))
        assert not scheduler.is_running
        assert scheduler.jobs[0].job_id == "refetch:signals:realtime:FPT"

    def test_start_schedules_gc_and_registered_jobs(self, query_client):
        scheduler = RefetchScheduler(query_client)
        scheduler.register(("exchange-rate", "USD", "VND"), MagicMock(), interval=300)

        with patch("iqx.application.refetch.BackgroundScheduler") as background:
            scheduler.start()
            job_ids = [c.kwargs["id"] for c in background.return_value.add_job.call_args_list]
            background.return_value.start.assert_called_once()

            scheduler.stop()
            background.return_value.shutdown.assert_called_once_with(wait=False)

        assert job_ids == ["query_gc", "refetch:exchange-rate:USD:VND"]
        assert not scheduler.is_running

    def test_unregister(self, query_client):
        scheduler = RefetchScheduler(query_client)
        scheduler.register(("k",), MagicMock(), interval=10)
        assert scheduler.unregister(("k",))
        assert not scheduler.unregister(("k",))

    def test_failed_refetch_keeps_previous_value(self, query_client):
        query_client.set_query_data(("k",), "old", stale_time=600)
        scheduler = RefetchScheduler(query_client)
        job = scheduler.register(("k",), MagicMock(side_effect=SignalsError("down")), interval=10, retry=False)

        scheduler.run_job(job)

        assert query_client.get_query_data(("k",)) == "old"

    def test_successful_refetch_replaces_value(self, query_client):
        query_client.set_query_data(("k",), "old", stale_time=600)
        scheduler = RefetchScheduler(query_client)
        job = scheduler.register(("k",), MagicMock(return_value="new"), interval=10, stale_time=600)

        scheduler.run_job(job)

        assert query_client.get_query_data(("k",)) == "new"

    def test_gc_drops_jobs_of_unused_queries(self, query_client, clock):
        scheduler = RefetchScheduler(query_client)
        fn = MagicMock(return_value="v")
        query_client.fetch(("unused",), fn, gc_time=10)
        query_client.fetch(("used",), fn, gc_time=10)
        unused = scheduler.register(("unused",), fn, interval=5, gc_time=10)
        scheduler.register(("used",), fn, interval=5, gc_time=10)

        for _ in range(3):
            clock.advance(5)
            scheduler.run_job(unused)
            query_client.get_query_data(("used",))

        assert scheduler.collect_garbage() == 1
        assert not scheduler.is_registered(("unused",))
        assert scheduler.is_registered(("used",))
        assert query_client.keys() == [("used",)]

    def test_gc_removes_scheduled_job(self, query_client, clock):
        scheduler = RefetchScheduler(query_client)
        query_client.set_query_data(("k",), "v", gc_time=10)
        scheduler.register(("k",), MagicMock(), interval=5)

        with patch("iqx.application.refetch.BackgroundScheduler") as background:
            scheduler.start()
            clock.advance(11)
            scheduler.collect_garbage()

        background.return_value.remove_job.assert_called_once_with("refetch:k")
        assert scheduler.jobs == []


# =====================================================================
# Query bindings
# =====================================================================

class TestSignalQueries:
    """Tests for signals queries."""

    def test_no_symbols_disables_query(self, query_client):
        client = MagicMock()
        queries = SignalQueries(query_client, client)

        assert queries.signals([]) is None
        assert queries.realtime([]) is None
        client.get_signals.assert_not_called()

    def test_realtime_registers_refetch(self, query_client):
        client, scheduler = MagicMock(), MagicMock()
        scheduler.is_registered.return_value = False
        SignalQueries(query_client, client, scheduler).realtime(["fpt"])

        scheduler.register.assert_called_once()
        args, kwargs = scheduler.register.call_args
        assert args[0] == ("signals", "realtime", "FPT")
        assert kwargs["interval"] == 60

    def test_failed_realtime_registers_nothing(self, query_client):
        client = MagicMock()
        client.get_signals.side_effect = SignalsError("Bad symbol", status_code=400)
        scheduler = RefetchScheduler(query_client)
        queries = SignalQueries(query_client, client, scheduler)

        for n in range(5):
            with pytest.raises(SignalsError):
                queries.realtime([f"S{n}"])

        assert scheduler.jobs == []

    def test_realtime_jobs_expire_with_their_queries(self, query_client, clock):
        scheduler = RefetchScheduler(query_client)
        queries = SignalQueries(query_client, MagicMock(), scheduler)

        for n in range(50):
            queries.realtime([f"S{n}"])
        assert len(scheduler.jobs) == 50

        for _ in range(6):
            clock.advance(60)
            for job in scheduler.jobs:
                scheduler.run_job(job)
        scheduler.collect_garbage()

        assert scheduler.jobs == []
        assert query_client.keys() == []


class TestListQueries:
    """Tests for the paged list reads of symbols and users."""

    def test_builtins_are_not_shadowed(self):
        for cls in (SymbolQueries, UserQueries):
            assert "list" not in vars(cls)
            assert "all" not in vars(cls)

    def test_symbol_lists_are_cached_per_query(self, query_client):
        client = MagicMock()
        queries = SymbolQueries(query_client, client)

        queries.list_symbols(SymbolQuery(page=2))
        queries.list_symbols(SymbolQuery(page=2))
        queries.all_symbols()
        queries.all_symbols()

        assert client.list_symbols.call_count == 1
        assert client.get_all_symbols.call_count == 1

    def test_user_list_is_cached_per_params(self, query_client):
        client = MagicMock()
        queries = UserQueries(query_client, client)

        queries.list_users()
        queries.list_users(UserListParams())
        queries.list_users(UserListParams(page=2))

        assert client.list_users.call_count == 2


class TestCurrencyQueries:
    """Tests for exchange rate queries."""

    def test_same_currency_needs_no_rate(self, query_client):
        client = MagicMock()
        queries = CurrencyQueries(query_client, client)

        conversion = queries.convert(5, "usd", "USD")

        assert conversion.converted_amount == 5
        assert conversion.rate == 1.0
        assert queries.exchange_rate("USD", "USD") is None
        client.get_exchange_rate.assert_not_called()

    def test_unknown_pair_registers_no_refetch(self, query_client):
        client = MagicMock()
        client.get_exchange_rate.side_effect = DashboardApiError("Unknown currency", status_code=400)
        scheduler = RefetchScheduler(query_client)
        queries = CurrencyQueries(query_client, client, scheduler)

        for n in range(50):
            with pytest.raises(DashboardApiError):
                queries.exchange_rate("USD", f"X{n:02d}")

        assert scheduler.jobs == []
        assert query_client.keys() == []

    def test_rate_registers_refetch_after_success(self, query_client):
        scheduler = RefetchScheduler(query_client)
        CurrencyQueries(query_client, MagicMock(), scheduler).exchange_rate("usd", "vnd")

        assert scheduler.is_registered(("exchange-rate", "USD", "VND"))


class TestArixQueries:
    """Tests for ARIX sheet queries."""

    def test_sheet_is_cached_and_filtered(self, query_client):
        trade = ArixSellTrade(stock_code="FPT", buy_date="", buy_price=1, quantity=1,
                              sell_date="", sell_price=2, return_percent="100%",
                              profit_loss=1, days_held=3)
        client = MagicMock()
        client.get_sell.return_value = ArixSellResponse(
            trades=[trade], total_trades=1, last_updated="2024-01-01T00:00:00Z"
        )
        queries = ArixQueries(query_client, client)

        assert queries.sell_for_symbol("fpt") == [trade]
        assert queries.sell_statistics().total_trades == 1
        assert client.get_sell.call_count == 1

        queries.refresh()
        queries.sell()
        assert client.get_sell.call_count == 2


class TestReferralQueries:
    """Tests for referral queries."""

    def test_generated_code_is_cached(self, query_client):
        client = MagicMock()
        client.generate_code.return_value = _referral_code()
        queries = ReferralQueries(query_client, client)

        assert queries.generate_code().code == "ABC123"
        assert queries.my_code().code == "ABC123"
        client.get_my_code.assert_not_called()
        assert query_client.get_query_data(MY_CODE).code == "ABC123"


class TestSubscriptionQueries:
    """Tests for subscription queries."""

    def test_subscribe_refreshes_plan(self, query_client):
        client = MagicMock()
        queries = SubscriptionQueries(query_client, client)

        queries.my_plan()
        queries.my_plan()
        queries.subscribe(SubscribeRequest(package_id="pkg-1"))
        queries.my_plan()

        assert client.get_my_plan.call_count == 2


class TestPaymentQueries:
    """Tests for the pending order flow."""

    def _queries(self, query_client, client, storage=None):
        return PaymentQueries(query_client, client, storage or MemoryStorage())

    def test_create_stores_pending_order(self, query_client):
        client, storage = MagicMock(), MemoryStorage()
        client.create_payment.return_value = CreatePaymentResponse(
            id="pay-1", order_code=12345, amount=199000, currency="VND",
            description="Gói Pro", status="pending",
            package={"id": "pkg", "name": "Pro", "durationDays": 30},
        )
        queries = self._queries(query_client, client, storage)

        queries.create(CreatePaymentRequest(package_id="pkg"))

        assert storage.get_item(PENDING_ORDER_STORAGE_KEY) == "12345"
        assert queries.pending_order_code() == 12345

    def test_terminal_status_clears_pending_order(self, query_client):
        client = MagicMock()
        client.check_status.return_value = _status(12345, "completed")
        storage = MemoryStorage({PENDING_ORDER_STORAGE_KEY: "12345"})

        status = self._queries(query_client, client, storage).status(12345)

        assert status.is_terminal
        assert storage.get_item(PENDING_ORDER_STORAGE_KEY) is None

    def test_pending_status_keeps_pending_order(self, query_client):
        client = MagicMock()
        client.check_status.return_value = _status(12345, "pending")
        storage = MemoryStorage({PENDING_ORDER_STORAGE_KEY: "12345"})

        self._queries(query_client, client, storage).status(12345)

        assert storage.get_item(PENDING_ORDER_STORAGE_KEY) == "12345"

    def test_malformed_pending_order_is_discarded(self, query_client):
        storage = MemoryStorage({PENDING_ORDER_STORAGE_KEY: "abc"})
        queries = self._queries(query_client, MagicMock(), storage)

        assert queries.pending_order_code() is None
        assert PENDING_ORDER_STORAGE_KEY not in storage.data

    def test_cancel_clears_matching_pending_order(self, query_client):
        client = MagicMock()
        client.cancel_payment.return_value = Payment(**_payment_fields(12345, "cancelled"))
        storage = MemoryStorage({PENDING_ORDER_STORAGE_KEY: "12345"})

        self._queries(query_client, client, storage).cancel("pay-1")

        assert storage.get_item(PENDING_ORDER_STORAGE_KEY) is None

    def test_return_prefers_redirect_order_code(self, query_client):
        client = MagicMock()
        client.check_status.return_value = _status(777, "completed")
        storage = MemoryStorage({PENDING_ORDER_STORAGE_KEY: "12345"})

        self._queries(query_client, client, storage).resolve_return({"orderCode": "777"})

        client.check_status.assert_called_once_with(777)

    def test_return_falls_back_to_pending_order(self, query_client):
        client = MagicMock()
        client.check_status.return_value = _status(12345, "pending")
        storage = MemoryStorage({PENDING_ORDER_STORAGE_KEY: "12345"})

        self._queries(query_client, client, storage).resolve_return({"orderCode": "oops"})

        client.check_status.assert_called_once_with(12345)

    def test_return_without_any_order(self, query_client):
        client = MagicMock()
        assert self._queries(query_client, client).resolve_return({}) is None
        client.check_status.assert_not_called()

    def test_wait_for_status_polls_until_terminal(self, query_client, clock):
        client = MagicMock()
        client.check_status.side_effect = [
            _status(1, "pending"), _status(1, "processing"), _status(1, "completed"),
        ]

        status = self._queries(query_client, client).wait_for_status(1, interval=5, max_attempts=10)

        assert status.status.value == "completed"
        assert client.check_status.call_count == 3
        assert clock.sleeps == [5, 5]


class TestPendingOrder:
    """Tests for the stored order code."""

    def test_round_trip_through_storage(self):
        storage = MemoryStorage()
        pending = PendingOrder(storage)

        pending.set(42)

        assert storage.get_item(PENDING_ORDER_STORAGE_KEY) == "42"
        assert pending.get() == 42

    def test_malformed_value_is_discarded(self):
        storage = MemoryStorage({PENDING_ORDER_STORAGE_KEY: {"order": 1}})

        assert PendingOrder(storage).get() is None
        assert PENDING_ORDER_STORAGE_KEY not in storage.data


def _extension_status(order_code: int, status: str) -> ExtensionPaymentStatus:
    return ExtensionPaymentStatus(order_code=order_code, status=status)


class TestExtensionQueries:
    """Tests for the extension purchase flow."""

    ORIGIN = "https://app.example.test"

    def _queries(self, query_client, client, storage=None, **urls):
        return ExtensionQueries(query_client, client, storage or MemoryStorage(), self.ORIGIN, **urls)

    def test_purchase_stores_pending_order(self, query_client):
        client, storage = MagicMock(), MemoryStorage()
        client.create_payment.return_value = ExtensionPaymentResponse(
            order_code=555, checkout_url="https://pay.test/555"
        )

        response = self._queries(query_client, client, storage).purchase("ext-1")

        assert response.checkout_url == "https://pay.test/555"
        assert storage.get_item(PENDING_ORDER_STORAGE_KEY) == "555"
        request = client.create_payment.call_args.args[0]
        assert request.extension_package_id == "ext-1"
        assert request.return_url == f"{self.ORIGIN}/payment/success"
        assert request.cancel_url == f"{self.ORIGIN}/payment/cancel"

    def test_configured_redirects_are_used(self, query_client):
        client = MagicMock()
        client.create_payment.return_value = ExtensionPaymentResponse(
            order_code=1, checkout_url="https://pay.test/1"
        )
        queries = self._queries(
            query_client, client, return_url="https://conf.test/ok", cancel_url="https://conf.test/no"
        )

        queries.purchase("ext-1")

        request = client.create_payment.call_args.args[0]
        assert (request.return_url, request.cancel_url) == ("https://conf.test/ok", "https://conf.test/no")

    def test_invalid_redirect_sends_nothing(self, query_client):
        client = MagicMock()

        with pytest.raises(ApiExtensionError) as exc_info:
            self._queries(query_client, client).purchase("ext-1", return_url="/payment/success")

        assert exc_info.value.status_code == 400
        client.create_payment.assert_not_called()

    def test_missing_checkout_link_raises(self, query_client):
        client = MagicMock()
        client.create_payment.return_value = ExtensionPaymentResponse(order_code=555)

        with pytest.raises(ApiExtensionError, match="checkout link"):
            self._queries(query_client, client).purchase("ext-1")

    def test_terminal_status_settles_pending_order(self, query_client):
        client = MagicMock()
        client.check_payment.return_value = _extension_status(555, "PAID")
        storage = MemoryStorage({PENDING_ORDER_STORAGE_KEY: "555"})
        queries = self._queries(query_client, client, storage)

        queries.my_extensions()
        queries.payment_status(555)
        queries.my_extensions()

        assert storage.get_item(PENDING_ORDER_STORAGE_KEY) is None
        assert client.get_my_extensions.call_count == 2

    def test_in_flight_status_keeps_pending_order(self, query_client):
        client = MagicMock()
        client.check_payment.return_value = _extension_status(555, "processing")
        storage = MemoryStorage({PENDING_ORDER_STORAGE_KEY: "555"})

        self._queries(query_client, client, storage).payment_status(555)

        assert storage.get_item(PENDING_ORDER_STORAGE_KEY) == "555"

    def test_other_order_leaves_pending_order(self, query_client):
        client = MagicMock()
        client.check_payment.return_value = _extension_status(777, "PAID")
        storage = MemoryStorage({PENDING_ORDER_STORAGE_KEY: "555"})

        self._queries(query_client, client, storage).payment_status(777)

        assert storage.get_item(PENDING_ORDER_STORAGE_KEY) == "555"

    def test_resume_without_pending_order(self, query_client):
        client = MagicMock()
        assert self._queries(query_client, client).resume_pending() is None
        client.check_payment.assert_not_called()

    def test_wait_polls_until_settled(self, query_client, clock):
        client = MagicMock()
        client.check_payment.side_effect = [
            _extension_status(9, "pending"),
            _extension_status(9, "processing"),
            _extension_status(9, "CANCELLED"),
        ]

        status = self._queries(query_client, client).wait_for_payment(9, interval=2, max_attempts=10)

        assert status.status == "CANCELLED"
        assert client.check_payment.call_count == 3
        assert clock.sleeps == [2, 2]

    def test_shares_pending_order_with_subscription_payments(self, query_client):
        client, storage = MagicMock(), MemoryStorage()
        client.create_payment.return_value = ExtensionPaymentResponse(
            order_code=555, checkout_url="https://pay.test/555"
        )

        self._queries(query_client, client, storage).purchase("ext-1")

        assert PaymentQueries(query_client, MagicMock(), storage).pending_order_code() == 555


# =====================================================================
# Watchlist
# =====================================================================


class TestWatchlistQueries:
    """Tests for watchlist caching and writes."""

    def test_write_refreshes_every_watchlist_query(self, query_client):
        client = MagicMock()
        client.check.return_value = CheckWatchlistResponse(is_in_watchlist=False)
        queries = WatchlistQueries(query_client, client)

        queries.items()
        queries.count()
        queries.check("FPT")
        queries.add(AddToWatchlistRequest(symbol_code="FPT"))
        queries.items()
        queries.count()
        queries.check("fpt")

        assert client.get_watchlist.call_count == 2
        assert client.get_count.call_count == 2
        assert client.check.call_count == 2

    def test_check_skips_codes_that_are_not_tickers(self, query_client):
        client = MagicMock()

        assert WatchlistQueries(query_client, client).check("12") is None
        client.check.assert_not_called()

    def test_toggle_removes_watched_symbol(self, query_client):
        client = MagicMock()
        client.check.return_value = CheckWatchlistResponse(is_in_watchlist=True)

        assert WatchlistQueries(query_client, client).toggle("FPT") is False
        client.remove_by_symbol.assert_called_once_with("FPT")
        client.add.assert_not_called()

    def test_toggle_adds_missing_symbol(self, query_client):
        client = MagicMock()
        client.check.return_value = CheckWatchlistResponse(is_in_watchlist=False)

        assert WatchlistQueries(query_client, client).toggle("FPT") is True
        assert client.add.call_args.args[0].symbol_code == "FPT"
        client.remove_by_symbol.assert_not_called()

    def test_batch_add_collects_failures(self, query_client):
        client = MagicMock()
        client.add.side_effect = [
            MagicMock(),
            WatchlistError("Symbol ZZZ does not exist", status_code=404),
            MagicMock(),
        ]

        result = WatchlistQueries(query_client, client).batch_add(["FPT", "ZZZ", "VNM"])

        assert result.successful == ["FPT", "VNM"]
        assert [(f.symbol, f.error) for f in result.failed] == [("ZZZ", "Symbol ZZZ does not exist")]

    def test_failed_batch_keeps_cache(self, query_client):
        client = MagicMock()
        client.add.side_effect = WatchlistError("Symbol ZZZ does not exist", status_code=404)
        queries = WatchlistQueries(query_client, client)

        queries.items()
        queries.batch_add(["ZZZ"])
        queries.items()

        assert client.get_watchlist.call_count == 1

    def test_stats_come_from_the_list(self, query_client):
        client = MagicMock()
        client.get_watchlist.return_value = [
            WatchlistItem.model_validate(watchlist_item_body("FPT", isAlertEnabled=True)),
            WatchlistItem.model_validate(watchlist_item_body("VCB")),
        ]

        stats = WatchlistQueries(query_client, client).stats()

        assert stats.total_items == 2
        assert stats.alerts_enabled == 1


class TestTradingQueries:
    """Tests for virtual trading queries."""

    def test_invalid_order_never_reaches_client(self, query_client):
        client = MagicMock()
        with pytest.raises(VirtualTradingError):
            TradingQueries(query_client, client).buy("FPT", 0)
        client.buy.assert_not_called()

    def test_missing_portfolio_is_not_retried(self, query_client, clock):
        client = MagicMock()
        client.get_portfolio.side_effect = VirtualTradingError("Not found", status_code=404)

        with pytest.raises(VirtualTradingError):
            TradingQueries(query_client, client).portfolio()

        assert client.get_portfolio.call_count == 1
        assert clock.sleeps == []

    def test_order_refreshes_portfolio(self, query_client):
        client = MagicMock()
        queries = TradingQueries(query_client, client)

        queries.portfolio()
        queries.sell("FPT", 100)
        queries.portfolio()

        assert client.get_portfolio.call_count == 2
        order = client.sell.call_args.args[0]
        assert order.symbol_code == "FPT"
        assert order.quantity == 100
