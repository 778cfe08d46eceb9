"""
Subscription and payment queries.

A created payment's order code is kept in client storage until a status
check reports a terminal state, so the status can be resumed after the
user comes back from the gateway.
"""

import logging
from typing import Mapping, Optional

from iqx.application.queries import MINUTE, SECOND
from iqx.application.query_client import QueryClient
from iqx.domain.billing.entities import (
    PENDING_ORDER_STORAGE_KEY,
    CancelSubscriptionRequest,
    CreatePaymentRequest,
    CreatePaymentResponse,
    CurrentPlan,
    Payment,
    PaymentStatusResponse,
    PaymentWithSubscription,
    RenewSubscriptionRequest,
    SubscribeRequest,
    SubscriptionPackage,
    SubscriptionStats,
    UserSubscription,
    UserSubscriptionWithPackage,
    parse_payment_redirect,
)
from iqx.domain.ports import ClientStorage
from iqx.infrastructure.clients.billing import PaymentClient, SubscriptionClient

logger = logging.getLogger(__name__)

PACKAGES = ("subscriptions", "packages")
MY_PLAN = ("subscriptions", "my-plan")
MY_SUBSCRIPTION = ("subscriptions", "my-subscription")
HISTORY = ("subscriptions", "history")
SUBSCRIPTION_STATS = ("subscriptions", "stats")
PAYMENTS = ("payments", "list")

STATUS_POLL_INTERVAL = 5 * SECOND
STATUS_POLL_ATTEMPTS = 60


class PendingOrder:
    """The order code awaiting a gateway result, kept in client storage.

    Shared by the subscription payment and the API extension purchase
    flows, which both come back through the same return page.
    """

    def __init__(self, storage: ClientStorage) -> None:
        self._storage = storage

    def get(self) -> Optional[int]:
        raw = self._storage.get_item(PENDING_ORDER_STORAGE_KEY)
        if raw is None:
            return None
        try:
            return int(raw)
        except (TypeError, ValueError):
            logger.warning("Discarding malformed pending order code")
            self.clear()
            return None

    def set(self, order_code: int) -> None:
        self._storage.set_item(PENDING_ORDER_STORAGE_KEY, str(order_code))

    def clear(self) -> None:
        self._storage.remove_item(PENDING_ORDER_STORAGE_KEY)


class SubscriptionQueries:
    def __init__(self, queries: QueryClient, client: SubscriptionClient) -> None:
        self._queries = queries
        self._client = client

    def packages(self) -> list[SubscriptionPackage]:
        return self._queries.fetch(PACKAGES, self._client.list_packages, stale_time=10 * MINUTE)

    def package(self, package_id: str) -> SubscriptionPackage:
        return self._queries.fetch(
            ("subscriptions", "package", package_id),
            lambda: self._client.get_package(package_id),
            stale_time=10 * MINUTE,
        )

    def my_plan(self) -> CurrentPlan:
        return self._queries.fetch(MY_PLAN, self._client.get_my_plan, stale_time=2 * MINUTE)

    def my_subscription(self) -> Optional[UserSubscriptionWithPackage]:
        return self._queries.fetch(
            MY_SUBSCRIPTION, self._client.get_my_subscription, stale_time=2 * MINUTE
        )

    def history(self) -> list[UserSubscriptionWithPackage]:
        return self._queries.fetch(HISTORY, self._client.get_my_history, stale_time=5 * MINUTE)

    def stats(self) -> SubscriptionStats:
        return self._queries.fetch(
            SUBSCRIPTION_STATS, self._client.get_stats, stale_time=5 * MINUTE
        )

    def has_active_subscription(self) -> bool:
        return self._client.has_active_subscription()

    def subscribe(self, request: SubscribeRequest) -> UserSubscription:
        return self._queries.mutate(
            lambda: self._client.subscribe(request),
            invalidates=[MY_PLAN, MY_SUBSCRIPTION, HISTORY],
        )

    def renew(self, subscription_id: str, request: RenewSubscriptionRequest) -> UserSubscription:
        return self._queries.mutate(
            lambda: self._client.renew(subscription_id, request),
            invalidates=[MY_PLAN, MY_SUBSCRIPTION, HISTORY],
        )

    def cancel(self, subscription_id: str, request: CancelSubscriptionRequest) -> UserSubscription:
        return self._queries.mutate(
            lambda: self._client.cancel(subscription_id, request),
            invalidates=[MY_PLAN, MY_SUBSCRIPTION, HISTORY],
        )

    def seed_packages(self) -> list[SubscriptionPackage]:
        return self._queries.mutate(self._client.seed_packages, invalidates=[PACKAGES])


class PaymentQueries:
    def __init__(
        self, queries: QueryClient, client: PaymentClient, storage: ClientStorage
    ) -> None:
        self._queries = queries
        self._client = client
        self._pending = PendingOrder(storage)

    def my_payments(self) -> list[PaymentWithSubscription]:
        return self._queries.fetch(PAYMENTS, self._client.get_my_payments, stale_time=5 * MINUTE)

    def payment(self, payment_id: str) -> PaymentWithSubscription:
        return self._queries.fetch(
            ("payments", "detail", payment_id),
            lambda: self._client.get_payment(payment_id),
            stale_time=MINUTE,
        )

    def status(self, order_code: int) -> PaymentStatusResponse:
        """Current status; clears the pending order once it is terminal."""
        status = self._queries.fetch(
            ("payments", "status", order_code),
            lambda: self._client.check_status(order_code),
            stale_time=30 * SECOND,
        )
        if status.is_terminal and self.pending_order_code() == order_code:
            self.clear_pending_order()
            self._queries.invalidate(PAYMENTS, MY_PLAN, MY_SUBSCRIPTION, HISTORY)
        return status

    def wait_for_status(
        self,
        order_code: int,
        interval: float = STATUS_POLL_INTERVAL,
        max_attempts: int = STATUS_POLL_ATTEMPTS,
    ) -> PaymentStatusResponse:
        """Poll the gateway until the payment completes, fails or is cancelled."""
        self._queries.poll(
            ("payments", "status", order_code),
            lambda: self._client.check_status(order_code),
            interval=interval,
            until=lambda status: status.is_terminal,
            max_attempts=max_attempts,
            stale_time=30 * SECOND,
        )
        return self.status(order_code)

    def create(self, request: CreatePaymentRequest) -> CreatePaymentResponse:
        response = self._queries.mutate(
            lambda: self._client.create_payment(request), invalidates=[PAYMENTS]
        )
        self._pending.set(response.order_code)
        return response

    def cancel(self, payment_id: str) -> Payment:
        payment = self._queries.mutate(
            lambda: self._client.cancel_payment(payment_id), invalidates=[PAYMENTS]
        )
        if self.pending_order_code() == payment.order_code:
            self.clear_pending_order()
        return payment

    def pending_order_code(self) -> Optional[int]:
        return self._pending.get()

    def clear_pending_order(self) -> None:
        self._pending.clear()

    def resolve_return(self, params: Mapping[str, str]) -> Optional[PaymentStatusResponse]:
        """Status for the order the gateway sent the user back about.

        Falls back to the stored pending order when the return URL carries
        no usable order code. Returns None when there is nothing to check.
        """
        redirect = parse_payment_redirect(params)
        order_code = redirect.order_code or self.pending_order_code()
        if order_code is None:
            return None
        return self.status(order_code)
