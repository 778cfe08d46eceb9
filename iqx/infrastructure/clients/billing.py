"""
Adapter: subscription and payment clients.

Unlike referral endpoints these answer with bare objects and arrays.
"""

import logging
from typing import Optional

from pydantic import TypeAdapter

from iqx.domain.billing.entities import (
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
)
from iqx.domain.errors import SubscriptionError
from iqx.infrastructure.http import ApiHttpClient

logger = logging.getLogger(__name__)

_packages = TypeAdapter(list[SubscriptionPackage])
_history = TypeAdapter(list[UserSubscriptionWithPackage])
_payments = TypeAdapter(list[PaymentWithSubscription])


def _body(request) -> dict:
    return request.model_dump(by_alias=True, exclude_none=True)


class SubscriptionClient:
    def __init__(self, http: ApiHttpClient) -> None:
        self._http = http

    def list_packages(self) -> list[SubscriptionPackage]:
        data = self._http.get("/subscriptions/packages")
        return self._http.parse(_packages, data, "subscription packages")

    def get_package(self, package_id: str) -> SubscriptionPackage:
        data = self._http.get(f"/subscriptions/packages/{package_id}")
        return self._http.parse(SubscriptionPackage, data, "subscription package")

    def get_my_plan(self) -> CurrentPlan:
        data = self._http.get("/subscriptions/my-plan")
        return self._http.parse(CurrentPlan, data, "current plan")

    def get_my_subscription(self) -> Optional[UserSubscriptionWithPackage]:
        """Active subscription, or None when the backend answers 404."""
        try:
            data = self._http.get("/subscriptions/my-subscription")
        except SubscriptionError as exc:
            if exc.status_code == 404:
                return None
            raise
        return self._http.parse(UserSubscriptionWithPackage, data, "subscription")

    def get_my_history(self) -> list[UserSubscriptionWithPackage]:
        data = self._http.get("/subscriptions/my-history")
        return self._http.parse(_history, data, "subscription history")

    def subscribe(self, request: SubscribeRequest) -> UserSubscription:
        data = self._http.post("/subscriptions/subscribe", json=_body(request))
        logger.info("Subscribed to package %s", request.package_id)
        return self._http.parse(UserSubscription, data, "subscription")

    def renew(self, subscription_id: str, request: RenewSubscriptionRequest) -> UserSubscription:
        data = self._http.put(f"/subscriptions/{subscription_id}/renew", json=_body(request))
        return self._http.parse(UserSubscription, data, "subscription")

    def cancel(self, subscription_id: str, request: CancelSubscriptionRequest) -> UserSubscription:
        data = self._http.put(f"/subscriptions/{subscription_id}/cancel", json=_body(request))
        return self._http.parse(UserSubscription, data, "subscription")

    def get_stats(self) -> SubscriptionStats:
        data = self._http.get("/subscriptions/stats")
        return self._http.parse(SubscriptionStats, data, "subscription stats")

    def seed_packages(self) -> list[SubscriptionPackage]:
        data = self._http.post("/subscriptions/seed-packages")
        return self._http.parse(_packages, data, "subscription packages")

    def has_active_subscription(self) -> bool:
        """False on any failure, including an unreachable backend."""
        try:
            subscription = self.get_my_subscription()
        except SubscriptionError:
            return False
        return subscription is not None


class PaymentClient:
    def __init__(self, http: ApiHttpClient) -> None:
        self._http = http

    def create_payment(self, request: CreatePaymentRequest) -> CreatePaymentResponse:
        data = self._http.post("/payments/create", json=_body(request))
        response = self._http.parse(CreatePaymentResponse, data, "payment")
        logger.info("Created payment order %d", response.order_code)
        return response

    def get_payment(self, payment_id: str) -> PaymentWithSubscription:
        data = self._http.get(f"/payments/{payment_id}")
        return self._http.parse(PaymentWithSubscription, data, "payment")

    def get_my_payments(self) -> list[PaymentWithSubscription]:
        data = self._http.get("/payments/my-payments")
        return self._http.parse(_payments, data, "payments")

    def check_status(self, order_code: int) -> PaymentStatusResponse:
        data = self._http.get(f"/payments/check-status/{order_code}")
        return self._http.parse(PaymentStatusResponse, data, "payment status")

    def cancel_payment(self, payment_id: str) -> Payment:
        data = self._http.put(f"/payments/{payment_id}/cancel")
        logger.info("Cancelled payment %s", payment_id)
        return self._http.parse(Payment, data, "payment")
