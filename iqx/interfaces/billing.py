"""
FastAPI router for subscriptions and payments.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response

from iqx.application.queries.billing import PaymentQueries, SubscriptionQueries
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
    calculate_expiry_date,
)
from iqx.domain.formatting import format_date
from iqx.interfaces.dependencies import get_payment_queries, get_subscription_queries
from iqx.interfaces.schemas import ErrorResponse, ExpiryDateResponse, PendingOrderResponse

router = APIRouter(tags=["billing"])

NOT_FOUND = {404: {"model": ErrorResponse}}


# ── Subscriptions ─────────────────────────────────────────────────


@router.get(
    "/subscriptions/packages",
    response_model=list[SubscriptionPackage],
    summary="Subscription packages",
)
def packages(
    queries: SubscriptionQueries = Depends(get_subscription_queries),
) -> list[SubscriptionPackage]:
    return queries.packages()


@router.get(
    "/subscriptions/packages/{package_id}",
    response_model=SubscriptionPackage,
    responses=NOT_FOUND,
    summary="One subscription package",
)
def package(
    package_id: str, queries: SubscriptionQueries = Depends(get_subscription_queries)
) -> SubscriptionPackage:
    return queries.package(package_id)


@router.get(
    "/subscriptions/expiry-date",
    response_model=ExpiryDateResponse,
    summary="Expiry date of a package bought now",
)
def expiry_date(duration_days: int = Query(..., ge=1, le=3650)) -> ExpiryDateResponse:
    expires_at = calculate_expiry_date(duration_days)
    return ExpiryDateResponse(
        duration_days=duration_days,
        expires_at=expires_at.isoformat(),
        display=format_date(expires_at),
    )


@router.get("/subscriptions/my-plan", response_model=CurrentPlan, summary="Current plan")
def my_plan(queries: SubscriptionQueries = Depends(get_subscription_queries)) -> CurrentPlan:
    return queries.my_plan()


@router.get(
    "/subscriptions/my-subscription",
    response_model=Optional[UserSubscriptionWithPackage],
    summary="Active subscription",
)
def my_subscription(
    queries: SubscriptionQueries = Depends(get_subscription_queries),
) -> Optional[UserSubscriptionWithPackage]:
    return queries.my_subscription()


@router.get(
    "/subscriptions/has-active",
    response_model=bool,
    summary="Whether the user has an active subscription",
)
def has_active(queries: SubscriptionQueries = Depends(get_subscription_queries)) -> bool:
    return queries.has_active_subscription()


@router.get(
    "/subscriptions/history",
    response_model=list[UserSubscriptionWithPackage],
    summary="Subscription history",
)
def history(
    queries: SubscriptionQueries = Depends(get_subscription_queries),
) -> list[UserSubscriptionWithPackage]:
    return queries.history()


@router.get("/subscriptions/stats", response_model=SubscriptionStats, summary="Subscription stats")
def subscription_stats(
    queries: SubscriptionQueries = Depends(get_subscription_queries),
) -> SubscriptionStats:
    return queries.stats()


@router.post(
    "/subscriptions",
    response_model=UserSubscription,
    responses={422: {"model": ErrorResponse}},
    summary="Subscribe to a package",
)
def subscribe(
    request: SubscribeRequest,
    queries: SubscriptionQueries = Depends(get_subscription_queries),
) -> UserSubscription:
    return queries.subscribe(request)


@router.post(
    "/subscriptions/{subscription_id}/renew",
    response_model=UserSubscription,
    responses=NOT_FOUND,
    summary="Renew a subscription",
)
def renew(
    subscription_id: str,
    request: RenewSubscriptionRequest,
    queries: SubscriptionQueries = Depends(get_subscription_queries),
) -> UserSubscription:
    return queries.renew(subscription_id, request)


@router.post(
    "/subscriptions/{subscription_id}/cancel",
    response_model=UserSubscription,
    responses=NOT_FOUND,
    summary="Cancel a subscription",
)
def cancel_subscription(
    subscription_id: str,
    request: CancelSubscriptionRequest,
    queries: SubscriptionQueries = Depends(get_subscription_queries),
) -> UserSubscription:
    return queries.cancel(subscription_id, request)


@router.post(
    "/subscriptions/packages/seed",
    response_model=list[SubscriptionPackage],
    summary="Seed default packages",
)
def seed_packages(
    queries: SubscriptionQueries = Depends(get_subscription_queries),
) -> list[SubscriptionPackage]:
    return queries.seed_packages()


# ── Payments ──────────────────────────────────────────────────────


@router.post(
    "/payments",
    response_model=CreatePaymentResponse,
    responses={422: {"model": ErrorResponse}},
    summary="Create a payment",
    description="Creates a checkout link and remembers the order as pending.",
)
def create_payment(
    request: CreatePaymentRequest,
    queries: PaymentQueries = Depends(get_payment_queries),
) -> CreatePaymentResponse:
    return queries.create(request)


@router.get(
    "/payments",
    response_model=list[PaymentWithSubscription],
    summary="My payments",
)
def my_payments(
    queries: PaymentQueries = Depends(get_payment_queries),
) -> list[PaymentWithSubscription]:
    return queries.my_payments()


@router.get(
    "/payments/pending",
    response_model=PendingOrderResponse,
    summary="Pending order code",
)
def pending_order(queries: PaymentQueries = Depends(get_payment_queries)) -> PendingOrderResponse:
    return PendingOrderResponse(order_code=queries.pending_order_code())


@router.get(
    "/payments/return",
    response_model=PaymentStatusResponse,
    responses={204: {"description": "No order to check"}},
    summary="Resolve the gateway redirect",
    description=(
        "Reads orderCode and status from the return URL. Falls back to the "
        "pending order when the URL carries no order code."
    ),
)
def payment_return(
    request: Request, queries: PaymentQueries = Depends(get_payment_queries)
):
    status = queries.resolve_return(dict(request.query_params))
    if status is None:
        return Response(status_code=204)
    return status


@router.get(
    "/payments/status/{order_code}",
    response_model=PaymentStatusResponse,
    responses=NOT_FOUND,
    summary="Payment status",
)
def payment_status(
    order_code: int,
    wait: bool = Query(default=False, description="Poll until the payment settles"),
    queries: PaymentQueries = Depends(get_payment_queries),
) -> PaymentStatusResponse:
    if wait:
        return queries.wait_for_status(order_code)
    return queries.status(order_code)


@router.get(
    "/payments/{payment_id}",
    response_model=PaymentWithSubscription,
    responses=NOT_FOUND,
    summary="One payment",
)
def payment(
    payment_id: str, queries: PaymentQueries = Depends(get_payment_queries)
) -> PaymentWithSubscription:
    return queries.payment(payment_id)


@router.post(
    "/payments/{payment_id}/cancel",
    response_model=Payment,
    responses=NOT_FOUND,
    summary="Cancel a payment",
)
def cancel_payment(
    payment_id: str, queries: PaymentQueries = Depends(get_payment_queries)
) -> Payment:
    return queries.cancel(payment_id)
