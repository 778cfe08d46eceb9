"""
Subscription and payment schemas, plus the small amount of client-side
logic around the payment gateway's redirect.
"""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Mapping, Optional

from iqx.domain.schema import WireModel

PENDING_ORDER_STORAGE_KEY = "extensionPaymentOrderCode"


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    CANCELLED = "cancelled"
    SUSPENDED = "suspended"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class PaymentMethod(str, Enum):
    PAYOS = "payos"
    BANK_TRANSFER = "bank_transfer"
    OTHER = "other"


TERMINAL_PAYMENT_STATUSES = frozenset(
    {PaymentStatus.COMPLETED, PaymentStatus.FAILED, PaymentStatus.CANCELLED}
)


class SubscriptionPackage(WireModel):
    id: str
    name: str
    description: Optional[str] = None
    price: float
    currency: str
    duration_days: int
    is_active: bool
    features: Optional[dict[str, Any]] = None
    max_virtual_portfolios: Optional[int] = None
    daily_api_limit: Optional[int] = None
    created_at: str
    updated_at: str


class UserSubscription(WireModel):
    id: str
    user_id: str
    package_id: str
    status: SubscriptionStatus
    starts_at: str
    expires_at: str
    auto_renew: bool
    price: Optional[float] = None
    currency: Optional[str] = None
    payment_reference: Optional[str] = None
    cancelled_at: Optional[str] = None
    cancellation_reason: Optional[str] = None
    created_at: str
    updated_at: str


class UserSubscriptionWithPackage(UserSubscription):
    package: SubscriptionPackage


class PlanFeatures(WireModel):
    max_virtual_portfolios: int
    daily_api_limit: int


class CurrentPlan(WireModel):
    has_plan: bool
    plan_name: str
    expires_at: Optional[str] = None
    features: PlanFeatures


class SubscriptionStats(WireModel):
    total: int
    active: int
    expired: int
    cancelled: int
    total_revenue: float


class SubscribeRequest(WireModel):
    package_id: str
    payment_reference: Optional[str] = None


class RenewSubscriptionRequest(WireModel):
    payment_reference: Optional[str] = None


class CancelSubscriptionRequest(WireModel):
    reason: Optional[str] = None


class Payment(WireModel):
    id: str
    user_id: str
    subscription_id: Optional[str] = None
    order_code: int
    amount: float
    currency: str
    description: Optional[str] = None
    status: PaymentStatus
    payment_method: PaymentMethod
    payment_link_id: Optional[str] = None
    checkout_url: Optional[str] = None
    qr_code: Optional[str] = None
    account_number: Optional[str] = None
    reference: Optional[str] = None
    transaction_date_time: Optional[str] = None
    counter_account_bank_id: Optional[str] = None
    counter_account_bank_name: Optional[str] = None
    counter_account_name: Optional[str] = None
    counter_account_number: Optional[str] = None
    virtual_account_name: Optional[str] = None
    virtual_account_number: Optional[str] = None
    webhook_data: Optional[dict[str, Any]] = None
    completed_at: Optional[str] = None
    cancelled_at: Optional[str] = None
    failed_reason: Optional[str] = None
    created_at: str
    updated_at: str

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_PAYMENT_STATUSES


class PaymentPackageSummary(WireModel):
    id: str
    name: str
    description: Optional[str] = None
    price: Optional[float] = None
    currency: Optional[str] = None
    duration_days: int


class PaymentSubscriptionSummary(WireModel):
    id: str
    package_id: str
    status: str
    starts_at: str
    expires_at: str
    package: PaymentPackageSummary


class PaymentWithSubscription(Payment):
    subscription: Optional[PaymentSubscriptionSummary] = None


class PaymentStatusResponse(Payment):
    payos_status: Optional[str] = None
    payos_info: Optional[Any] = None


class CreatePaymentRequest(WireModel):
    package_id: str
    return_url: Optional[str] = None
    cancel_url: Optional[str] = None


class CreatePaymentResponse(WireModel):
    id: str
    order_code: int
    amount: float
    currency: str
    description: str
    status: PaymentStatus
    checkout_url: Optional[str] = None
    qr_code: Optional[str] = None
    payment_link_id: Optional[str] = None
    package: PaymentPackageSummary


class PaymentRedirect(WireModel):
    """Query parameters the gateway appends when sending the user back."""

    order_code: Optional[int] = None
    status: Optional[str] = None

    @property
    def reports_failure(self) -> bool:
        """The gateway already told us the checkout did not go through."""
        return (self.status or "").upper() in {"CANCELLED", "FAILED"}


def parse_payment_redirect(params: Mapping[str, str]) -> PaymentRedirect:
    """Read orderCode and status from the return URL's query string.

    A non-numeric order code is treated as absent.
    """
    raw = (params.get("orderCode") or "").strip()
    digits = raw.lstrip("-")
    order_code = int(raw) if digits.isdigit() else None
    return PaymentRedirect(order_code=order_code, status=params.get("status") or None)


def calculate_expiry_date(duration_days: int, now: Optional[datetime] = None) -> datetime:
    """When a subscription bought now would lapse."""
    start = now or datetime.now(timezone.utc)
    return start + timedelta(days=duration_days)
