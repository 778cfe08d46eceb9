"""
API extension package schemas.

Prices arrive as numbers or numeric strings; both validate to float.
Payment replies are only partly specified upstream, so they keep any
extra fields they carry.
"""

import math
from typing import Optional
from urllib.parse import urlparse

from pydantic import ConfigDict

from iqx.domain.errors import ApiExtensionError
from iqx.domain.schema import WireModel

IN_FLIGHT_STATUSES = frozenset({"pending", "processing"})


class ApiExtensionPackage(WireModel):
    id: str
    name: str
    description: Optional[str] = None
    additional_calls: int
    price: float
    currency: str
    is_active: bool
    created_at: str
    updated_at: str

    @property
    def price_per_call(self) -> int:
        return price_per_call(self.price, self.additional_calls)


class PurchasedExtension(WireModel):
    """One purchase; the backend flattens the package name into it."""

    id: str
    user_id: Optional[str] = None
    subscription_id: str
    extension_package_id: Optional[str] = None
    extension_package_name: str
    additional_calls: int
    price: float
    currency: str
    payment_reference: Optional[str] = None
    purchased_at: str
    created_at: Optional[str] = None


class MyExtensionsResponse(WireModel):
    subscription_id: str
    total_additional_calls: int
    extensions: list[PurchasedExtension]


class ExtensionHistoryResponse(WireModel):
    total_purchases: int
    total_spent: float
    history: list[PurchasedExtension]


class CreateExtensionPaymentRequest(WireModel):
    extension_package_id: str
    return_url: Optional[str] = None
    cancel_url: Optional[str] = None


class ExtensionPaymentResponse(WireModel):
    model_config = ConfigDict(extra="allow")

    order_code: Optional[int] = None
    checkout_url: Optional[str] = None
    amount: Optional[float] = None
    currency: Optional[str] = None
    qr_code: Optional[str] = None


class ExtensionPaymentStatus(WireModel):
    model_config = ConfigDict(extra="allow")

    order_code: Optional[int] = None
    status: str
    amount: Optional[float] = None
    message: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        """Polling continues only while the gateway is pending or processing."""
        return self.status.lower() not in IN_FLIGHT_STATUSES


def price_per_call(price: float, calls: int) -> int:
    """Price of one extra call, halves rounded up; 0 for a package with no calls."""
    if calls <= 0:
        return 0
    return math.floor(price / calls + 0.5)


def is_absolute_http_url(value: Optional[str]) -> bool:
    if not value:
        return False
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def resolve_redirect_urls(
    origin: str,
    return_url: Optional[str] = None,
    cancel_url: Optional[str] = None,
    default_return_url: Optional[str] = None,
    default_cancel_url: Optional[str] = None,
) -> tuple[str, str]:
    """Pick the gateway return and cancel URLs.

    An explicit URL wins, then the configured default, then a page under
    `origin`.

    Raises:
        ApiExtensionError: With status 400 when a chosen URL is not an
            absolute http(s) URL.
    """
    origin = origin.rstrip("/")
    chosen_return = return_url or (default_return_url or "").strip() or f"{origin}/payment/success"
    chosen_cancel = cancel_url or (default_cancel_url or "").strip() or f"{origin}/payment/cancel"
    for label, url in (("return", chosen_return), ("cancel", chosen_cancel)):
        if not is_absolute_http_url(url):
            raise ApiExtensionError(
                f"Invalid {label} URL: {url}. Must be an absolute http(s) URL",
                status_code=400,
            )
    return chosen_return, chosen_cancel
