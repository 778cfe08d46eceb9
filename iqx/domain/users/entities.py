"""
User management schemas for the admin console.
"""

from enum import Enum
from typing import Any, Literal, Optional

from pydantic import Field

from iqx.domain.billing.entities import SubscriptionStatus
from iqx.domain.schema import WireModel

MAX_PAGE_SIZE = 100


class UserRole(str, Enum):
    ADMIN = "admin"
    MEMBER = "member"
    PREMIUM = "premium"


class UserPackageSummary(WireModel):
    id: str
    name: str
    description: Optional[str] = None
    price: Optional[float] = None
    currency: Optional[str] = None
    duration_days: Optional[int] = None


class AdminUserSubscription(WireModel):
    id: str
    package_id: str
    status: SubscriptionStatus
    starts_at: str
    expires_at: str
    auto_renew: bool
    price: float
    currency: str
    payment_reference: Optional[str] = None
    cancelled_at: Optional[str] = None
    cancellation_reason: Optional[str] = None
    created_at: str
    updated_at: str
    package: UserPackageSummary


class UserListItem(WireModel):
    id: str
    email: str
    display_name: str
    full_name: str
    phone_e164: Optional[str] = Field(default=None, alias="phoneE164")
    phone_verified_at: Optional[str] = None
    role: UserRole
    is_active: bool
    referred_by_id: Optional[str] = None
    created_at: str
    updated_at: str
    user_subscriptions: list[AdminUserSubscription] = []

    @property
    def active_subscription(self) -> Optional[AdminUserSubscription]:
        return next(
            (s for s in self.user_subscriptions if s.status is SubscriptionStatus.ACTIVE),
            None,
        )


class UserDetail(UserListItem):
    virtual_portfolios: Optional[list[Any]] = None
    referral_codes: Optional[list[Any]] = None
    commissions: Optional[list[Any]] = None


class UserStats(WireModel):
    total_users: int
    active_users: int
    inactive_users: int
    premium_users: int
    admin_users: int
    new_users_this_month: int


class UserListParams(WireModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1)
    search: Optional[str] = None
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None
    sort_by: Optional[Literal["email", "createdAt", "updatedAt"]] = None
    sort_order: Optional[Literal["ASC", "DESC"]] = None

    def to_params(self) -> dict:
        params = self.model_dump(by_alias=True, exclude_none=True, mode="json")
        params["limit"] = min(self.limit, MAX_PAGE_SIZE)
        if not params.get("search"):
            params.pop("search", None)
        if "isActive" in params:
            params["isActive"] = "true" if self.is_active else "false"
        return params


class UserListPagination(WireModel):
    total: int
    page: int
    limit: int
    total_pages: int


class UserListResponse(WireModel):
    data: list[UserListItem]
    pagination: UserListPagination


class AssignSubscriptionRequest(WireModel):
    package_id: str
    starts_at: Optional[str] = None
    duration_days: Optional[int] = Field(default=None, gt=0)
    auto_renew: Optional[bool] = None


class UpdateUserSubscriptionRequest(WireModel):
    status: Optional[SubscriptionStatus] = None
    expires_at: Optional[str] = None
    auto_renew: Optional[bool] = None
    cancellation_reason: Optional[str] = None


class UpdateRoleRequest(WireModel):
    role: UserRole


class CancelUserSubscriptionRequest(WireModel):
    reason: str = Field(min_length=1)


class UserActionResponse(WireModel):
    message: str
    user: Optional[UserDetail] = None
    subscription: Optional[AdminUserSubscription] = None
