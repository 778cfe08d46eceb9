"""
Referral and commission schemas.

Money amounts are often sent as decimal strings ("150000.00"); pydantic's
lax mode coerces them to float.
"""

from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from pydantic import Field

from iqx.domain.schema import WireModel

T = TypeVar("T")


class CommissionStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    PAID = "paid"
    CANCELLED = "cancelled"


class Envelope(WireModel, Generic[T]):
    """{"success": ..., "data": ...} wrapper used by the first-party API."""

    success: bool
    data: T


class ReferralCode(WireModel):
    id: str
    user_id: str
    code: str
    total_referrals: int
    total_commission: float
    is_active: bool
    created_at: str
    updated_at: str


class Commission(WireModel):
    id: str
    user_id: str
    payment_id: str
    referrer_id: str
    tier: int
    amount: float
    commission_pct: float
    original_amount: float
    status: CommissionStatus
    paid_at: Optional[str] = None
    cancelled_at: Optional[str] = None
    cancellation_reason: Optional[str] = None
    notes: Optional[str] = None
    created_at: str
    updated_at: str
    payment: Optional[Any] = None
    referrer: Optional[Any] = None


class DirectReferral(WireModel):
    id: str
    email: str
    display_name: Optional[str] = None
    created_at: str


class ReferralStats(WireModel):
    referral_code: Optional[str] = None
    total_referrals: int
    total_commission: float
    direct_referrals: list[DirectReferral]


class DownlineNode(WireModel):
    """A user in the referral tree, with their own subtree."""

    id: str
    email: str
    display_name: Optional[str] = None
    created_at: str
    referral_code: Optional[str] = None
    total_referrals: int
    total_commission: float
    level: int
    children_count: int
    children: list["DownlineNode"] = []


class TotalDownline(WireModel):
    total: int


class CommissionTotal(WireModel):
    total: float
    pending: float
    approved: float
    paid: float


class CommissionSetting(WireModel):
    """Commission plan. tiers_pct[i] is the fraction paid i+1 levels up."""

    id: str
    name: str
    description: Optional[str] = None
    commission_total_pct: float
    tiers_pct: list[float]
    is_active: bool
    created_at: str
    updated_at: str


class PayoutExampleTier(WireModel):
    tier: int
    percentage: float
    amount: float


class PayoutExamples(WireModel):
    price: float
    total_commission: float
    tiers: list[PayoutExampleTier]


class ApplyReferralCodeRequest(WireModel):
    code: str = Field(min_length=1)


class CreateCommissionSettingRequest(WireModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    commission_total_pct: float = Field(ge=0, le=1)
    tiers_pct: list[float]
    is_active: Optional[bool] = None


class UpdateCommissionSettingRequest(WireModel):
    name: Optional[str] = None
    description: Optional[str] = None
    commission_total_pct: Optional[float] = Field(default=None, ge=0, le=1)
    tiers_pct: Optional[list[float]] = None
    is_active: Optional[bool] = None


class PayoutExampleRequest(WireModel):
    price: float = Field(gt=0)


class GenerateForAllResult(WireModel):
    created: int
    skipped: int


DownlineNode.model_rebuild()
