"""
Upline commission calculator.

When a seller at tier F_n sells a package, each upline above them is paid
one entry of the setting's tiers_pct, nearest upline first. A seller at F3
pays F2, F1 and F0 (the root), as far as the setting has tiers.
"""

import math
from dataclasses import dataclass

from iqx.domain.referral.entities import CommissionSetting


@dataclass(frozen=True)
class UplinePayout:
    upline_tier: str
    tier_label: str
    percentage: float
    commission_per_sale: int
    quantity: int
    total_commission: int


def upline_label(upline_tier: int) -> str:
    return "F0 (Root)" if upline_tier == 0 else f"F{upline_tier}"


def calculate_upline_payouts(
    tiers_pct: list[float], price: float, seller_tier: int, quantity: int = 1
) -> list[UplinePayout]:
    """Commission owed to each upline for `quantity` sales at `price`.

    Args:
        tiers_pct: Fractions (0.1 == 10%) per level above the seller.
        price: Package price in VND.
        seller_tier: The seller's tier n (F_n), at least 1 to pay anyone.
        quantity: Number of packages sold.

    Returns:
        One payout per paid upline. Per-sale amounts are floored to whole VND.
    """
    payouts = []
    for i in range(max(0, min(seller_tier, len(tiers_pct)))):
        percentage = tiers_pct[i]
        per_sale = math.floor(price * percentage)
        payouts.append(
            UplinePayout(
                upline_tier=upline_label(seller_tier - i - 1),
                tier_label=f"Cấp {i + 1} trên người bán",
                percentage=percentage,
                commission_per_sale=per_sale,
                quantity=quantity,
                total_commission=per_sale * quantity,
            )
        )
    return payouts


def calculate_for_setting(
    setting: CommissionSetting, price: float, seller_tier: int, quantity: int = 1
) -> list[UplinePayout]:
    return calculate_upline_payouts(setting.tiers_pct, price, seller_tier, quantity)


def total_payout(payouts: list[UplinePayout]) -> int:
    return sum(p.total_commission for p in payouts)


def pick_active_setting(settings: list[CommissionSetting]):
    """First active setting, the one the calculator preselects."""
    return next((s for s in settings if s.is_active), None)


def build_referral_link(origin: str, code: str) -> str:
    return f"{origin.rstrip('/')}/register?ref={code}"
