"""
Referral program and commission admin queries.
"""

from typing import Optional

from iqx.application.queries import MINUTE
from iqx.application.query_client import QueryClient
from iqx.domain.referral.entities import (
    Commission,
    CommissionSetting,
    CommissionStatus,
    CommissionTotal,
    CreateCommissionSettingRequest,
    DirectReferral,
    DownlineNode,
    GenerateForAllResult,
    PayoutExamples,
    ReferralCode,
    ReferralStats,
    UpdateCommissionSettingRequest,
)
from iqx.infrastructure.clients.referral import (
    DEFAULT_MAX_DEPTH,
    CommissionAdminClient,
    ReferralClient,
)

REFERRAL = ("referral",)
MY_CODE = ("referral", "my-code")
STATS = ("referral", "stats")
SETTINGS = ("commission", "settings")
ACTIVE_SETTING = ("commission", "active")


class ReferralQueries:
    def __init__(self, queries: QueryClient, client: ReferralClient) -> None:
        self._queries = queries
        self._client = client

    def my_code(self) -> Optional[ReferralCode]:
        return self._queries.fetch(MY_CODE, self._client.get_my_code, stale_time=5 * MINUTE)

    def stats(self) -> ReferralStats:
        return self._queries.fetch(STATS, self._client.get_stats, stale_time=2 * MINUTE)

    def commissions(self, status: Optional[CommissionStatus] = None) -> list[Commission]:
        return self._queries.fetch(
            ("referral", "commissions", status.value if status else None),
            lambda: self._client.get_commissions(status),
            stale_time=MINUTE,
        )

    def commission_total(self) -> CommissionTotal:
        return self._queries.fetch(
            ("referral", "commission-total"),
            self._client.get_commission_total,
            stale_time=MINUTE,
        )

    def direct_referrals(self) -> list[DirectReferral]:
        return self._queries.fetch(
            ("referral", "referrals"),
            self._client.get_direct_referrals,
            stale_time=2 * MINUTE,
        )

    def downline_tree(self, max_depth: int = DEFAULT_MAX_DEPTH) -> Optional[DownlineNode]:
        return self._queries.fetch(
            ("referral", "downline-tree", max_depth),
            lambda: self._client.get_downline_tree(max_depth),
            stale_time=5 * MINUTE,
        )

    def total_downline(self, max_depth: int = DEFAULT_MAX_DEPTH) -> int:
        return self._queries.fetch(
            ("referral", "total-downline", max_depth),
            lambda: self._client.get_total_downline(max_depth),
            stale_time=5 * MINUTE,
        )

    def generate_code(self) -> ReferralCode:
        code = self._queries.mutate(self._client.generate_code, invalidates=[STATS])
        self._queries.set_query_data(MY_CODE, code, stale_time=5 * MINUTE)
        return code

    def update_code(self, code: str) -> ReferralCode:
        updated = self._queries.mutate(lambda: self._client.update_code(code), invalidates=[STATS])
        self._queries.set_query_data(MY_CODE, updated, stale_time=5 * MINUTE)
        return updated

    def apply_code(self, code: str) -> None:
        self._queries.mutate(lambda: self._client.apply_code(code), invalidates=[REFERRAL])


class CommissionQueries:
    """Admin commission settings. Every write refreshes the list and the active plan."""

    def __init__(self, queries: QueryClient, client: CommissionAdminClient) -> None:
        self._queries = queries
        self._client = client

    def settings(self) -> list[CommissionSetting]:
        return self._queries.fetch(SETTINGS, self._client.list_settings, stale_time=2 * MINUTE)

    def active_setting(self) -> Optional[CommissionSetting]:
        return self._queries.fetch(
            ACTIVE_SETTING, self._client.get_active_setting, stale_time=5 * MINUTE
        )

    def payout_examples(self, price: float) -> PayoutExamples:
        return self._queries.fetch(
            ("commission", "payout-examples", price),
            lambda: self._client.get_payout_examples(price),
            stale_time=5 * MINUTE,
        )

    def create(self, request: CreateCommissionSettingRequest) -> CommissionSetting:
        return self._write(lambda: self._client.create_setting(request))

    def update(
        self, setting_id: str, request: UpdateCommissionSettingRequest
    ) -> CommissionSetting:
        return self._write(lambda: self._client.update_setting(setting_id, request))

    def delete(self, setting_id: str) -> None:
        self._write(lambda: self._client.delete_setting(setting_id))

    def toggle_active(self, setting_id: str) -> CommissionSetting:
        return self._write(lambda: self._client.toggle_active(setting_id))

    def generate_codes_for_all(self) -> GenerateForAllResult:
        return self._queries.mutate(self._client.generate_codes_for_all, invalidates=[REFERRAL])

    def _write(self, fn):
        return self._queries.mutate(fn, invalidates=[SETTINGS, ACTIVE_SETTING])
