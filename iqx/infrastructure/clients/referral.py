"""
Adapter: referral program and commission settings clients.

Both speak the first-party {"success", "data"} envelope.
"""

import logging
from typing import Optional

from iqx.domain.errors import CommissionError, ReferralError
from iqx.domain.referral.entities import (
    Commission,
    CommissionSetting,
    CommissionStatus,
    CommissionTotal,
    CreateCommissionSettingRequest,
    DirectReferral,
    DownlineNode,
    Envelope,
    GenerateForAllResult,
    PayoutExamples,
    ReferralCode,
    ReferralStats,
    TotalDownline,
    UpdateCommissionSettingRequest,
)
from iqx.infrastructure.http import ApiHttpClient

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 10


class ReferralClient:
    def __init__(self, http: ApiHttpClient) -> None:
        self._http = http

    def generate_code(self) -> ReferralCode:
        data = self._http.post("/referral/generate-code")
        envelope = self._http.parse(Envelope[Optional[ReferralCode]], data, "referral code")
        if envelope.data is None:
            raise ReferralError("Could not generate a referral code")
        logger.info("Generated referral code")
        return envelope.data

    def get_my_code(self) -> Optional[ReferralCode]:
        data = self._http.get("/referral/my-code")
        return self._http.parse(Envelope[Optional[ReferralCode]], data, "referral code").data

    def update_code(self, code: str) -> ReferralCode:
        data = self._http.put("/referral/my-code", json={"code": code})
        envelope = self._http.parse(Envelope[Optional[ReferralCode]], data, "referral code")
        if envelope.data is None:
            raise ReferralError("Could not update the referral code")
        return envelope.data

    def apply_code(self, code: str) -> None:
        self._http.post("/referral/apply", json={"code": code})

    def get_stats(self) -> ReferralStats:
        data = self._http.get("/referral/stats")
        return self._http.parse(Envelope[ReferralStats], data, "referral stats").data

    def get_commissions(self, status: Optional[CommissionStatus] = None) -> list[Commission]:
        params = {"status": status.value} if status else None
        data = self._http.get("/referral/commissions", params=params)
        return self._http.parse(Envelope[list[Commission]], data, "commissions").data

    def get_commission_total(self) -> CommissionTotal:
        data = self._http.get("/referral/commissions/total")
        return self._http.parse(Envelope[CommissionTotal], data, "commission total").data

    def get_direct_referrals(self) -> list[DirectReferral]:
        data = self._http.get("/referral/referrals")
        return self._http.parse(Envelope[list[DirectReferral]], data, "referrals").data

    def get_downline_tree(self, max_depth: int = DEFAULT_MAX_DEPTH) -> Optional[DownlineNode]:
        data = self._http.get("/referral/downline-tree", params={"maxDepth": max_depth})
        return self._http.parse(Envelope[Optional[DownlineNode]], data, "downline tree").data

    def get_total_downline(self, max_depth: int = DEFAULT_MAX_DEPTH) -> int:
        data = self._http.get("/referral/total-downline", params={"maxDepth": max_depth})
        return self._http.parse(Envelope[TotalDownline], data, "downline total").data.total


class CommissionAdminClient:
    """Admin-only management of commission plans."""

    def __init__(self, http: ApiHttpClient) -> None:
        self._http = http

    def list_settings(self) -> list[CommissionSetting]:
        data = self._http.get("/admin/commission/settings")
        return self._http.parse(Envelope[list[CommissionSetting]], data, "commission settings").data

    def get_active_setting(self) -> Optional[CommissionSetting]:
        data = self._http.get("/admin/commission/settings/active")
        return self._http.parse(
            Envelope[Optional[CommissionSetting]], data, "commission setting"
        ).data

    def create_setting(self, request: CreateCommissionSettingRequest) -> CommissionSetting:
        data = self._http.post(
            "/admin/commission/settings",
            json=request.model_dump(by_alias=True, exclude_none=True),
        )
        return self._required(data, "Could not create the commission setting")

    def update_setting(
        self, setting_id: str, request: UpdateCommissionSettingRequest
    ) -> CommissionSetting:
        data = self._http.put(
            f"/admin/commission/settings/{setting_id}",
            json=request.model_dump(by_alias=True, exclude_none=True),
        )
        return self._required(data, "Could not update the commission setting")

    def delete_setting(self, setting_id: str) -> None:
        self._http.delete(f"/admin/commission/settings/{setting_id}")
        logger.info("Deleted commission setting %s", setting_id)

    def toggle_active(self, setting_id: str) -> CommissionSetting:
        data = self._http.put(f"/admin/commission/settings/{setting_id}/toggle-active")
        return self._required(data, "Could not change the setting status")

    def get_payout_examples(self, price: float) -> PayoutExamples:
        data = self._http.post("/admin/commission/settings/payout-examples", json={"price": price})
        return self._http.parse(Envelope[PayoutExamples], data, "payout examples").data

    def generate_codes_for_all(self) -> GenerateForAllResult:
        data = self._http.post("/admin/commission/referral/generate-for-all")
        result = self._http.parse(Envelope[GenerateForAllResult], data, "generate result").data
        logger.info("Generated referral codes: created=%d skipped=%d", result.created, result.skipped)
        return result

    def _required(self, data: object, message: str) -> CommissionSetting:
        envelope = self._http.parse(
            Envelope[Optional[CommissionSetting]], data, "commission setting"
        )
        if envelope.data is None:
            raise CommissionError(message)
        return envelope.data
