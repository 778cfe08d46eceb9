"""
FastAPI router for the referral program.

The downline tree is stateless on the server: the client sends back the
node ids it opened or closed, and `toggle` flips one of them.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from iqx.application.queries.referral import CommissionQueries, ReferralQueries
from iqx.core.config import settings
from iqx.domain.referral.commission_calculator import (
    build_referral_link,
    calculate_for_setting,
    pick_active_setting,
)
from iqx.domain.referral.downline import DownlineTreeView
from iqx.domain.referral.entities import (
    ApplyReferralCodeRequest,
    Commission,
    CommissionStatus,
    CommissionTotal,
    DirectReferral,
    ReferralCode,
    ReferralStats,
)
from iqx.infrastructure.clients.referral import DEFAULT_MAX_DEPTH
from iqx.interfaces import views
from iqx.interfaces.dependencies import get_commission_queries, get_referral_queries
from iqx.interfaces.schemas import (
    CommissionCalculatorRequest,
    CommissionCalculatorResponse,
    DownlineTreeResponse,
    ErrorResponse,
    ReferralLinkResponse,
)

router = APIRouter(prefix="/referral", tags=["referral"])


def _ids(raw: Optional[str]) -> list[str]:
    return [part.strip() for part in (raw or "").split(",") if part.strip()]


@router.get("/code", response_model=Optional[ReferralCode], summary="My referral code")
def my_code(queries: ReferralQueries = Depends(get_referral_queries)) -> Optional[ReferralCode]:
    return queries.my_code()


@router.post("/code", response_model=ReferralCode, summary="Generate my referral code")
def generate_code(queries: ReferralQueries = Depends(get_referral_queries)) -> ReferralCode:
    return queries.generate_code()


@router.put(
    "/code",
    response_model=ReferralCode,
    responses={422: {"model": ErrorResponse}},
    summary="Change my referral code",
)
def update_code(
    request: ApplyReferralCodeRequest,
    queries: ReferralQueries = Depends(get_referral_queries),
) -> ReferralCode:
    return queries.update_code(request.code.strip())


@router.post(
    "/apply",
    status_code=204,
    responses={422: {"model": ErrorResponse}},
    summary="Apply someone's referral code",
)
def apply_code(
    request: ApplyReferralCodeRequest,
    queries: ReferralQueries = Depends(get_referral_queries),
) -> None:
    queries.apply_code(request.code.strip())


@router.get("/link", response_model=ReferralLinkResponse, summary="My referral link")
def referral_link(
    queries: ReferralQueries = Depends(get_referral_queries),
) -> ReferralLinkResponse:
    code = queries.my_code()
    if code is None:
        return ReferralLinkResponse()
    return ReferralLinkResponse(
        code=code.code, link=build_referral_link(settings.app_origin, code.code)
    )


@router.get("/stats", response_model=ReferralStats, summary="Referral statistics")
def stats(queries: ReferralQueries = Depends(get_referral_queries)) -> ReferralStats:
    return queries.stats()


@router.get("/commissions", response_model=list[Commission], summary="My commissions")
def commissions(
    status: Optional[CommissionStatus] = Query(default=None),
    queries: ReferralQueries = Depends(get_referral_queries),
) -> list[Commission]:
    return queries.commissions(status)


@router.get(
    "/commissions/total", response_model=CommissionTotal, summary="Commission totals"
)
def commission_total(
    queries: ReferralQueries = Depends(get_referral_queries),
) -> CommissionTotal:
    return queries.commission_total()


@router.get("/referrals", response_model=list[DirectReferral], summary="Direct referrals")
def direct_referrals(
    queries: ReferralQueries = Depends(get_referral_queries),
) -> list[DirectReferral]:
    return queries.direct_referrals()


@router.get(
    "/downline",
    response_model=DownlineTreeResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Downline tree",
    description=(
        "Visible rows of the downline tree. The first two levels are open "
        "unless listed in `collapsed`; deeper nodes open when listed in "
        "`expanded`. `toggle` flips one node."
    ),
)
def downline(
    max_depth: int = Query(default=DEFAULT_MAX_DEPTH, ge=1, le=20),
    expanded: Optional[str] = Query(default=None, description="Comma-separated node ids"),
    collapsed: Optional[str] = Query(default=None, description="Comma-separated node ids"),
    toggle: Optional[str] = Query(default=None, description="Node id to flip"),
    queries: ReferralQueries = Depends(get_referral_queries),
) -> DownlineTreeResponse:
    view = DownlineTreeView(queries.downline_tree(max_depth), _ids(expanded), _ids(collapsed))
    if toggle:
        try:
            view.toggle(toggle)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail="Node not in tree") from exc
    return views.downline_tree(view, queries.total_downline(max_depth))


@router.post(
    "/calculator",
    response_model=CommissionCalculatorResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Commission calculator",
    description="What each upline earns when a seller at tier F_n sells packages.",
)
def calculator(
    request: CommissionCalculatorRequest,
    commission: CommissionQueries = Depends(get_commission_queries),
) -> CommissionCalculatorResponse:
    available = commission.settings()
    if request.setting_id:
        setting = next((s for s in available if s.id == request.setting_id), None)
    else:
        setting = pick_active_setting(available)
    if setting is None:
        raise HTTPException(status_code=404, detail="Commission setting not found")
    payouts = calculate_for_setting(setting, request.price, request.seller_tier, request.quantity)
    return views.commission_breakdown(setting, payouts)
