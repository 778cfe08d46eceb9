"""
FastAPI router for the admin console: commission plans and user management.
"""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query

from iqx.application.queries.referral import CommissionQueries
from iqx.application.queries.users import UserQueries
from iqx.domain.referral.entities import (
    CommissionSetting,
    CreateCommissionSettingRequest,
    GenerateForAllResult,
    PayoutExamples,
    UpdateCommissionSettingRequest,
)
from iqx.domain.users.entities import (
    AdminUserSubscription,
    AssignSubscriptionRequest,
    CancelUserSubscriptionRequest,
    UpdateRoleRequest,
    UpdateUserSubscriptionRequest,
    UserActionResponse,
    UserDetail,
    UserListParams,
    UserListResponse,
    UserRole,
    UserStats,
)
from iqx.interfaces.dependencies import get_commission_queries, get_user_queries
from iqx.interfaces.schemas import ErrorResponse

router = APIRouter(prefix="/admin", tags=["admin"])

NOT_FOUND = {404: {"model": ErrorResponse}}


def _user_list_params(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    search: Optional[str] = Query(default=None),
    role: Optional[UserRole] = Query(default=None),
    is_active: Optional[bool] = Query(default=None),
    sort_by: Optional[Literal["email", "createdAt", "updatedAt"]] = Query(default=None),
    sort_order: Optional[Literal["ASC", "DESC"]] = Query(default=None),
) -> UserListParams:
    return UserListParams(
        page=page,
        limit=limit,
        search=search,
        role=role,
        is_active=is_active,
        sort_by=sort_by,
        sort_order=sort_order,
    )


# ── Commission settings ───────────────────────────────────────────


@router.get(
    "/commission/settings",
    response_model=list[CommissionSetting],
    summary="Commission plans",
)
def commission_settings(
    queries: CommissionQueries = Depends(get_commission_queries),
) -> list[CommissionSetting]:
    return queries.settings()


@router.get(
    "/commission/settings/active",
    response_model=Optional[CommissionSetting],
    summary="Active commission plan",
)
def active_setting(
    queries: CommissionQueries = Depends(get_commission_queries),
) -> Optional[CommissionSetting]:
    return queries.active_setting()


@router.post(
    "/commission/settings",
    response_model=CommissionSetting,
    status_code=201,
    responses={422: {"model": ErrorResponse}},
    summary="Create a commission plan",
)
def create_setting(
    request: CreateCommissionSettingRequest,
    queries: CommissionQueries = Depends(get_commission_queries),
) -> CommissionSetting:
    return queries.create(request)


@router.patch(
    "/commission/settings/{setting_id}",
    response_model=CommissionSetting,
    responses=NOT_FOUND,
    summary="Update a commission plan",
)
def update_setting(
    setting_id: str,
    request: UpdateCommissionSettingRequest,
    queries: CommissionQueries = Depends(get_commission_queries),
) -> CommissionSetting:
    return queries.update(setting_id, request)


@router.delete(
    "/commission/settings/{setting_id}",
    status_code=204,
    responses=NOT_FOUND,
    summary="Delete a commission plan",
)
def delete_setting(
    setting_id: str, queries: CommissionQueries = Depends(get_commission_queries)
) -> None:
    queries.delete(setting_id)


@router.post(
    "/commission/settings/{setting_id}/toggle",
    response_model=CommissionSetting,
    responses=NOT_FOUND,
    summary="Activate or deactivate a commission plan",
)
def toggle_setting(
    setting_id: str, queries: CommissionQueries = Depends(get_commission_queries)
) -> CommissionSetting:
    return queries.toggle_active(setting_id)


@router.get(
    "/commission/payout-examples",
    response_model=PayoutExamples,
    summary="Payout examples for a price",
)
def payout_examples(
    price: float = Query(..., gt=0),
    queries: CommissionQueries = Depends(get_commission_queries),
) -> PayoutExamples:
    return queries.payout_examples(price)


@router.post(
    "/referral/generate-codes",
    response_model=GenerateForAllResult,
    summary="Generate referral codes for every user",
)
def generate_codes(
    queries: CommissionQueries = Depends(get_commission_queries),
) -> GenerateForAllResult:
    return queries.generate_codes_for_all()


# ── Users ─────────────────────────────────────────────────────────


@router.get("/users/stats", response_model=UserStats, summary="User statistics")
def user_stats(queries: UserQueries = Depends(get_user_queries)) -> UserStats:
    return queries.stats()


@router.get("/users", response_model=UserListResponse, summary="List users")
def list_users(
    params: UserListParams = Depends(_user_list_params),
    queries: UserQueries = Depends(get_user_queries),
) -> UserListResponse:
    return queries.list_users(params)


@router.get("/users/{user_id}", response_model=UserDetail, responses=NOT_FOUND, summary="User")
def user_detail(user_id: str, queries: UserQueries = Depends(get_user_queries)) -> UserDetail:
    return queries.detail(user_id)


@router.post(
    "/users/{user_id}/activate",
    response_model=UserActionResponse,
    responses=NOT_FOUND,
    summary="Activate a user",
)
def activate(user_id: str, queries: UserQueries = Depends(get_user_queries)) -> UserActionResponse:
    return queries.activate(user_id)


@router.post(
    "/users/{user_id}/deactivate",
    response_model=UserActionResponse,
    responses=NOT_FOUND,
    summary="Deactivate a user",
)
def deactivate(
    user_id: str, queries: UserQueries = Depends(get_user_queries)
) -> UserActionResponse:
    return queries.deactivate(user_id)


@router.put(
    "/users/{user_id}/role",
    response_model=UserActionResponse,
    responses=NOT_FOUND,
    summary="Change a user's role",
)
def update_role(
    user_id: str,
    request: UpdateRoleRequest,
    queries: UserQueries = Depends(get_user_queries),
) -> UserActionResponse:
    return queries.update_role(user_id, request)


@router.get(
    "/users/{user_id}/subscriptions",
    response_model=list[AdminUserSubscription],
    responses=NOT_FOUND,
    summary="A user's subscriptions",
)
def user_subscriptions(
    user_id: str, queries: UserQueries = Depends(get_user_queries)
) -> list[AdminUserSubscription]:
    return queries.subscriptions(user_id)


@router.post(
    "/users/{user_id}/subscriptions",
    response_model=UserActionResponse,
    responses=NOT_FOUND,
    summary="Assign a subscription",
)
def assign_subscription(
    user_id: str,
    request: AssignSubscriptionRequest,
    queries: UserQueries = Depends(get_user_queries),
) -> UserActionResponse:
    return queries.assign_subscription(user_id, request)


@router.put(
    "/users/{user_id}/subscriptions/{subscription_id}",
    response_model=UserActionResponse,
    responses=NOT_FOUND,
    summary="Update a subscription",
)
def update_subscription(
    user_id: str,
    subscription_id: str,
    request: UpdateUserSubscriptionRequest,
    queries: UserQueries = Depends(get_user_queries),
) -> UserActionResponse:
    return queries.update_subscription(user_id, subscription_id, request)


@router.post(
    "/users/{user_id}/subscriptions/{subscription_id}/cancel",
    response_model=UserActionResponse,
    responses=NOT_FOUND,
    summary="Cancel a subscription",
)
def cancel_subscription(
    user_id: str,
    subscription_id: str,
    request: CancelUserSubscriptionRequest,
    queries: UserQueries = Depends(get_user_queries),
) -> UserActionResponse:
    return queries.cancel_subscription(user_id, subscription_id, request)
