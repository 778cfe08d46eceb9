"""
Adapter: user management (admin) client.
"""

import logging
from typing import Optional

from pydantic import TypeAdapter

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
    UserStats,
)
from iqx.infrastructure.http import ApiHttpClient

logger = logging.getLogger(__name__)

BASE_PATH = "/admin/users"

_subscriptions = TypeAdapter(list[AdminUserSubscription])


class UserManagementClient:
    def __init__(self, http: ApiHttpClient) -> None:
        self._http = http

    def get_stats(self) -> UserStats:
        data = self._http.get(f"{BASE_PATH}/stats")
        return self._http.parse(UserStats, data, "user stats")

    def list_users(self, params: Optional[UserListParams] = None) -> UserListResponse:
        params = params or UserListParams()
        data = self._http.get(BASE_PATH, params=params.to_params())
        return self._http.parse(UserListResponse, data, "users")

    def get_user(self, user_id: str) -> UserDetail:
        data = self._http.get(f"{BASE_PATH}/{user_id}")
        return self._http.parse(UserDetail, data, "user")

    def activate(self, user_id: str) -> UserActionResponse:
        logger.info("Activating user %s", user_id)
        return self._action("PATCH", f"{BASE_PATH}/{user_id}/activate")

    def deactivate(self, user_id: str) -> UserActionResponse:
        logger.info("Deactivating user %s", user_id)
        return self._action("PATCH", f"{BASE_PATH}/{user_id}/deactivate")

    def update_role(self, user_id: str, request: UpdateRoleRequest) -> UserActionResponse:
        logger.info("Changing role of user %s to %s", user_id, request.role.value)
        return self._action("PATCH", f"{BASE_PATH}/{user_id}/role", request)

    def get_subscriptions(self, user_id: str) -> list[AdminUserSubscription]:
        data = self._http.get(f"{BASE_PATH}/{user_id}/subscriptions")
        return self._http.parse(_subscriptions, data, "user subscriptions")

    def assign_subscription(
        self, user_id: str, request: AssignSubscriptionRequest
    ) -> UserActionResponse:
        return self._action("POST", f"{BASE_PATH}/{user_id}/subscriptions", request)

    def update_subscription(
        self, user_id: str, subscription_id: str, request: UpdateUserSubscriptionRequest
    ) -> UserActionResponse:
        return self._action(
            "PATCH", f"{BASE_PATH}/{user_id}/subscriptions/{subscription_id}", request
        )

    def cancel_subscription(
        self, user_id: str, subscription_id: str, request: CancelUserSubscriptionRequest
    ) -> UserActionResponse:
        return self._action(
            "DELETE", f"{BASE_PATH}/{user_id}/subscriptions/{subscription_id}", request
        )

    def _action(self, method: str, path: str, body=None) -> UserActionResponse:
        payload = (
            body.model_dump(by_alias=True, mode="json", exclude_none=True)
            if body is not None
            else None
        )
        data = self._http.request(method, path, json=payload)
        return self._http.parse(UserActionResponse, data, "user action")
