"""
User management (admin) queries.
"""

from typing import Optional

from iqx.application.queries import MINUTE
from iqx.application.query_client import QueryClient, freeze
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
from iqx.infrastructure.clients.users import UserManagementClient

LISTS = ("user-management", "list")
STATS = ("user-management", "stats")


def detail_key(user_id: str) -> tuple:
    return ("user-management", "detail", user_id)


def subscriptions_key(user_id: str) -> tuple:
    return ("user-management", "subscriptions", user_id)


class UserQueries:
    def __init__(self, queries: QueryClient, client: UserManagementClient) -> None:
        self._queries = queries
        self._client = client

    def stats(self) -> UserStats:
        return self._queries.fetch(STATS, self._client.get_stats, stale_time=MINUTE)

    def list_users(self, params: Optional[UserListParams] = None) -> UserListResponse:
        params = params or UserListParams()
        return self._queries.fetch(
            (*LISTS, freeze(params.to_params())),
            lambda: self._client.list_users(params),
            stale_time=30,
        )

    def detail(self, user_id: str) -> UserDetail:
        return self._queries.fetch(
            detail_key(user_id), lambda: self._client.get_user(user_id), stale_time=30
        )

    def subscriptions(self, user_id: str) -> list[AdminUserSubscription]:
        return self._queries.fetch(
            subscriptions_key(user_id),
            lambda: self._client.get_subscriptions(user_id),
            stale_time=30,
        )

    def activate(self, user_id: str) -> UserActionResponse:
        return self._account_action(user_id, lambda: self._client.activate(user_id))

    def deactivate(self, user_id: str) -> UserActionResponse:
        return self._account_action(user_id, lambda: self._client.deactivate(user_id))

    def update_role(self, user_id: str, request: UpdateRoleRequest) -> UserActionResponse:
        return self._account_action(user_id, lambda: self._client.update_role(user_id, request))

    def assign_subscription(
        self, user_id: str, request: AssignSubscriptionRequest
    ) -> UserActionResponse:
        return self._subscription_action(
            user_id, lambda: self._client.assign_subscription(user_id, request)
        )

    def update_subscription(
        self, user_id: str, subscription_id: str, request: UpdateUserSubscriptionRequest
    ) -> UserActionResponse:
        return self._subscription_action(
            user_id,
            lambda: self._client.update_subscription(user_id, subscription_id, request),
        )

    def cancel_subscription(
        self, user_id: str, subscription_id: str, request: CancelUserSubscriptionRequest
    ) -> UserActionResponse:
        return self._subscription_action(
            user_id,
            lambda: self._client.cancel_subscription(user_id, subscription_id, request),
        )

    def _account_action(self, user_id: str, fn) -> UserActionResponse:
        return self._queries.mutate(fn, invalidates=[LISTS, STATS, detail_key(user_id)])

    def _subscription_action(self, user_id: str, fn) -> UserActionResponse:
        return self._queries.mutate(
            fn, invalidates=[LISTS, detail_key(user_id), subscriptions_key(user_id)]
        )
