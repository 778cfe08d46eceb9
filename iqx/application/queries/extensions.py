"""
API extension package queries.

Starting a purchase remembers the gateway order code as the pending
order. Checking that order clears it once the gateway reports an outcome
and refreshes the purchased extensions and the current plan.
"""

import logging
from typing import Optional

from iqx.application.queries import MINUTE, SECOND
from iqx.application.queries.billing import MY_PLAN, PendingOrder
from iqx.application.query_client import QueryClient
from iqx.domain.errors import ApiExtensionError
from iqx.domain.extensions.entities import (
    ApiExtensionPackage,
    CreateExtensionPaymentRequest,
    ExtensionHistoryResponse,
    ExtensionPaymentResponse,
    ExtensionPaymentStatus,
    MyExtensionsResponse,
    resolve_redirect_urls,
)
from iqx.domain.ports import ClientStorage
from iqx.infrastructure.clients.api_extensions import ApiExtensionClient

logger = logging.getLogger(__name__)

PACKAGES = ("api-extensions", "packages")
MY_EXTENSIONS = ("api-extensions", "my-extensions")
HISTORY = ("api-extensions", "history")

STATUS_POLL_INTERVAL = 2 * SECOND
STATUS_POLL_ATTEMPTS = 150


def status_key(order_code: int) -> tuple:
    return ("api-extensions", "payment-status", order_code)


class ExtensionQueries:
    """Extension packages, purchases and the purchase payment flow.

    Args:
        origin: Public origin of the dashboard, for default redirect pages.
        return_url: Configured gateway return URL, if any.
        cancel_url: Configured gateway cancel URL, if any.
    """

    def __init__(
        self,
        queries: QueryClient,
        client: ApiExtensionClient,
        storage: ClientStorage,
        origin: str,
        return_url: Optional[str] = None,
        cancel_url: Optional[str] = None,
    ) -> None:
        self._queries = queries
        self._client = client
        self._pending = PendingOrder(storage)
        self._origin = origin
        self._return_url = return_url
        self._cancel_url = cancel_url

    def packages(self) -> list[ApiExtensionPackage]:
        return self._queries.fetch(PACKAGES, self._client.list_packages, stale_time=10 * MINUTE)

    def package(self, package_id: str) -> Optional[ApiExtensionPackage]:
        return self._queries.fetch(
            ("api-extensions", "package", package_id),
            lambda: self._client.get_package(package_id),
            stale_time=10 * MINUTE,
            enabled=bool(package_id),
        )

    def my_extensions(self) -> MyExtensionsResponse:
        return self._queries.fetch(MY_EXTENSIONS, self._client.get_my_extensions, stale_time=MINUTE)

    def history(self) -> ExtensionHistoryResponse:
        return self._queries.fetch(HISTORY, self._client.get_history, stale_time=5 * MINUTE)

    def purchase(
        self,
        package_id: str,
        return_url: Optional[str] = None,
        cancel_url: Optional[str] = None,
    ) -> ExtensionPaymentResponse:
        """Create a checkout for a package and remember its order code.

        Raises:
            ApiExtensionError: On an invalid redirect URL (before any
                request) or when the gateway gives no checkout link.
        """
        chosen_return, chosen_cancel = resolve_redirect_urls(
            self._origin, return_url, cancel_url, self._return_url, self._cancel_url
        )
        request = CreateExtensionPaymentRequest(
            extension_package_id=package_id,
            return_url=chosen_return,
            cancel_url=chosen_cancel,
        )
        response = self._queries.mutate(lambda: self._client.create_payment(request))
        if response.order_code is not None:
            self._pending.set(response.order_code)
        if not response.checkout_url:
            raise ApiExtensionError("Could not create a checkout link")
        return response

    def payment_status(self, order_code: int) -> ExtensionPaymentStatus:
        """Current status; settles the pending order once it is terminal."""
        status = self._queries.fetch(
            status_key(order_code),
            lambda: self._client.check_payment(order_code),
            stale_time=0,
        )
        if status.is_terminal:
            self._settle(order_code)
        return status

    def wait_for_payment(
        self,
        order_code: int,
        interval: float = STATUS_POLL_INTERVAL,
        max_attempts: int = STATUS_POLL_ATTEMPTS,
    ) -> ExtensionPaymentStatus:
        """Poll while the gateway still reports pending or processing."""
        status = self._queries.poll(
            status_key(order_code),
            lambda: self._client.check_payment(order_code),
            interval=interval,
            until=lambda result: result.is_terminal,
            max_attempts=max_attempts,
        )
        if status.is_terminal:
            self._settle(order_code)
        return status

    def pending_order_code(self) -> Optional[int]:
        return self._pending.get()

    def resume_pending(self) -> Optional[ExtensionPaymentStatus]:
        """Status of the remembered order, or None when nothing is pending."""
        order_code = self._pending.get()
        if order_code is None:
            return None
        return self.payment_status(order_code)

    def _settle(self, order_code: int) -> None:
        if self._pending.get() == order_code:
            self._pending.clear()
            logger.info("Extension payment %d settled", order_code)
        self._queries.invalidate(MY_EXTENSIONS, HISTORY, MY_PLAN)
