"""
FastAPI router for API extension packages and their purchase.
"""

from fastapi import APIRouter, Depends, Query, Response

from iqx.application.queries.extensions import ExtensionQueries
from iqx.domain.extensions.entities import (
    ExtensionHistoryResponse,
    ExtensionPaymentResponse,
    ExtensionPaymentStatus,
    MyExtensionsResponse,
)
from iqx.interfaces.dependencies import get_extension_queries
from iqx.interfaces.schemas import (
    ErrorResponse,
    ExtensionPackageView,
    PendingOrderResponse,
    PurchaseExtensionRequest,
)

router = APIRouter(prefix="/api-extensions", tags=["api-extensions"])

NOT_FOUND = {404: {"model": ErrorResponse}}


@router.get(
    "/packages",
    response_model=list[ExtensionPackageView],
    summary="Extension packages",
    description="Each package with its price per extra call.",
)
def packages(
    queries: ExtensionQueries = Depends(get_extension_queries),
) -> list[ExtensionPackageView]:
    return [ExtensionPackageView.of(package) for package in queries.packages()]


@router.get(
    "/packages/{package_id}",
    response_model=ExtensionPackageView,
    responses=NOT_FOUND,
    summary="One extension package",
)
def package(
    package_id: str, queries: ExtensionQueries = Depends(get_extension_queries)
) -> ExtensionPackageView:
    return ExtensionPackageView.of(queries.package(package_id))


@router.get(
    "/my-extensions",
    response_model=MyExtensionsResponse,
    summary="Extensions bought for the current subscription",
)
def my_extensions(
    queries: ExtensionQueries = Depends(get_extension_queries),
) -> MyExtensionsResponse:
    return queries.my_extensions()


@router.get(
    "/history",
    response_model=ExtensionHistoryResponse,
    summary="Extension purchase history",
)
def history(
    queries: ExtensionQueries = Depends(get_extension_queries),
) -> ExtensionHistoryResponse:
    return queries.history()


# ── Purchase ──────────────────────────────────────────────────────


@router.post(
    "/purchase",
    response_model=ExtensionPaymentResponse,
    responses={400: {"model": ErrorResponse}, **NOT_FOUND},
    summary="Start buying a package",
    description=(
        "Creates a checkout link and remembers the order as pending. Redirect "
        "URLs default to the configured ones, then to pages under the app origin."
    ),
)
def purchase(
    request: PurchaseExtensionRequest,
    queries: ExtensionQueries = Depends(get_extension_queries),
) -> ExtensionPaymentResponse:
    return queries.purchase(request.package_id, request.return_url, request.cancel_url)


@router.get(
    "/payment/pending",
    response_model=PendingOrderResponse,
    summary="Pending order code",
)
def pending_order(
    queries: ExtensionQueries = Depends(get_extension_queries),
) -> PendingOrderResponse:
    return PendingOrderResponse(order_code=queries.pending_order_code())


@router.get(
    "/payment/resume",
    response_model=ExtensionPaymentStatus,
    responses={204: {"description": "No pending order"}},
    summary="Status of the pending order",
)
def resume(queries: ExtensionQueries = Depends(get_extension_queries)):
    status = queries.resume_pending()
    if status is None:
        return Response(status_code=204)
    return status


@router.get(
    "/payment/status/{order_code}",
    response_model=ExtensionPaymentStatus,
    responses=NOT_FOUND,
    summary="Extension payment status",
)
def payment_status(
    order_code: int,
    wait: bool = Query(default=False, description="Poll until the payment settles"),
    queries: ExtensionQueries = Depends(get_extension_queries),
) -> ExtensionPaymentStatus:
    if wait:
        return queries.wait_for_payment(order_code)
    return queries.payment_status(order_code)
