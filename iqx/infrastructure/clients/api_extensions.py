"""
Adapter: API extension package client.

Package listings are public; purchases, payments and history need the
bearer token.
"""

import logging

from pydantic import TypeAdapter

from iqx.domain.extensions.entities import (
    ApiExtensionPackage,
    CreateExtensionPaymentRequest,
    ExtensionHistoryResponse,
    ExtensionPaymentResponse,
    ExtensionPaymentStatus,
    MyExtensionsResponse,
)
from iqx.infrastructure.http import ApiHttpClient

logger = logging.getLogger(__name__)

BASE_PATH = "/api-extensions"

_packages = TypeAdapter(list[ApiExtensionPackage])


class ApiExtensionClient:
    def __init__(self, http: ApiHttpClient) -> None:
        self._http = http

    def list_packages(self) -> list[ApiExtensionPackage]:
        data = self._http.get(f"{BASE_PATH}/packages")
        return self._http.parse(_packages, data, "extension packages")

    def get_package(self, package_id: str) -> ApiExtensionPackage:
        data = self._http.get(f"{BASE_PATH}/packages/{package_id}")
        return self._http.parse(ApiExtensionPackage, data, "extension package")

    def create_payment(self, request: CreateExtensionPaymentRequest) -> ExtensionPaymentResponse:
        data = self._http.post(
            f"{BASE_PATH}/payment/create",
            json=request.model_dump(by_alias=True, exclude_none=True),
        )
        response = self._http.parse(ExtensionPaymentResponse, data, "extension payment")
        logger.info(
            "Created extension payment for package %s (order %s)",
            request.extension_package_id,
            response.order_code,
        )
        return response

    def check_payment(self, order_code: int) -> ExtensionPaymentStatus:
        data = self._http.get(f"{BASE_PATH}/payment/check/{order_code}")
        return self._http.parse(ExtensionPaymentStatus, data, "extension payment status")

    def get_my_extensions(self) -> MyExtensionsResponse:
        data = self._http.get(f"{BASE_PATH}/my-extensions")
        return self._http.parse(MyExtensionsResponse, data, "extensions")

    def get_history(self) -> ExtensionHistoryResponse:
        data = self._http.get(f"{BASE_PATH}/history")
        return self._http.parse(ExtensionHistoryResponse, data, "extension history")
