"""
Adapter: price action client.
"""

import logging

from iqx.domain.errors import PriceActionError
from iqx.domain.market.price_action import PriceActionResponse
from iqx.infrastructure.http import ApiHttpClient

logger = logging.getLogger(__name__)

STATUS_MESSAGES = {
    401: "Please log in again to view price action data",
    502: "Price action API is not responding. Please try again later",
}


class PriceActionClient:
    def __init__(self, http: ApiHttpClient) -> None:
        self._http = http

    def get_price_action(self) -> PriceActionResponse:
        try:
            data = self._http.get("/price-action")
        except PriceActionError as exc:
            if exc.status_code in STATUS_MESSAGES:
                raise PriceActionError(
                    STATUS_MESSAGES[exc.status_code], status_code=exc.status_code
                ) from exc
            raise
        response = self._http.parse(PriceActionResponse, data, "price action")
        logger.info("Fetched price action for %d tickers", len(response.data))
        return response
