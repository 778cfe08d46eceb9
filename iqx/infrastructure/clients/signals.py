"""
Adapter: technical signals client.
"""

import logging

from iqx.domain.errors import SignalsError
from iqx.domain.market.signals import GetSignalsRequest, GetSignalsResponse, SignalDataItem
from iqx.infrastructure.http import ApiHttpClient

logger = logging.getLogger(__name__)


class SignalsClient:
    """Fetches EMA/RSI/MACD based signals for a list of symbols."""

    def __init__(self, http: ApiHttpClient) -> None:
        self._http = http

    def get_signals(self, symbols: list[str]) -> GetSignalsResponse:
        request = GetSignalsRequest(symbols=[s.upper() for s in symbols])
        data = self._http.post("/signals", json=request.model_dump(by_alias=True))
        response = self._http.parse(GetSignalsResponse, data, "signals")
        logger.info("Fetched %d signals for %d symbols", response.count, len(symbols))
        return response

    def get_signal(self, symbol: str) -> SignalDataItem:
        """Signal for one symbol.

        Raises:
            SignalsError: With status 404 when the backend has no data for it.
        """
        response = self.get_signals([symbol])
        if not response.data:
            raise SignalsError(f"No signal data for {symbol.upper()}", status_code=404)
        return response.data[0]
