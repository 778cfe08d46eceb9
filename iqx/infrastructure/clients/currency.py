"""
Adapter: Hexarate exchange rate client.
"""

from iqx.domain.market.currency import Conversion, ExchangeRateResponse, convert
from iqx.infrastructure.http import ApiHttpClient


class CurrencyClient:
    def __init__(self, http: ApiHttpClient) -> None:
        self._http = http

    def get_exchange_rate(self, base: str, target: str) -> ExchangeRateResponse:
        data = self._http.get(f"/{base.upper()}", params={"target": target.upper()})
        return self._http.parse(ExchangeRateResponse, data, "exchange rate")

    def convert(self, amount: float, base: str, target: str) -> Conversion:
        return convert(amount, self.get_exchange_rate(base, target).data)
