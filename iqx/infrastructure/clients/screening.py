"""
Adapter: stock screening and peer comparison clients.
"""

from pydantic import TypeAdapter

from iqx.domain.market.screening import (
    PeerComparisonItem,
    ScreeningData,
    ScreeningEnvelope,
    ScreeningRequest,
)
from iqx.infrastructure.http import ApiHttpClient

_peer_list = TypeAdapter(list[PeerComparisonItem])


class ScreeningClient:
    def __init__(self, http: ApiHttpClient) -> None:
        self._http = http

    def screen(self, request: ScreeningRequest) -> ScreeningData:
        """Post a screening query and return the page inside the envelope."""
        data = self._http.post(
            "/iq-insight-service/v1/screening/paging",
            json=request.model_dump(by_alias=True, exclude_none=True),
        )
        return self._http.parse(ScreeningEnvelope, data, "screening").data


class PeerComparisonClient:
    def __init__(self, http: ApiHttpClient) -> None:
        self._http = http

    def get_peers(self, symbol: str) -> list[PeerComparisonItem]:
        data = self._http.get(f"/peer-comparison/{symbol.upper()}")
        return self._http.parse(_peer_list, data, "peer comparison")
