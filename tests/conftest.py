"""
Shared fixtures.

HTTP tests run a real ApiHttpClient over a mocked requests.Session, so the
status/error mapping and schema validation are exercised end to end.
"""

import json
from typing import Any, Optional
from unittest.mock import MagicMock

import pytest

from iqx.application.query_client import QueryClient
from iqx.domain.ports import ClientStorage
from iqx.infrastructure.http import ApiHttpClient
from iqx.shared.security.rate_limiting import limiter

limiter.enabled = False


def make_response(status_code: int = 200, body: Any = None) -> MagicMock:
    """A requests.Response stand-in carrying a JSON body."""
    response = MagicMock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.content = b"" if body is None else json.dumps(body).encode()
    if body is None:
        response.json.side_effect = ValueError("no body")
    else:
        response.json.return_value = body
    return response


def watchlist_item_body(symbol: str = "FPT", **fields: Any) -> dict:
    """Watchlist item as the backend sends it."""
    body = {
        "id": f"item-{symbol}",
        "userId": "u1",
        "symbolId": f"sym-{symbol}",
        "symbol": {"id": f"sym-{symbol}", "symbol": symbol, "type": "STOCK", "board": "HSX"},
        "isAlertEnabled": False,
        "createdAt": "2024-05-01T00:00:00Z",
        "updatedAt": "2024-05-01T00:00:00Z",
    }
    body.update(fields)
    return body


def extension_package_body(**fields: Any) -> dict:
    body = {
        "id": "ext-1",
        "name": "1.000 calls",
        "additionalCalls": 1000,
        "price": "99000",
        "currency": "VND",
        "isActive": True,
        "createdAt": "2024-05-01T00:00:00Z",
        "updatedAt": "2024-05-01T00:00:00Z",
    }
    body.update(fields)
    return body


class MemoryStorage(ClientStorage):
    """Dict-backed ClientStorage."""

    def __init__(self, initial: Optional[dict] = None) -> None:
        self.data = dict(initial or {})

    def get_item(self, key: str) -> Optional[Any]:
        return self.data.get(key)

    def set_item(self, key: str, value: Any) -> None:
        self.data[key] = value

    def remove_item(self, key: str) -> None:
        self.data.pop(key, None)


class FakeClock:
    """Monotonic clock that only moves when told to; sleep advances it."""

    def __init__(self) -> None:
        self.now = 1000.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def session() -> MagicMock:
    return MagicMock()


@pytest.fixture
def http(session: MagicMock) -> ApiHttpClient:
    return ApiHttpClient("https://api.example.test/api", session=session)


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def query_client(clock: FakeClock) -> QueryClient:
    return QueryClient(retry=3, clock=clock, sleep=clock.sleep)
