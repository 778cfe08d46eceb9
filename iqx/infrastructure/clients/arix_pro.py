"""
Adapter: AriX Pro chat client.

Quota, session and upstream failures get dedicated messages; everything
else keeps the server's own message.
"""

import logging
from typing import Optional

from pydantic import ValidationError

from iqx.domain.assistant.entities import ArixProStats, ArixProUsage, RateLimitBody
from iqx.domain.errors import ArixProError
from iqx.domain.formatting import format_date
from iqx.domain.ports import ChatTransport
from iqx.infrastructure.http import ApiHttpClient

logger = logging.getLogger(__name__)

UNAUTHORIZED_MESSAGE = "Please log in again to keep using AriX Pro"
BAD_GATEWAY_MESSAGE = "AriX API is not responding. Please try again later"
DEFAULT_STATS_DAYS = 7
RESET_DATE_PATTERN = "%H:%M:%S %d/%m/%Y"


class ArixProClient(ChatTransport):
    def __init__(self, http: ApiHttpClient, default_model: str) -> None:
        self._http = http
        self._default_model = default_model

    def send(self, message: str, session_id: str, model: Optional[str] = None) -> dict:
        return self._call(
            "POST", "/chat", json={"message": message, "model": model or self._default_model}
        )

    def get_usage(self) -> ArixProUsage:
        data = self._call("GET", "/chat/usage")
        return self._http.parse(ArixProUsage, data, "usage")

    def get_stats(self, days: int = DEFAULT_STATS_DAYS) -> ArixProStats:
        data = self._call("GET", "/chat/stats", params={"days": days})
        return self._http.parse(ArixProStats, data, "usage stats")

    def _call(self, method: str, path: str, **kwargs) -> dict:
        try:
            return self._http.request(method, path, **kwargs)
        except ArixProError as exc:
            raise self._rewrite(exc) from exc

    def _rewrite(self, exc: ArixProError) -> ArixProError:
        if exc.status_code == 401:
            return ArixProError(UNAUTHORIZED_MESSAGE, status_code=401)
        if exc.status_code == 502:
            return ArixProError(BAD_GATEWAY_MESSAGE, status_code=502)
        if exc.status_code == 429:
            body = self._rate_limit_body(exc)
            logger.warning("AriX Pro quota reached: %s/%s", body.current_usage, body.limit)
            reset = format_date(body.reset_date, RESET_DATE_PATTERN)
            return ArixProError(
                f"{body.message}. Used: {body.current_usage}/{body.limit}. Reset: {reset}",
                status_code=429,
                code=exc.code,
                current_usage=body.current_usage,
                limit=body.limit,
                reset_date=body.reset_date,
            )
        return exc

    @staticmethod
    def _rate_limit_body(exc: ArixProError) -> RateLimitBody:
        payload = exc.body or {}
        try:
            return RateLimitBody.model_validate({"message": exc.message, **payload})
        except ValidationError:
            return RateLimitBody(message=exc.message)
