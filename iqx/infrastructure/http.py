"""
HTTP transport shared by every API client.

Wraps a `requests.Session` bound to one base URL and one domain error
type. Upstream failures never escape as requests or pydantic exceptions:

- HTTP error status -> error with the body's message, status and code
- connection failure or timeout -> error with a "cannot reach" message
- response that does not match its schema -> error with an
  "invalid ... data" message
"""

import logging
from typing import Any, Optional, Type, TypeVar, Union

import requests
from pydantic import TypeAdapter, ValidationError

from iqx.domain.errors import DashboardApiError
from iqx.infrastructure.auth import TokenStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TIMEOUT_SECONDS = 10.0
CANNOT_REACH_MESSAGE = "Cannot reach server"
GENERIC_FAILURE_MESSAGE = "Something went wrong"


class ApiHttpClient:
    """JSON-over-HTTP client that raises one domain error type.

    Args:
        base_url: Prefix for every request path.
        error_type: DashboardApiError subclass raised on any failure.
        timeout: Per-request timeout in seconds.
        token_store: When given, its bearer token is attached to requests.
        headers: Extra headers sent with every request.
        session: Injected session, mainly for tests.
    """

    def __init__(
        self,
        base_url: str,
        error_type: Type[DashboardApiError] = DashboardApiError,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        token_store: Optional[TokenStore] = None,
        headers: Optional[dict[str, str]] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.error_type = error_type
        self._timeout = timeout
        self._token_store = token_store
        self._session = session or requests.Session()
        self._session.headers.update({"Content-Type": "application/json"})
        if headers:
            self._session.headers.update(headers)

    def url(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        if not path:
            return self.base_url
        return f"{self.base_url}/{path.lstrip('/')}"

    def request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        json: Any = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """Send a request and return the decoded JSON body (None if empty).

        Raises:
            DashboardApiError: The configured subclass, for any failure.
        """
        headers = self._token_store.auth_headers() if self._token_store else {}
        try:
            response = self._session.request(
                method,
                self.url(path),
                params=params,
                json=json,
                headers=headers,
                timeout=timeout or self._timeout,
            )
        except (requests.ConnectionError, requests.Timeout) as exc:
            logger.warning("%s %s unreachable: %s", method, path, type(exc).__name__)
            raise self.error_type(CANNOT_REACH_MESSAGE) from exc
        except requests.RequestException as exc:
            logger.warning("%s %s failed: %s", method, path, type(exc).__name__)
            raise self.error_type(GENERIC_FAILURE_MESSAGE) from exc

        if not response.ok:
            raise self._http_error(response, method, path)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise self.error_type(
                "Invalid response from server", status_code=response.status_code
            ) from exc

    def get(self, path: str, params: Optional[dict[str, Any]] = None, **kwargs: Any) -> Any:
        return self.request("GET", path, params=params, **kwargs)

    def post(self, path: str, json: Any = None, **kwargs: Any) -> Any:
        return self.request("POST", path, json=json, **kwargs)

    def put(self, path: str, json: Any = None, **kwargs: Any) -> Any:
        return self.request("PUT", path, json=json, **kwargs)

    def patch(self, path: str, json: Any = None, **kwargs: Any) -> Any:
        return self.request("PATCH", path, json=json, **kwargs)

    def delete(self, path: str, json: Any = None, **kwargs: Any) -> Any:
        return self.request("DELETE", path, json=json, **kwargs)

    def parse(self, schema: Union[Type[T], TypeAdapter], payload: Any, what: str) -> T:
        """Validate `payload` against `schema`.

        Raises:
            DashboardApiError: "Invalid <what> data" when validation fails.
        """
        adapter = schema if isinstance(schema, TypeAdapter) else TypeAdapter(schema)
        try:
            return adapter.validate_python(payload)
        except ValidationError as exc:
            logger.warning("Invalid %s data: %d validation errors", what, exc.error_count())
            raise self.error_type(f"Invalid {what} data") from exc

    def _http_error(
        self, response: requests.Response, method: str, path: str
    ) -> DashboardApiError:
        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            body = {}

        raw_message = body.get("message") or body.get("error")
        errors = None
        if isinstance(raw_message, list):
            errors = [str(m) for m in raw_message]
            message = "; ".join(errors)
        elif raw_message:
            message = str(raw_message)
        else:
            message = f"HTTP error, status {response.status_code}"

        code = body.get("code")
        logger.warning("%s %s returned %d", method, path, response.status_code)
        error = self.error_type(
            message,
            status_code=response.status_code,
            code=str(code) if code is not None else None,
            errors=errors,
        )
        error.body = body or None
        return error
