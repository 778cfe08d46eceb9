"""
Domain-specific errors for every dashboard API client.

Each client raises exactly one error type. All of them carry a message,
an optional upstream HTTP status, an optional server error code and,
when the server answers with a list of validation messages, that list.
These are mapped to HTTP responses at the interface layer.
No framework imports allowed.
"""

from typing import Optional


class DashboardApiError(Exception):
    """Base error for all dashboard API client failures."""

    body: Optional[dict] = None

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        errors: Optional[list[str]] = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.code = code
        self.errors = errors
        super().__init__(self.message)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(message={self.message!r}, "
            f"status_code={self.status_code!r}, code={self.code!r})"
        )


class SymbolError(DashboardApiError):
    """Raised by the symbols client."""


class SignalsError(DashboardApiError):
    """Raised by the technical signals client."""


class NewsError(DashboardApiError):
    """Raised by the news feed clients."""


class ScreeningError(DashboardApiError):
    """Raised by the stock screening client."""


class PeerComparisonError(DashboardApiError):
    """Raised by the peer comparison client."""


class PriceActionError(DashboardApiError):
    """Raised by the price action client."""


class CurrencyError(DashboardApiError):
    """Raised by the exchange rate client."""


class ArixHoldError(DashboardApiError):
    """Raised when the ARIX HOLD sheet cannot be read."""


class ArixPlanError(DashboardApiError):
    """Raised when the ARIX PLAN sheet cannot be read."""


class ArixSellError(DashboardApiError):
    """Raised when the ARIX SELL sheet cannot be read."""


class ReferralError(DashboardApiError):
    """Raised by the referral program client."""


class CommissionError(DashboardApiError):
    """Raised by the commission settings (admin) client."""


class SubscriptionError(DashboardApiError):
    """Raised by the subscription client."""


class PaymentError(DashboardApiError):
    """Raised by the payment client."""


class UserManagementError(DashboardApiError):
    """Raised by the user management (admin) client."""


class VirtualTradingError(DashboardApiError):
    """Raised by the virtual trading client, including local order checks."""


class ChatbotError(DashboardApiError):
    """Raised by the general chatbot client."""


class ArixProError(DashboardApiError):
    """Raised by the AriX Pro chat client.

    Rate-limited replies (HTTP 429) also carry the usage counters so the
    caller can tell the user when the quota resets.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        errors: Optional[list[str]] = None,
        current_usage: Optional[int] = None,
        limit: Optional[int] = None,
        reset_date: Optional[str] = None,
    ) -> None:
        super().__init__(message, status_code=status_code, code=code, errors=errors)
        self.current_usage = current_usage
        self.limit = limit
        self.reset_date = reset_date


class WatchlistError(DashboardApiError):
    """Raised by the watchlist client, including local input checks (400)."""


class ApiExtensionError(DashboardApiError):
    """Raised by the API extension package client."""
