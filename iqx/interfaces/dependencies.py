"""
Dependency injection for the dashboard API.

Provides FastAPI dependency functions that wire HTTP clients, API
clients, the query cache and the chat sessions into the query bindings.
This is the composition root; every object is built once per process.

The service is a single-user backend-for-frontend: one process serves
one signed-in dashboard user. The token store, the client storage file,
the query cache and both chat sessions are process-wide, so every caller
shares the same bearer token, chat history and pending payment order.
Serving several users means running one process per user.
"""

from functools import lru_cache

from iqx.application.queries.arix import ArixQueries
from iqx.application.queries.assistant import ArixProQueries, GeneralChatQueries
from iqx.application.queries.billing import PaymentQueries, SubscriptionQueries
from iqx.application.queries.extensions import ExtensionQueries
from iqx.application.queries.market import (
    CurrencyQueries,
    NewsQueries,
    PriceActionQueries,
    ScreeningQueries,
    SignalQueries,
    SymbolQueries,
)
from iqx.application.queries.referral import CommissionQueries, ReferralQueries
from iqx.application.queries.trading import TradingQueries
from iqx.application.queries.users import UserQueries
from iqx.application.queries.watchlist import WatchlistQueries
from iqx.application.query_client import QueryClient
from iqx.application.refetch import RefetchScheduler
from iqx.core.config import settings
from iqx.domain.assistant.session import ArixProChatSession, GeneralChatSession
from iqx.domain.errors import (
    ApiExtensionError,
    ArixHoldError,
    ArixProError,
    ChatbotError,
    CommissionError,
    CurrencyError,
    NewsError,
    PaymentError,
    PeerComparisonError,
    PriceActionError,
    ReferralError,
    ScreeningError,
    SignalsError,
    SubscriptionError,
    SymbolError,
    UserManagementError,
    VirtualTradingError,
    WatchlistError,
)
from iqx.domain.ports import ClientStorage
from iqx.infrastructure.auth import TokenStore
from iqx.infrastructure.clients.api_extensions import ApiExtensionClient
from iqx.infrastructure.clients.arix_pro import ArixProClient
from iqx.infrastructure.clients.arix_sheets import (
    MARKET_PRICE_HEADERS,
    ArixSheetsClient,
    MarketPriceClient,
)
from iqx.infrastructure.clients.billing import PaymentClient, SubscriptionClient
from iqx.infrastructure.clients.chatbot import ChatbotClient
from iqx.infrastructure.clients.currency import CurrencyClient
from iqx.infrastructure.clients.news import IqxNewsClient, NewsClient
from iqx.infrastructure.clients.price_action import PriceActionClient
from iqx.infrastructure.clients.referral import CommissionAdminClient, ReferralClient
from iqx.infrastructure.clients.screening import PeerComparisonClient, ScreeningClient
from iqx.infrastructure.clients.signals import SignalsClient
from iqx.infrastructure.clients.symbols import SymbolClient
from iqx.infrastructure.clients.trading import VirtualTradingClient
from iqx.infrastructure.clients.users import UserManagementClient
from iqx.infrastructure.clients.watchlist import WatchlistClient
from iqx.infrastructure.http import ApiHttpClient
from iqx.infrastructure.storage import JsonFileStorage


# ── Shared infrastructure ─────────────────────────────────────────


@lru_cache
def get_storage() -> ClientStorage:
    """Build the JSON-file client storage from settings."""
    return JsonFileStorage(settings.storage_path)


@lru_cache
def get_token_store() -> TokenStore:
    return TokenStore(get_storage())


@lru_cache
def get_query_client() -> QueryClient:
    """Build the process-wide query cache."""
    return QueryClient(
        retry=settings.query_retry_count,
        retry_max_delay=settings.query_retry_max_delay_seconds,
        default_gc_time=settings.query_default_gc_seconds,
    )


@lru_cache
def get_refetch_scheduler() -> RefetchScheduler:
    return RefetchScheduler(get_query_client())


def _first_party(error_type, path: str = "", timeout: float = None) -> ApiHttpClient:
    """HTTP client for the first-party backend, with the bearer token."""
    return ApiHttpClient(
        settings.api_base_url + path,
        error_type=error_type,
        timeout=timeout or settings.http_timeout_seconds,
        token_store=get_token_store(),
    )


def _third_party(base_url: str, error_type, timeout: float = None, headers=None) -> ApiHttpClient:
    return ApiHttpClient(
        base_url,
        error_type=error_type,
        timeout=timeout or settings.http_timeout_seconds,
        headers=headers,
    )


# ── Market ────────────────────────────────────────────────────────


@lru_cache
def get_symbol_queries() -> SymbolQueries:
    return SymbolQueries(get_query_client(), SymbolClient(_first_party(SymbolError)))


@lru_cache
def get_signal_queries() -> SignalQueries:
    http = ApiHttpClient(
        settings.get_signals_api_base_url(),
        error_type=SignalsError,
        timeout=settings.long_http_timeout_seconds,
        token_store=get_token_store(),
    )
    return SignalQueries(get_query_client(), SignalsClient(http), get_refetch_scheduler())


@lru_cache
def get_news_queries() -> NewsQueries:
    return NewsQueries(
        get_query_client(),
        NewsClient(_third_party(settings.vietcap_ai_base_url, NewsError)),
        IqxNewsClient(_third_party(settings.iqx_ai_base_url, NewsError)),
    )


@lru_cache
def get_screening_queries() -> ScreeningQueries:
    return ScreeningQueries(
        get_query_client(),
        ScreeningClient(_third_party(settings.iq_insight_base_url, ScreeningError)),
        PeerComparisonClient(
            _third_party(settings.peer_comparison_base_url, PeerComparisonError)
        ),
    )


@lru_cache
def get_price_action_queries() -> PriceActionQueries:
    return PriceActionQueries(
        get_query_client(), PriceActionClient(_first_party(PriceActionError))
    )


@lru_cache
def get_currency_queries() -> CurrencyQueries:
    return CurrencyQueries(
        get_query_client(),
        CurrencyClient(_third_party(settings.hexarate_base_url, CurrencyError)),
        get_refetch_scheduler(),
    )


# ── ARIX ──────────────────────────────────────────────────────────


@lru_cache
def get_arix_queries() -> ArixQueries:
    # Sheet errors are re-typed per range by the client.
    sheets = _third_party(settings.google_sheets_base_url, ArixHoldError)
    prices = _third_party(settings.market_price_url, ArixHoldError, headers=MARKET_PRICE_HEADERS)
    client = ArixSheetsClient(
        sheets,
        settings.google_sheets_spreadsheet_id,
        api_key=settings.google_sheets_api_key,
        market_prices=MarketPriceClient(prices),
    )
    return ArixQueries(get_query_client(), client)


# ── Referral / commission ─────────────────────────────────────────


@lru_cache
def get_referral_queries() -> ReferralQueries:
    http = _first_party(ReferralError, timeout=settings.long_http_timeout_seconds)
    return ReferralQueries(get_query_client(), ReferralClient(http))


@lru_cache
def get_commission_queries() -> CommissionQueries:
    http = _first_party(CommissionError, timeout=settings.long_http_timeout_seconds)
    return CommissionQueries(get_query_client(), CommissionAdminClient(http))


# ── Billing ───────────────────────────────────────────────────────


@lru_cache
def get_subscription_queries() -> SubscriptionQueries:
    return SubscriptionQueries(
        get_query_client(), SubscriptionClient(_first_party(SubscriptionError))
    )


@lru_cache
def get_payment_queries() -> PaymentQueries:
    return PaymentQueries(
        get_query_client(), PaymentClient(_first_party(PaymentError)), get_storage()
    )


@lru_cache
def get_extension_queries() -> ExtensionQueries:
    return ExtensionQueries(
        get_query_client(),
        ApiExtensionClient(_first_party(ApiExtensionError)),
        get_storage(),
        origin=settings.app_origin,
        return_url=settings.payment_return_url,
        cancel_url=settings.payment_cancel_url,
    )


# ── Watchlist ─────────────────────────────────────────────────────


@lru_cache
def get_watchlist_queries() -> WatchlistQueries:
    return WatchlistQueries(get_query_client(), WatchlistClient(_first_party(WatchlistError)))


# ── Trading / admin ───────────────────────────────────────────────


@lru_cache
def get_trading_queries() -> TradingQueries:
    http = _first_party(VirtualTradingError, "/virtual-trading", timeout=15.0)
    return TradingQueries(get_query_client(), VirtualTradingClient(http), get_refetch_scheduler())


@lru_cache
def get_user_queries() -> UserQueries:
    return UserQueries(
        get_query_client(), UserManagementClient(_first_party(UserManagementError))
    )


# ── Assistant ─────────────────────────────────────────────────────


@lru_cache
def get_general_chat_queries() -> GeneralChatQueries:
    client = ChatbotClient(
        _third_party(
            settings.chatbot_base_url, ChatbotError, timeout=settings.long_http_timeout_seconds
        )
    )
    return GeneralChatQueries(get_query_client(), client, GeneralChatSession(client, get_storage()))


@lru_cache
def get_arix_pro_queries() -> ArixProQueries:
    http = _first_party(ArixProError, timeout=settings.long_http_timeout_seconds)
    client = ArixProClient(http, settings.arix_pro_default_model)
    return ArixProQueries(get_query_client(), client, ArixProChatSession(client, get_storage()))
