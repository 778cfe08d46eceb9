"""
Application configuration.

Loads settings from environment variables and .env file.
All endpoint URLs and cache tunables are centralized here.
"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment.

    Attributes:
        project_name: Display name for the API.
        version: Current API version string.
        debug: Enable debug mode. Must be False in production.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
        api_base_url: First-party backend (symbols, referral, payments...).
        signals_api_base_url: Technical signals backend. Falls back to
            api_base_url when unset.
        storage_path: JSON file standing in for the browser's local storage.
        app_origin: Public origin used to build referral links and the
            default payment return and cancel pages.
        payment_return_url: Gateway return URL for extension purchases.
        payment_cancel_url: Gateway cancel URL for extension purchases.

    Third-party base URLs default to the production proxies used by the
    dashboard; override them in tests or staging.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    project_name: str = "IQX Dashboard"
    version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"
    rate_limit_enabled: bool = True
    rate_limit_default: str = "60/minute"
    rate_limit_heavy: str = "10/minute"

    # First-party backend
    api_base_url: str = "http://localhost:3000/api"
    signals_api_base_url: Optional[str] = None

    # Third-party endpoints
    iqx_ai_base_url: str = "https://proxy.iqx.vn/proxy/ai/api/v2"
    iq_insight_base_url: str = "https://proxy.iqx.vn/proxy/iq/api"
    vietcap_ai_base_url: str = "https://ai.vietcap.com.vn/api/v2"
    peer_comparison_base_url: str = "https://proxy.iqx.vn/api"
    market_price_url: str = (
        "https://proxy.iqx.vn/proxy/trading/api/chart/OHLCChart/gap-chart"
    )
    hexarate_base_url: str = "https://hexarate.paikama.co/api/rates/latest"
    google_sheets_base_url: str = "https://sheets.googleapis.com/v4/spreadsheets"
    google_sheets_spreadsheet_id: str = "1ekb2bYAQJZbtmqMUzsagb4uWBdtkAzTq3kuIMHQ22RI"
    google_sheets_api_key: Optional[str] = None
    chatbot_base_url: str = "https://bot.iqx.vn"
    arix_pro_default_model: str = "gpt-5-chat-latest"

    # HTTP behaviour
    http_timeout_seconds: float = 10.0
    long_http_timeout_seconds: float = 30.0

    # Query cache
    query_retry_count: int = 3
    query_retry_max_delay_seconds: float = 30.0
    query_default_gc_seconds: float = 300.0

    # Client storage
    storage_path: str = ".iqx/storage.json"
    app_origin: str = "http://localhost:5173"
    payment_return_url: Optional[str] = None
    payment_cancel_url: Optional[str] = None

    def get_signals_api_base_url(self) -> str:
        """Return the effective base URL for the signals backend."""
        return self.signals_api_base_url or self.api_base_url


settings = Settings()
