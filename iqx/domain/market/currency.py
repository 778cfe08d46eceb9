"""
Currency exchange schemas and the supported-currency catalogue.
"""

from dataclasses import dataclass
from typing import Optional

from iqx.domain.schema import SnakeWireModel


class ExchangeRateData(SnakeWireModel):
    base: str
    target: str
    mid: float
    unit: int
    timestamp: str


class ExchangeRateResponse(SnakeWireModel):
    status_code: int
    data: ExchangeRateData


class Conversion(SnakeWireModel):
    amount: float
    base: str
    target: str
    converted_amount: float
    rate: float
    timestamp: str


def convert(amount: float, rate: ExchangeRateData) -> Conversion:
    return Conversion(
        amount=amount,
        base=rate.base,
        target=rate.target,
        converted_amount=amount * rate.mid,
        rate=rate.mid,
        timestamp=rate.timestamp,
    )


@dataclass(frozen=True)
class Currency:
    code: str
    name: str
    symbol: str
    flag: str
    group: str


GROUP_MAIN = "Chính"
GROUP_ASIA = "Châu Á"
GROUP_OTHER = "Khác"
GROUP_CRYPTO = "Crypto"

CURRENCIES = (
    Currency("USD", "Đô la Mỹ", "$", "🇺🇸", GROUP_MAIN),
    Currency("EUR", "Euro", "€", "🇪🇺", GROUP_MAIN),
    Currency("GBP", "Bảng Anh", "£", "🇬🇧", GROUP_MAIN),
    Currency("JPY", "Yên Nhật", "¥", "🇯🇵", GROUP_MAIN),
    Currency("CHF", "Franc Thụy Sỹ", "CHF", "🇨🇭", GROUP_MAIN),
    Currency("CAD", "Đô la Canada", "C$", "🇨🇦", GROUP_MAIN),
    Currency("AUD", "Đô la Úc", "A$", "🇦🇺", GROUP_MAIN),
    Currency("NZD", "Đô la New Zealand", "NZ$", "🇳🇿", GROUP_MAIN),
    Currency("VND", "Đồng Việt Nam", "₫", "🇻🇳", GROUP_ASIA),
    Currency("THB", "Baht Thái", "฿", "🇹🇭", GROUP_ASIA),
    Currency("CNY", "Nhân dân tệ", "¥", "🇨🇳", GROUP_ASIA),
    Currency("KRW", "Won Hàn Quốc", "₩", "🇰🇷", GROUP_ASIA),
    Currency("SGD", "Đô la Singapore", "S$", "🇸🇬", GROUP_ASIA),
    Currency("HKD", "Đô la Hồng Kông", "HK$", "🇭🇰", GROUP_ASIA),
    Currency("TWD", "Đô la Đài Loan", "NT$", "🇹🇼", GROUP_ASIA),
    Currency("INR", "Rupee Ấn Độ", "₹", "🇮🇳", GROUP_ASIA),
    Currency("IDR", "Rupiah Indonesia", "Rp", "🇮🇩", GROUP_ASIA),
    Currency("MYR", "Ringgit Malaysia", "RM", "🇲🇾", GROUP_ASIA),
    Currency("PHP", "Peso Philippines", "₱", "🇵🇭", GROUP_ASIA),
    Currency("BRL", "Real Brazil", "R$", "🇧🇷", GROUP_OTHER),
    Currency("MXN", "Peso Mexico", "Mex$", "🇲🇽", GROUP_OTHER),
    Currency("ZAR", "Rand Nam Phi", "R", "🇿🇦", GROUP_OTHER),
    Currency("TRY", "Lira Thổ Nhĩ Kỳ", "₺", "🇹🇷", GROUP_OTHER),
    Currency("RUB", "Rúp Nga", "₽", "🇷🇺", GROUP_OTHER),
    Currency("PLN", "Zloty Ba Lan", "zł", "🇵🇱", GROUP_OTHER),
    Currency("SEK", "Krona Thụy Điển", "kr", "🇸🇪", GROUP_OTHER),
    Currency("NOK", "Krone Na Uy", "kr", "🇳🇴", GROUP_OTHER),
    Currency("DKK", "Krone Đan Mạch", "kr", "🇩🇰", GROUP_OTHER),
    Currency("BTC", "Bitcoin", "₿", "₿", GROUP_CRYPTO),
    Currency("ETH", "Ethereum", "Ξ", "Ξ", GROUP_CRYPTO),
    Currency("USDT", "Tether", "USDT", "₮", GROUP_CRYPTO),
    Currency("BNB", "Binance Coin", "BNB", "BNB", GROUP_CRYPTO),
    Currency("XRP", "Ripple", "XRP", "XRP", GROUP_CRYPTO),
    Currency("ADA", "Cardano", "ADA", "ADA", GROUP_CRYPTO),
    Currency("DOGE", "Dogecoin", "DOGE", "DOGE", GROUP_CRYPTO),
    Currency("LTC", "Litecoin", "Ł", "Ł", GROUP_CRYPTO),
)

CURRENCY_GROUPS = {
    "main": [c for c in CURRENCIES if c.group == GROUP_MAIN],
    "asia": [c for c in CURRENCIES if c.group == GROUP_ASIA],
    "crypto": [c for c in CURRENCIES if c.group == GROUP_CRYPTO],
    "others": [c for c in CURRENCIES if c.group == GROUP_OTHER],
}


def get_currency_by_code(code: str) -> Optional[Currency]:
    return next((c for c in CURRENCIES if c.code == code.upper()), None)
