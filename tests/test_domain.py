"""
Tests for the domain layer.

Formatters, ARIX calculations, commission payouts, the downline tree view,
virtual trading rules, watchlist checks and extension pricing.
Pure functions, no IO.
"""

import pytest
from pydantic import ValidationError

from iqx.domain.arix import calculators as arix
from iqx.domain.arix.entities import ArixHoldPosition, ArixPlanPosition, ArixSellTrade
from iqx.domain.errors import ApiExtensionError, VirtualTradingError, WatchlistError
from iqx.domain.extensions.entities import (
    ApiExtensionPackage,
    ExtensionPaymentStatus,
    price_per_call,
    resolve_redirect_urls,
)
from iqx.domain.formatting import (
    format_currency,
    format_date,
    format_number,
    format_percent,
    parse_percentage,
    trend_of,
)
from iqx.domain.referral.commission_calculator import (
    build_referral_link,
    calculate_for_setting,
    calculate_upline_payouts,
    pick_active_setting,
    total_payout,
)
from iqx.domain.referral.downline import EMPTY_MESSAGE, DownlineTreeView
from iqx.domain.referral.entities import CommissionSetting, DownlineNode
from iqx.domain.trading.calculators import (
    CASH_BUCKET,
    calculate_allocation,
    calculate_trading_cost,
    calculate_win_rate,
    can_afford_purchase,
    max_purchase_quantity,
    validate_order,
)
from iqx.domain.trading.entities import OrderType, TransactionType, VirtualHolding
from iqx.domain.watchlist.entities import (
    UpdateWatchlistRequest,
    WatchlistItem,
    is_valid_symbol_code,
    normalize_symbol_code,
    require_item_id,
    validate_update,
)
from iqx.domain.watchlist.stats import compute_stats

from conftest import extension_package_body, watchlist_item_body


def _node(node_id: str, level: int, children=None) -> DownlineNode:
    return DownlineNode(
        id=node_id,
        email=f"{node_id}@example.com",
        created_at="2024-03-01T08:00:00Z",
        total_referrals=len(children or []),
        total_commission=150000,
        level=level,
        children_count=len(children or []),
        children=children or [],
    )


def _setting(setting_id: str = "s1", is_active: bool = True) -> CommissionSetting:
    return CommissionSetting(
        id=setting_id,
        name="Default",
        commission_total_pct=0.17,
        tiers_pct=[0.1, 0.05, 0.02],
        is_active=is_active,
        created_at="2024-01-01T00:00:00Z",
        updated_at="2024-01-01T00:00:00Z",
    )


# =====================================================================
# Formatting
# =====================================================================

class TestFormatting:
    """Tests for the vi-VN display formatters."""

    def test_thousands_use_dots(self):
        assert format_number(1234567) == "1.234.567"

    def test_decimals_use_comma(self):
        assert format_number(1234567.5) == "1.234.567,5"

    def test_missing_values_render_placeholder(self):
        assert format_number(None) == "-"
        assert format_number(float("nan")) == "-"
        assert format_currency(None) == "-"

    def test_vnd_has_no_minor_unit(self):
        assert format_currency(1234567) == "1.234.567 ₫"

    def test_usd_keeps_two_decimals(self):
        assert format_currency(12.5, "USD") == "12,50 US$"

    def test_percent_sign(self):
        assert format_percent(20) == "+20.00%"
        assert format_percent(-5.5) == "-5.50%"
        assert format_percent(0) == "0.00%"
        assert format_percent(12.345, decimals=1, show_sign=False) == "12.3%"

    def test_trend_of(self):
        assert trend_of(3) == "positive"
        assert trend_of(-0.1) == "negative"
        assert trend_of(0) == "neutral"
        assert trend_of(None) == "neutral"

    def test_parse_percentage(self):
        assert parse_percentage("12.5%") == 12.5
        assert parse_percentage(None) == 0.0
        assert parse_percentage("n/a") == 0.0

    def test_format_date_from_iso(self):
        assert format_date("2024-01-15T10:00:00Z") == "15/01/2024"

    def test_format_date_passes_through_unparseable(self):
        assert format_date("hôm qua") == "hôm qua"
        assert format_date(None) == "-"


# =====================================================================
# Wire schemas
# =====================================================================

class TestWireModel:
    """Tests for camelCase wire parsing."""

    def test_accepts_camel_case_and_ignores_extra(self):
        position = ArixPlanPosition.model_validate(
            {"symbol": "FPT", "buyPrice": 95, "stopLoss": 90, "target": 120,
             "returnRisk": 5, "unexpected": "ignored"}
        )
        assert position.buy_price == 95
        assert not hasattr(position, "unexpected")

    def test_accepts_snake_case(self):
        position = ArixPlanPosition(
            symbol="FPT", buy_price=95, stop_loss=90, target=120, return_risk=5
        )
        assert position.model_dump(by_alias=True)["buyPrice"] == 95

    def test_rejects_missing_fields(self):
        with pytest.raises(ValidationError):
            ArixPlanPosition.model_validate({"symbol": "FPT", "buyPrice": 95})


# =====================================================================
# ARIX
# =====================================================================

class TestArixParsing:
    """Tests for spreadsheet row parsing."""

    def test_plan_rows_skip_header_and_short_rows(self):
        values = [
            ["Mã", "Giá mua", "Cắt lỗ", "Mục tiêu", "R/R"],
            ["FPT", "95,000", "90,000", "120.000", "5"],
            ["VNM", "70"],
        ]
        positions = arix.parse_plan_rows(values)

        assert len(positions) == 1
        assert positions[0].buy_price == 95000
        assert positions[0].target == 120000

    def test_sell_rows(self):
        values = [
            ["header"] * 9,
            ["FPT", "01/01/2024", "100.000", "1.000", "01/02/2024", "126.000",
             "26%", "26.000.000", "31 ngày"],
        ]
        trade = arix.parse_sell_rows(values)[0]

        assert trade.stock_code == "FPT"
        assert trade.buy_price == 100000
        assert trade.quantity == 1000
        assert trade.profit_loss == 26000000
        assert trade.return_percent == "26%"
        assert trade.days_held == 31

    def test_unparseable_numbers_become_zero(self):
        values = [["h"] * 4, ["FPT", "01/01/2024", "abc", ""]]
        position = arix.parse_hold_rows(values)[0]
        assert position.price == 0
        assert position.volume == 0

    @pytest.mark.parametrize(
        "cell, expected",
        [("12abc", 12), ("1.500 cp", 1500), (" 7", 7), ("-3x", -3), ("x12", 0)],
    )
    def test_trailing_text_is_ignored(self, cell, expected):
        values = [["h"] * 4, ["FPT", "01/01/2024", cell, "1"]]
        assert arix.parse_hold_rows(values)[0].price == expected


class TestArixCalculations:
    """Tests for return, risk and statistics."""

    def test_return_percent(self):
        assert arix.return_percent(100, 120) == pytest.approx(20.0)

    def test_zero_buy_price_yields_zero(self):
        assert arix.return_percent(0, 120) == 0.0
        assert arix.risk_percent(0, 90) == 0.0

    def test_risk_reward_ratio(self):
        assert arix.risk_reward_ratio(100, 90, 130) == pytest.approx(3.0)
        assert arix.risk_reward_ratio(100, 100, 130) == 0.0

    def test_plan_statistics_empty(self):
        stats = arix.plan_statistics([])
        assert stats.total_positions == 0
        assert stats.avg_buy_price == 0

    def test_top_opportunities_ranked_by_return_risk(self):
        positions = [
            ArixPlanPosition(symbol=s, buy_price=10, stop_loss=9, target=12, return_risk=rr)
            for s, rr in [("A", 1), ("B", 3), ("C", 2)]
        ]
        stats = arix.plan_statistics(positions)
        assert [p.symbol for p in stats.top_opportunities] == ["B", "C", "A"]

    def test_merge_market_prices(self):
        positions = [
            ArixHoldPosition(symbol="FPT", date="01/01/2024", price=100, volume=10),
            ArixHoldPosition(symbol="VNM", date="01/01/2024", price=50, volume=20),
        ]
        merged, total_pl, total_pct = arix.merge_market_prices(positions, {"FPT": 110})

        assert merged[0].profit_loss == pytest.approx(100)
        assert merged[0].profit_loss_percent == pytest.approx(10.0)
        assert merged[1].current_price is None
        assert total_pl == pytest.approx(100)
        assert total_pct == pytest.approx(5.0)

    def test_sell_statistics(self):
        trades = [
            ArixSellTrade(stock_code=code, buy_date="", buy_price=1, quantity=1, sell_date="",
                          sell_price=1, return_percent="0%", profit_loss=pl, days_held=days)
            for code, pl, days in [("FPT", 100, 10), ("VNM", -50, 20)]
        ]
        stats = arix.sell_statistics(trades)

        assert stats.win_rate == 50.0
        assert stats.total_profit == 50
        assert stats.avg_days_held == 15.0
        assert stats.avg_loss == -50

    def test_recent_trades_newest_first(self):
        trades = [
            ArixSellTrade(stock_code=code, buy_date="", buy_price=1, quantity=1, sell_date="",
                          sell_price=1, return_percent="0%", profit_loss=0, days_held=1)
            for code in ["A", "B", "C"]
        ]
        assert [t.stock_code for t in arix.recent_trades(trades, 2)] == ["C", "B"]
        assert arix.recent_trades(trades, 0) == []

    def test_filter_by_symbol_is_case_insensitive(self):
        trade = ArixSellTrade(stock_code="FPT", buy_date="", buy_price=1, quantity=1,
                              sell_date="", sell_price=1, return_percent="0%",
                              profit_loss=0, days_held=1)
        assert arix.filter_by_symbol([trade], "fpt", "stock_code") == [trade]


# =====================================================================
# Referral
# =====================================================================

class TestCommissionCalculator:
    """Tests for upline payouts."""

    def test_seller_at_f3_pays_three_uplines(self):
        payouts = calculate_upline_payouts([0.1, 0.05, 0.02], 1_000_000, 3, quantity=2)

        assert [p.upline_tier for p in payouts] == ["F2", "F1", "F0 (Root)"]
        assert [p.commission_per_sale for p in payouts] == [100000, 50000, 20000]
        assert total_payout(payouts) == 340000

    def test_payouts_limited_by_seller_tier(self):
        payouts = calculate_upline_payouts([0.1, 0.05, 0.02], 1_000_000, 1)
        assert [p.upline_tier for p in payouts] == ["F0 (Root)"]

    def test_payouts_limited_by_setting_tiers(self):
        payouts = calculate_upline_payouts([0.1, 0.05], 1_000_000, 5)
        assert [p.upline_tier for p in payouts] == ["F4", "F3"]

    def test_per_sale_amount_is_floored(self):
        payouts = calculate_upline_payouts([0.1], 999, 1)
        assert payouts[0].commission_per_sale == 99

    def test_for_setting_and_active_pick(self):
        inactive, active = _setting("a", False), _setting("b", True)
        assert pick_active_setting([inactive, active]) is active
        assert pick_active_setting([inactive]) is None
        assert len(calculate_for_setting(active, 500000, 2)) == 2

    def test_referral_link(self):
        assert build_referral_link("https://app.example.vn/", "ABC123") == (
            "https://app.example.vn/register?ref=ABC123"
        )


class TestDownlineTreeView:
    """Tests for expand/collapse state over the downline tree."""

    def _tree(self) -> DownlineNode:
        deep = _node("c", 2, [_node("d", 3)])
        return _node("root", -1, [_node("a", 0, [_node("b", 1, [deep])])])

    def test_first_two_levels_open_by_default(self):
        view = DownlineTreeView(self._tree())
        assert [row.id for row in view.visible_rows()] == ["a", "b", "c"]
        assert view.is_expanded("a")
        assert view.is_expanded("b")
        assert not view.is_expanded("c")

    def test_toggle_opens_deeper_node(self):
        view = DownlineTreeView(self._tree())
        assert view.toggle("c") is True
        assert [row.id for row in view.visible_rows()] == ["a", "b", "c", "d"]
        assert view.expanded_ids == ["c"]

    def test_collapsed_wins_over_default(self):
        view = DownlineTreeView(self._tree(), collapsed=["a"])
        assert [row.id for row in view.visible_rows()] == ["a"]

    def test_toggle_unknown_node(self):
        with pytest.raises(KeyError):
            DownlineTreeView(self._tree()).toggle("zzz")

    def test_empty_tree(self):
        view = DownlineTreeView(None)
        assert view.is_empty
        assert view.empty_message == EMPTY_MESSAGE
        assert view.visible_rows() == []

    def test_row_display(self):
        row = DownlineTreeView(self._tree()).visible_rows()[0]
        assert row.level_badge == "cấp 1"
        assert row.joined == "01/03/2024"
        assert row.has_children


# =====================================================================
# Virtual trading
# =====================================================================

class TestTradingCost:
    """Tests for fees, tax and affordability."""

    def test_buy_adds_fee(self):
        cost = calculate_trading_cost(10_000_000, TransactionType.BUY)
        assert cost.fee == 15000
        assert cost.tax == 0
        assert cost.net_amount == 10_015_000

    def test_sell_deducts_fee_and_tax(self):
        cost = calculate_trading_cost(10_000_000, "SELL")
        assert cost.tax == 10000
        assert cost.net_amount == 9_975_000

    def test_can_afford_purchase(self):
        result = can_afford_purchase(1000, 1, 1000)
        assert not result.can_afford
        assert result.required == 1002
        assert result.shortfall == 2

    def test_max_purchase_quantity(self):
        assert max_purchase_quantity(1_001_500, 1000) == 1000
        assert max_purchase_quantity(100, 0) == 0

    def test_win_rate(self):
        assert calculate_win_rate(3, 4) == 75.0
        assert calculate_win_rate(0, 0) == 0.0

    def test_allocation_includes_cash(self):
        holding = VirtualHolding(
            id="h1", symbol_code="FPT", symbol_name="FPT Corp", quantity=6,
            average_price=100, current_price=100, current_value=600,
            unrealized_profit_loss=0, profit_loss_percentage="0%", total_cost=600,
        )
        slices = calculate_allocation([holding], 400)

        assert [s.symbol for s in slices] == ["FPT", CASH_BUCKET]
        assert slices[0].percentage == pytest.approx(60.0)

    def test_allocation_of_empty_portfolio(self):
        assert calculate_allocation([], 0) == []


class TestValidateOrder:
    """Tests for local order checks."""

    def test_valid_market_order(self):
        order = validate_order("FPT", 100.0, "MARKET", None, TransactionType.BUY)
        assert order.quantity == 100
        assert order.order_type is OrderType.MARKET

    @pytest.mark.parametrize(
        "symbol, quantity, order_type, limit_price",
        [
            ("", 100, "MARKET", None),
            ("FPT", 0, "MARKET", None),
            ("FPT", 1.5, "MARKET", None),
            ("FPT", 100, "STOP", None),
            ("FPT", 100, "LIMIT", None),
            ("FPT", 100, "LIMIT", -1),
        ],
    )
    def test_invalid_orders_raise(self, symbol, quantity, order_type, limit_price):
        with pytest.raises(VirtualTradingError):
            validate_order(symbol, quantity, order_type, limit_price, TransactionType.BUY)

    def test_buy_quantity_cap_applies_to_buys_only(self):
        with pytest.raises(VirtualTradingError):
            validate_order("FPT", 1_000_001, "MARKET", None, TransactionType.BUY)
        order = validate_order("FPT", 1_000_001, "MARKET", None, TransactionType.SELL)
        assert order.quantity == 1_000_001


# =====================================================================
# Watchlist
# =====================================================================

class TestWatchlistRules:
    """Tests for watchlist input checks and item helpers."""

    def test_symbol_code_is_trimmed_and_upper_cased(self):
        assert normalize_symbol_code("  fpt ") == "FPT"

    @pytest.mark.parametrize("code", ["", "   ", None])
    def test_blank_symbol_code_raises(self, code):
        with pytest.raises(WatchlistError) as exc_info:
            normalize_symbol_code(code)
        assert exc_info.value.status_code == 400

    @pytest.mark.parametrize(
        "code, valid",
        [("FPT", True), ("vnm", True), ("ABCD", True), ("AB", False), ("FPT1", False), ("", False)],
    )
    def test_ticker_shape(self, code, valid):
        assert is_valid_symbol_code(code) is valid

    def test_blank_item_id_raises(self):
        with pytest.raises(WatchlistError):
            require_item_id("  ")

    def test_inverted_alert_range_raises(self):
        with pytest.raises(WatchlistError, match="greater than low"):
            validate_update(UpdateWatchlistRequest(alert_price_high=90, alert_price_low=100))

    def test_single_alert_bound_is_accepted(self):
        request = UpdateWatchlistRequest(alert_price_high=120)
        assert validate_update(request) is request

    def test_negative_alert_price_is_rejected(self):
        with pytest.raises(ValidationError):
            UpdateWatchlistRequest(alert_price_low=-1)

    def test_display_name_prefers_custom_name(self):
        item = WatchlistItem.model_validate(watchlist_item_body("FPT", customName="My FPT"))
        assert item.display_name == "My FPT"

    def test_display_name_falls_back_to_ticker(self):
        item = WatchlistItem.model_validate(watchlist_item_body("FPT"))
        assert item.display_name == "FPT"

    @pytest.mark.parametrize(
        "fields, valid",
        [
            ({"isAlertEnabled": False}, True),
            ({"isAlertEnabled": True}, False),
            ({"isAlertEnabled": True, "alertPriceHigh": 120}, True),
            ({"isAlertEnabled": True, "alertPriceLow": 0}, False),
            ({"isAlertEnabled": True, "alertPriceHigh": 120, "alertPriceLow": 100}, True),
            ({"isAlertEnabled": True, "alertPriceHigh": 100, "alertPriceLow": 120}, False),
        ],
    )
    def test_alert_validity(self, fields, valid):
        item = WatchlistItem.model_validate(watchlist_item_body("FPT", **fields))
        assert item.has_valid_alert is valid


class TestWatchlistStats:
    """Tests for stats computed from the items."""

    def test_empty_watchlist(self):
        stats = compute_stats([])
        assert stats.total_items == 0
        assert stats.top_sectors == []
        assert stats.recently_added == []

    def test_counts_sectors_and_alerts(self):
        items = [
            WatchlistItem.model_validate(watchlist_item_body("VCB", isAlertEnabled=True)),
            WatchlistItem.model_validate(watchlist_item_body("ACB")),
            WatchlistItem.model_validate(watchlist_item_body("XYZ")),
        ]

        stats = compute_stats(items)

        assert stats.total_items == 3
        assert stats.alerts_enabled == 1
        assert stats.top_sectors[0].sector == "Banking"
        assert stats.top_sectors[0].count == 2
        assert {s.sector for s in stats.top_sectors} == {"Banking", "Other"}

    def test_recently_added_is_newest_first_and_capped(self):
        items = [
            WatchlistItem.model_validate(
                watchlist_item_body(f"S{day:02d}", createdAt=f"2024-05-{day:02d}T00:00:00Z")
            )
            for day in range(1, 8)
        ]

        recent = compute_stats(items).recently_added

        assert [item.symbol.symbol for item in recent] == ["S07", "S06", "S05", "S04", "S03"]


# =====================================================================
# API extensions
# =====================================================================

class TestExtensionPricing:
    """Tests for package pricing and redirect URLs."""

    @pytest.mark.parametrize(
        "price, calls, expected",
        [(99000, 1000, 99), (100, 3, 33), (5, 2, 3), (100, 0, 0)],
    )
    def test_price_per_call(self, price, calls, expected):
        assert price_per_call(price, calls) == expected

    def test_string_price_is_numeric(self):
        package = ApiExtensionPackage.model_validate(extension_package_body(price="99000"))
        assert package.price == 99000.0
        assert package.price_per_call == 99

    def test_redirects_default_to_origin_pages(self):
        assert resolve_redirect_urls("https://app.example.test/") == (
            "https://app.example.test/payment/success",
            "https://app.example.test/payment/cancel",
        )

    def test_explicit_redirect_wins_over_configured(self):
        chosen = resolve_redirect_urls(
            "https://app.example.test",
            return_url="https://x.test/ok",
            default_return_url="https://conf.test/ok",
            default_cancel_url="https://conf.test/cancel",
        )
        assert chosen == ("https://x.test/ok", "https://conf.test/cancel")

    @pytest.mark.parametrize("url", ["/payment/success", "ftp://x.test/ok", "https://"])
    def test_relative_or_non_http_redirect_raises(self, url):
        with pytest.raises(ApiExtensionError) as exc_info:
            resolve_redirect_urls("https://app.example.test", return_url=url)
        assert exc_info.value.status_code == 400

    def test_payment_status_terminal_states(self):
        assert not ExtensionPaymentStatus(status="PENDING").is_terminal
        assert not ExtensionPaymentStatus(status="processing").is_terminal
        assert ExtensionPaymentStatus(status="completed").is_terminal
