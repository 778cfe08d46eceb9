"""
IQX — Streamlit Dashboard
Vietnamese stock market dashboard (HSX, HNX, UPCOM)

Connects to the FastAPI backend at /api/v1/*
"""

import os
import json

import requests
import streamlit as st
import pandas as pd
import plotly.express as px

# ── Configuration ─────────────────────────────────────────────────────
API_BASE = os.getenv("IQX_API_URL", "http://localhost:8000/api/v1")

st.set_page_config(
    page_title="IQX Dashboard",
    page_icon="📈",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .block-container { padding-top: 1rem; }
    div[data-testid="stMetric"] {
        background: linear-gradient(135deg, #1e293b 0%, #0f172a 100%);
        border: 1px solid #334155;
        border-radius: 12px;
        padding: 16px 20px;
    }
    .trend-positive { color: #10b981; font-weight: 600; }
    .trend-negative { color: #ef4444; font-weight: 600; }
    .trend-neutral { color: #94a3b8; }
</style>
""", unsafe_allow_html=True)


# ── Helpers ───────────────────────────────────────────────────────────

def _call(method: str, endpoint: str, timeout: int, **kwargs):
    try:
        r = requests.request(method, f"{API_BASE}{endpoint}", timeout=timeout, **kwargs)
        r.raise_for_status()
        if r.status_code == 204 or not r.content:
            return None
        return r.json()
    except requests.exceptions.ConnectionError:
        return {"_error": "Cannot connect to backend. Is the FastAPI server running?"}
    except requests.exceptions.HTTPError as e:
        return {"_error": f"HTTP {e.response.status_code}: {e.response.text[:300]}"}
    except requests.exceptions.RequestException as e:
        return {"_error": str(e)}


def api_get(endpoint: str, params: dict = None, timeout: int = 30):
    """GET request to backend."""
    return _call("GET", endpoint, timeout, params=params)


def api_post(endpoint: str, data: dict = None, timeout: int = 60):
    """POST request to backend."""
    return _call("POST", endpoint, timeout, json=data)


def api_delete(endpoint: str, timeout: int = 30):
    return _call("DELETE", endpoint, timeout)


def show_error(result):
    """Display error from API response if present."""
    if isinstance(result, dict) and "_error" in result:
        st.error(f"⚠️ {result['_error']}")
        return True
    return False


def trend_span(value: dict) -> str:
    """Colored HTML for a FormattedValue."""
    return f'<span class="trend-{value.get("trend", "neutral")}">{value.get("display", "")}</span>'


def flatten_formatted(rows: list) -> pd.DataFrame:
    """Table rows with FormattedValue cells reduced to their display text."""
    return pd.DataFrame([
        {k: (v["display"] if isinstance(v, dict) and "display" in v else v) for k, v in row.items()}
        for row in rows
    ])


# ══════════════════════════════════════════════════════════════════════
# SIDEBAR
# ══════════════════════════════════════════════════════════════════════

with st.sidebar:
    st.title("IQX")
    st.caption("Vietnamese stock market dashboard")
    st.divider()

    page = st.radio(
        "Navigate",
        [
            "📊 Market",
            "🗂️ ARIX Hub",
            "💼 Virtual Trading",
            "🤝 Referral",
            "💳 Subscription",
            "💬 Assistants",
            "🛠️ Admin",
            "⚙️ Settings & Status",
        ],
        label_visibility="collapsed",
    )

    st.divider()

    health = api_get("/health")
    if show_error(health):
        st.warning("Backend offline")
    else:
        st.success(f"✅ API Online — v{health.get('version', '?')}")


# ══════════════════════════════════════════════════════════════════════
# PAGE: Market
# ══════════════════════════════════════════════════════════════════════

if page == "📊 Market":
    st.title("📊 Market")
    tab1, tab2, tab3, tab4 = st.tabs(["📈 Signals", "⚡ Price Action", "📰 News", "🧮 Tools"])

    with tab1:
        symbols = st.text_input("Symbols (comma-separated)", "FPT,VNM,HPG", key="sig_syms")
        if symbols.strip():
            result = api_get("/market/signals", {"symbols": symbols, "realtime": True})
            if not show_error(result):
                rows = [
                    {
                        "Symbol": item["symbol"],
                        "Price": item["price"],
                        "Trend": item["analysis"]["trend"],
                        "Strength": item["analysis"]["strength"],
                        "RSI": item["indicators"]["rsi"],
                        "vs EMA20 %": item["priceVsEMA20"],
                    }
                    for item in result["data"]
                ]
                st.dataframe(pd.DataFrame(rows), use_container_width=True, hide_index=True)

    with tab2:
        col1, col2 = st.columns(2)
        sort_by = col1.selectbox("Sort by", ["change1D", "change7D", "change30D", "volume"])
        order = col2.radio("Order", ["desc", "asc"], horizontal=True)
        result = api_get("/market/price-action", {"sort_by": sort_by, "order": order})
        if not show_error(result):
            stats = result["stats"]
            c1, c2, c3, c4 = st.columns(4)
            c1.metric("Stocks", stats["totalStocks"])
            c2.metric("Up 1D", stats["positiveChange1D"])
            c3.metric("Down 1D", stats["negativeChange1D"])
            c4.metric("Avg 1D", f"{stats['avgChange1D']:.2f}%")
            df = pd.DataFrame(result["items"])
            if not df.empty:
                st.dataframe(df, use_container_width=True, hide_index=True)
                fig = px.bar(df.head(20), x="ticker", y="change1D", title="1D change, top 20")
                st.plotly_chart(fig, use_container_width=True)

    with tab3:
        result = api_get("/market/news/iqx", {"page_size": 12})
        if not show_error(result):
            for article in result["news_info"]:
                st.markdown(f"**[{article['news_title']}]({article['news_source_link']})**")
                st.caption(f"{article['ticker']} · {article['update_date']} · {article['sentiment']}")

    with tab4:
        st.subheader("Fibonacci")
        c1, c2, c3 = st.columns(3)
        high = c1.number_input("High", min_value=0.0, value=100.0)
        low = c2.number_input("Low", min_value=0.0, value=80.0)
        direction = c3.selectbox("Direction", ["uptrend", "downtrend"])
        if st.button("Calculate levels"):
            result = api_post("/market/fibonacci", {"high": high, "low": low, "direction": direction})
            if not show_error(result):
                st.dataframe(pd.DataFrame(result["levels"]), hide_index=True)

        st.subheader("Currency converter")
        c1, c2, c3 = st.columns(3)
        amount = c1.number_input("Amount", min_value=0.0, value=1.0)
        base = c2.text_input("From", "USD")
        target = c3.text_input("To", "VND")
        if st.button("Convert"):
            result = api_post("/market/convert", {"amount": amount, "base": base, "target": target})
            if not show_error(result):
                st.metric(f"{amount} {base}", f"{result['converted_amount']:,.2f} {target}")


# ══════════════════════════════════════════════════════════════════════
# PAGE: ARIX Hub
# ══════════════════════════════════════════════════════════════════════

elif page == "🗂️ ARIX Hub":
    st.title("🗂️ ARIX Hub")
    if st.button("🔄 Reload sheets"):
        api_post("/arix/refresh")

    tab1, tab2, tab3 = st.tabs(["PLAN", "HOLD", "SELL"])

    for tab, name in ((tab1, "plan"), (tab2, "hold"), (tab3, "sell")):
        with tab:
            table = api_get(f"/arix/{name}")
            if show_error(table):
                continue
            stats = api_get(f"/arix/{name}/statistics")
            if not show_error(stats):
                cols = st.columns(len(stats))
                for col, (label, value) in zip(cols, stats.items()):
                    col.metric(label, f"{value:,.2f}" if isinstance(value, float) else value)
            if table.get("empty_message"):
                st.info(table["empty_message"])
            else:
                st.dataframe(flatten_formatted(table["rows"]), use_container_width=True, hide_index=True)
            if name == "hold":
                st.markdown(
                    f"Total P/L: {trend_span(table['total_profit_loss'])} "
                    f"({trend_span(table['total_profit_loss_percent'])})",
                    unsafe_allow_html=True,
                )
            st.caption(f"Last updated {table['last_updated']}")


# ══════════════════════════════════════════════════════════════════════
# PAGE: Virtual Trading
# ══════════════════════════════════════════════════════════════════════

elif page == "💼 Virtual Trading":
    st.title("💼 Virtual Trading")
    tab1, tab2, tab3 = st.tabs(["Portfolio", "Order", "Leaderboard"])

    with tab1:
        summary = api_get("/trading/portfolio/summary")
        if isinstance(summary, dict) and "HTTP 404" in summary.get("_error", ""):
            st.info("You do not have a virtual portfolio yet.")
            if st.button("Open portfolio", type="primary"):
                show_error(api_post("/trading/portfolio"))
        elif not show_error(summary):
            c1, c2, c3, c4 = st.columns(4)
            c1.metric("Total assets", summary["total_asset_value"])
            c2.metric("Cash", summary["cash_balance"])
            c3.metric("P/L", summary["total_pnl"]["display"], summary["pnl_percentage"]["display"])
            c4.metric("Win rate", summary["win_rate"])
            if summary["allocation"]:
                fig = px.pie(
                    pd.DataFrame(summary["allocation"]),
                    names="symbol", values="value", title="Allocation",
                )
                st.plotly_chart(fig, use_container_width=True)

    with tab2:
        c1, c2, c3 = st.columns(3)
        symbol = c1.text_input("Symbol", "FPT").upper()
        quantity = c2.number_input("Quantity", min_value=100, step=100, value=100)
        side = c3.radio("Side", ["buy", "sell"], horizontal=True)
        price = api_get(f"/trading/price/{symbol}") if symbol else None
        if price and not show_error(price):
            current = price["data"]["currentPrice"]
            st.metric(symbol, f"{current:,.0f}")
            cost = api_get("/trading/cost", {"quantity": quantity, "price": current, "type": side.upper()})
            if not show_error(cost):
                st.caption(f"Fee {cost['fee']:,} · Tax {cost['tax']:,} · Net {cost['net_amount']:,.0f}")
        if st.button("Place order", type="primary"):
            result = api_post(f"/trading/{side}", {"symbol_code": symbol, "quantity": int(quantity)})
            if not show_error(result):
                st.success(result.get("message", "Order placed"))

    with tab3:
        sort_by = st.radio("Rank by", ["percentage", "value"], horizontal=True)
        board = api_get("/trading/leaderboard", {"sort_by": sort_by})
        if not show_error(board):
            st.dataframe(pd.DataFrame(board["data"]), use_container_width=True, hide_index=True)


# ══════════════════════════════════════════════════════════════════════
# PAGE: Referral
# ══════════════════════════════════════════════════════════════════════

elif page == "🤝 Referral":
    st.title("🤝 Referral")
    link = api_get("/referral/link")
    if not show_error(link):
        if link.get("code"):
            st.code(link["link"])
        elif st.button("Generate my referral code", type="primary"):
            show_error(api_post("/referral/code"))

    stats = api_get("/referral/stats")
    if not show_error(stats):
        cols = st.columns(len(stats))
        for col, (label, value) in zip(cols, stats.items()):
            col.metric(label, value)

    st.subheader("Downline")
    expanded = st.session_state.setdefault("downline_expanded", [])
    collapsed = st.session_state.setdefault("downline_collapsed", [])
    tree = api_get("/referral/downline", {
        "expanded": ",".join(expanded), "collapsed": ",".join(collapsed),
    })
    if not show_error(tree):
        if tree.get("empty_message"):
            st.info(tree["empty_message"])
        for row in tree["rows"]:
            indent = " " * row["depth"]
            marker = ("▾ " if row["expanded"] else "▸ ") if row["has_children"] else "· "
            label = f"{indent}{marker}{row['label']} · {row['level_badge']} · {row['commission']}"
            if row["has_children"] and st.button(label, key=f"node_{row['id']}"):
                toggled = api_get("/referral/downline", {
                    "expanded": ",".join(expanded),
                    "collapsed": ",".join(collapsed),
                    "toggle": row["id"],
                })
                if not show_error(toggled):
                    st.session_state["downline_expanded"] = toggled["expanded"]
                    st.session_state["downline_collapsed"] = toggled["collapsed"]
                    st.rerun()
            elif not row["has_children"]:
                st.text(label)

    st.subheader("Commission calculator")
    c1, c2, c3 = st.columns(3)
    price = c1.number_input("Package price", min_value=1.0, value=1_000_000.0, step=100_000.0)
    tier = c2.number_input("Seller tier (F)", min_value=1, max_value=20, value=3)
    qty = c3.number_input("Packages sold", min_value=1, value=1)
    result = api_post("/referral/calculator", {"price": price, "seller_tier": int(tier), "quantity": int(qty)})
    if not show_error(result):
        st.dataframe(pd.DataFrame(result["payouts"]), hide_index=True)
        st.metric("Total commission", result["total_display"])


# ══════════════════════════════════════════════════════════════════════
# PAGE: Subscription
# ══════════════════════════════════════════════════════════════════════

elif page == "💳 Subscription":
    st.title("💳 Subscription")
    plan = api_get("/subscriptions/my-plan")
    if not show_error(plan):
        st.metric("Current plan", plan["planName"], plan.get("expiresAt") or "")

    pending = api_get("/payments/pending")
    if not show_error(pending) and pending.get("order_code"):
        st.info(f"Order {pending['order_code']} is awaiting payment.")
        if st.button("Check payment status"):
            status = api_get(f"/payments/status/{pending['order_code']}")
            if not show_error(status):
                st.write(f"Status: **{status['status']}**")

    packages = api_get("/subscriptions/packages")
    if not show_error(packages):
        cols = st.columns(max(len(packages), 1))
        for col, package in zip(cols, packages):
            with col:
                st.subheader(package["name"])
                st.write(f"{package['price']:,.0f} {package['currency']} / {package['durationDays']} days")
                expiry = api_get("/subscriptions/expiry-date", {"duration_days": package["durationDays"]})
                if not show_error(expiry):
                    st.caption(f"Valid until {expiry['display']}")
                if st.button("Buy", key=f"buy_{package['id']}"):
                    payment = api_post("/payments", {"packageId": package["id"]})
                    if not show_error(payment) and payment.get("checkoutUrl"):
                        st.link_button("Go to checkout", payment["checkoutUrl"])

    st.subheader("Payment history")
    payments = api_get("/payments")
    if not show_error(payments) and payments:
        df = pd.DataFrame(payments)[["orderCode", "amount", "status", "createdAt"]]
        st.dataframe(df, use_container_width=True, hide_index=True)


# ══════════════════════════════════════════════════════════════════════
# PAGE: Assistants
# ══════════════════════════════════════════════════════════════════════

elif page == "💬 Assistants":
    st.title("💬 Assistants")
    assistant = st.radio("Assistant", ["Chatbot", "AriX Pro"], horizontal=True)
    base = "/assistant/chat" if assistant == "Chatbot" else "/assistant/arix-pro"
    history_path = "/assistant/chat/history" if assistant == "Chatbot" else "/assistant/arix-pro/history"

    if assistant == "AriX Pro":
        usage = api_get("/assistant/arix-pro/usage")
        if not show_error(usage):
            st.progress(min(usage["percentage_used"], 100) / 100, text=f"{usage['current_usage']}/{usage['limit']}")
            if usage["is_near_limit"]:
                st.warning("You are close to your AriX Pro limit.")
    else:
        suggestions = api_get("/assistant/chat/suggestions")
        if not show_error(suggestions):
            for suggestion in suggestions["suggestions"]:
                st.caption(f"💡 {suggestion}")

    history = api_get(history_path)
    if not show_error(history):
        for message in history["messages"]:
            with st.chat_message("user" if message["sender"] == "user" else "assistant"):
                st.markdown(message["content"])
                st.caption(message["time"])

    prompt = st.chat_input("Ask a question")
    if prompt:
        endpoint = base if assistant == "Chatbot" else f"{base}/chat"
        show_error(api_post(endpoint, {"message": prompt}, timeout=120))
        st.rerun()
    if st.button("Clear conversation"):
        api_delete(history_path)
        st.rerun()


# ══════════════════════════════════════════════════════════════════════
# PAGE: Admin
# ══════════════════════════════════════════════════════════════════════

elif page == "🛠️ Admin":
    st.title("🛠️ Admin")
    tab1, tab2 = st.tabs(["Users", "Commission plans"])

    with tab1:
        stats = api_get("/admin/users/stats")
        if not show_error(stats):
            cols = st.columns(len(stats))
            for col, (label, value) in zip(cols, stats.items()):
                col.metric(label, value)
        search = st.text_input("Search users")
        users = api_get("/admin/users", {"search": search} if search else None)
        if not show_error(users):
            df = pd.DataFrame(users["data"])
            if not df.empty:
                st.dataframe(df[["email", "displayName", "role", "isActive", "createdAt"]], hide_index=True)
            st.caption(f"{users['pagination']['total']} users")

    with tab2:
        settings_list = api_get("/admin/commission/settings")
        if not show_error(settings_list):
            for setting in settings_list:
                active = "🟢" if setting["isActive"] else "⚪"
                st.markdown(f"{active} **{setting['name']}**: {setting['tiersPct']}")
                if st.button("Toggle", key=f"toggle_{setting['id']}"):
                    show_error(api_post(f"/admin/commission/settings/{setting['id']}/toggle"))
                    st.rerun()


# ══════════════════════════════════════════════════════════════════════
# PAGE: Settings & Status
# ══════════════════════════════════════════════════════════════════════

elif page == "⚙️ Settings & Status":
    st.title("⚙️ Settings & Status")

    tab1, tab2 = st.tabs(["🔧 System Status", "📝 API Explorer"])

    with tab1:
        health = api_get("/health")
        if not show_error(health):
            hcol1, hcol2 = st.columns(2)
            hcol1.metric("Status", health.get("status", "unknown"))
            hcol2.metric("Version", health.get("version", "unknown"))
        st.code(f"API Base URL: {API_BASE}")

    with tab2:
        method = st.selectbox("Method", ["GET", "POST"], key="api_method")
        endpoint = st.text_input("Endpoint", "/health", key="api_ep")
        body = st.text_area("Request Body (JSON)", "{}", key="api_body", height=150)

        if st.button("🚀 Send Request", type="primary"):
            try:
                parsed_body = json.loads(body) if body.strip() else {}
            except json.JSONDecodeError:
                st.error("Invalid JSON in request body.")
                parsed_body = None

            if parsed_body is not None:
                with st.spinner("Calling API..."):
                    if method == "GET":
                        result = api_get(endpoint, params=parsed_body or None)
                    else:
                        result = api_post(endpoint, data=parsed_body)

                if not show_error(result):
                    st.success("✅ Response received")
                    st.json(result)
