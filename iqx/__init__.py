"""
IQX Dashboard — backend-for-frontend for the IQX financial dashboard.

Application package root. This is a modular monolith using
hexagonal architecture (ports & adapters).

Bounded contexts:
    - market: Symbols, signals, news, screening, price action, currency.
    - arix: ARIX hub trade logs (plan, hold, sell) and their calculators.
    - referral: Referral codes, commissions, downline tree, commission settings.
    - billing: Subscription packages and payment gateway round trips.
    - trading: Virtual-trading portfolio, orders and leaderboard.
    - assistant: General chatbot and AriX Pro chat sessions.

Layers:
    - domain: Entities (wire schemas), pure calculators, ports (ABCs), errors.
    - application: Query cache, refetch scheduling, query/mutation bindings.
    - infrastructure: HTTP client, client storage, per-domain API clients.
    - interfaces: FastAPI routers, request schemas, view-model builders.
    - shared: Cross-cutting concerns (errors, security, logging).
"""
