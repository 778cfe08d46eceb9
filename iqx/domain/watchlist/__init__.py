"""
Watchlist bounded context.

Symbols a user follows, with optional notes and price alerts.
"""
