"""
Market bounded context — domain layer.

Symbols catalogue, technical signals, news feeds, screening,
peer comparison, price action and currency exchange.
"""
