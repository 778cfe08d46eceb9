"""
Query and mutation bindings.

Each module pairs an API client with the query cache: reads declare a
key and lifetimes, writes declare which key prefixes they invalidate.
"""

SECOND = 1
MINUTE = 60 * SECOND
HOUR = 60 * MINUTE
