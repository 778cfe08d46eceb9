"""
Per-domain API clients.

Each client owns one ApiHttpClient configured with its domain error type
and turns raw JSON into validated domain schemas.
"""
