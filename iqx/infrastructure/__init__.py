"""
Infrastructure layer: HTTP transport, client storage and API adapters.

Adapters implement the domain ports and wrap the external REST APIs.
"""
