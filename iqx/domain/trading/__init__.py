"""
Virtual trading bounded context — domain layer.

Paper-trading portfolio, order validation and the fee/tax arithmetic
shown before an order is placed.
"""
