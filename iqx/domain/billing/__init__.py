"""
Billing bounded context — domain layer.

Subscription packages, user subscriptions and payment-gateway orders.
"""
