"""
Referral bounded context — domain layer.

Referral codes, multi-tier commissions, the downline tree and the
admin-side commission settings.
"""
