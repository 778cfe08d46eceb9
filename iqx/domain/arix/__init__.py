"""
ARIX hub bounded context — domain layer.

Trade logs kept in a spreadsheet: recommended plans, open holdings and
closed trades, plus the return/risk arithmetic shown next to them.
"""
