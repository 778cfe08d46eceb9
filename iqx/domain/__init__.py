"""
Domain layer package.

Contains wire schemas, pure calculators, formatters, the downline tree
view, chat session state and port interfaces. No IO, no HTTP, no
framework imports beyond pydantic for shape validation.
"""
