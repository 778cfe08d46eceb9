"""
Interfaces layer package.

Contains FastAPI routers, request/response schemas, view-model builders
and dependency wiring. Routes call query bindings and return responses.
"""
