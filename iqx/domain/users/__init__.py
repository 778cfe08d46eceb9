"""User management (admin) bounded context."""
