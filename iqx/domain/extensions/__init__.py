"""API extension packages: extra API calls bought on top of a plan."""
