"""Bearer-token authentication and permission checks."""
