"""File action request workflow: services, API routers and background tasks."""
