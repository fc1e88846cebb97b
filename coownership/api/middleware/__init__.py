"""HTTP middleware."""

from coownership.api.middleware.logging_middleware import LoggingMiddleware

__all__ = ["LoggingMiddleware"]
