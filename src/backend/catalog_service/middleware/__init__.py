"""Middleware package for request processing and logging context injection."""

from .logging_middleware import BrowseSessionContextMiddleware, LoggingMiddleware

__all__ = ["LoggingMiddleware", "BrowseSessionContextMiddleware"]
