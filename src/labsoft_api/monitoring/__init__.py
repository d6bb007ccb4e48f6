"""Monitoring package for logging and request context."""

from labsoft_api.monitoring.request_context import RequestContextMiddleware

__all__ = [
    "RequestContextMiddleware",
]
