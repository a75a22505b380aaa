"""Middleware package."""

from permipulse.api.middleware.request_id import RequestIdMiddleware, get_request_id
from permipulse.api.middleware.logging import LoggingMiddleware

__all__ = [
    "RequestIdMiddleware",
    "get_request_id",
    "LoggingMiddleware",
]
