"""API middleware."""

from stockledger.api.middleware.error_handler import ErrorHandlerMiddleware
from stockledger.api.middleware.logging import LoggingMiddleware

__all__ = ["ErrorHandlerMiddleware", "LoggingMiddleware"]
