"""
Custom exceptions for the notification gateway.

Every error carries the HTTP status code the request boundary reports for it.
"""

import logging
from typing import Any, Dict, Optional, Tuple


logger = logging.getLogger(__name__)


class NotificationError(Exception):
    """Base exception for notification gateway errors."""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class NotFoundError(NotificationError):
    """Raised when a template, sender, identity or notification is absent."""
    status_code = 404


class InvalidStateError(NotificationError):
    """Raised when a template exists but is inactive."""
    status_code = 400


class ChannelMismatchError(NotificationError):
    """Raised when a template's channel differs from the requested send channel."""

    status_code = 400

    def __init__(self, message: str, expected: str, actual: str):
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class BadRequestError(NotificationError):
    """Raised for malformed or incomplete caller input."""
    status_code = 400


class TemplateRenderError(BadRequestError):
    """Raised when a template engine fails to render a template."""

    def __init__(self, message: str, engine: str):
        super().__init__(message)
        self.engine = engine


class UnknownEngineError(BadRequestError):
    """Raised when no renderer is registered for an engine name."""

    def __init__(self, message: str, engine: str):
        super().__init__(message)
        self.engine = engine


class UnauthorizedError(NotificationError):
    """Raised when an upstream credential is missing or rejected."""
    status_code = 401


class ConflictError(NotificationError):
    """Raised when a record would violate a uniqueness constraint."""
    status_code = 409


class UnsupportedError(NotificationError):
    """Raised for features that are recognised but not implemented."""
    status_code = 501


class RateLimitError(NotificationError):
    """Raised when the upstream service reports rate limiting."""

    status_code = 429

    def __init__(self, message: str, retry_after: Optional[int] = None):
        super().__init__(message)
        self.retry_after = retry_after


class UpstreamError(NotificationError):
    """Raised when an external service fails."""

    status_code = 502

    def __init__(self, message: str, upstream_status: Optional[int] = None):
        super().__init__(message)
        self.upstream_status = upstream_status


class DeliveryError(UpstreamError):
    """Raised when a transport fails to hand a message to its provider."""

    def __init__(self, message: str, provider: str, upstream_status: Optional[int] = None):
        super().__init__(message, upstream_status)
        self.provider = provider


class ConfigurationError(NotificationError):
    """Raised when the gateway is miswired or misconfigured."""
    status_code = 500


def to_error_response(error: Exception) -> Tuple[int, Dict[str, Any]]:
    """
    Map an exception to a status code and response body.

    Args:
        error: Exception raised while handling a request

    Returns:
        Tuple of (status code, body) where body follows the
        ``{"status_code": ..., "errors": [...]}`` shape
    """
    if isinstance(error, NotificationError):
        status = error.status_code
        name = type(error).__name__
        message = error.message
    else:
        logger.error(f"Unhandled error while processing request: {error!r}")
        status = 500
        name = "InternalServerError"
        message = "Internal server error"

    return status, {
        "status_code": status,
        "errors": [{"error": name, "message": message}],
    }
