"""
API error taxonomy.

Every failure that crosses the HTTP boundary is raised as an ApiError
subclass, so pages and forms catch one type and turn it into a message.
"""

from typing import Optional

NETWORK_MESSAGE = "Could not reach the server. Please try again later."
SESSION_EXPIRED_MESSAGE = "Your session has expired. Please log in again."


class ApiError(Exception):
    """Base class. `detail` holds the server's own error text, if any."""

    def __init__(self, message: str, status_code: Optional[int] = None, detail: str = ''):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class TransportError(ApiError):
    """Connection refused, DNS failure, timeout."""


class UnauthorizedError(ApiError):
    """401. On authenticated calls the session has already been torn down."""


class RejectedError(ApiError):
    """4xx validation failure (bad input, missing fields)."""


class ForbiddenError(RejectedError):
    """403, e.g. admin access required."""


class ConflictError(RejectedError):
    """409, e.g. duplicate lesson or overlapping reservation."""


class NotFoundError(ApiError):
    """404."""


class ServerError(ApiError):
    """5xx."""


class SchemaError(ApiError):
    """The response body was not JSON, or did not match its schema."""


def describe_error(exc: Exception, rejected_message: str) -> str:
    """
    Turn an exception into the message a page or form shows.

    Rejections (validation, conflict, permission, not-found) get the
    resource-specific message; anything transport- or server-side gets the
    generic network message.
    """
    if isinstance(exc, UnauthorizedError):
        return SESSION_EXPIRED_MESSAGE
    if isinstance(exc, (RejectedError, NotFoundError)):
        return rejected_message
    return NETWORK_MESSAGE
