"""Typed errors raised by route handlers and service clients."""

from enum import Enum


class ErrorKind(str, Enum):
    """Classification used to pick the HTTP status of an error."""

    UNAUTHORIZED = "unauthorized"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    UPSTREAM = "upstream"
    INTERNAL = "internal"


STATUS_CODES = {
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.UPSTREAM: 500,
    ErrorKind.INTERNAL: 500,
}


class RezkyooError(Exception):
    """Base error carrying an explicit kind."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str, kind: ErrorKind | None = None) -> None:
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind

    @property
    def status_code(self) -> int:
        return STATUS_CODES[self.kind]


class UnauthorizedError(RezkyooError):
    kind = ErrorKind.UNAUTHORIZED

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class ValidationError(RezkyooError):
    kind = ErrorKind.VALIDATION


class NotFoundError(RezkyooError):
    kind = ErrorKind.NOT_FOUND


class UpstreamError(RezkyooError):
    """A third-party service (MCP, PayPal, Places...) failed or misbehaved."""

    kind = ErrorKind.UPSTREAM


class McpError(UpstreamError):
    """Transport or application error from the MCP server."""


class PaywallError(RezkyooError):
    """A paid token could not be created or verified."""

    kind = ErrorKind.VALIDATION
