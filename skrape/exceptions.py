"""Exception types for Skrape client errors.

This module defines the error hierarchy surfaced by the client:

- ConfigError: the client could not be constructed (bad API key or URL).
- SkrapeError: base class for everything that goes wrong during a call.
  Subclasses tell apart remote failures, transport failures and results
  that do not match the requested schema.

The client never retries. Rate limiting is signalled only through
``retry_after`` and the caller decides whether to wait.
"""

from __future__ import annotations

from typing import Any


class ConfigError(ValueError):
    """Raised when the client configuration is missing or invalid.

    This is raised synchronously at construction time and prevents the
    client from being created.
    """


class SkrapeError(Exception):
    """Base class for errors raised by Skrape operations.

    Attributes:
        message: Human-readable error message.
        status: HTTP status code, or 500 when no response was obtained.
        retry_after: Seconds the server asked us to wait, if it said so.
    """

    def __init__(
        self,
        message: str,
        status: int | None = None,
        retry_after: int | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error message.
            status: HTTP status code associated with the failure.
            retry_after: Retry delay in seconds from the Retry-After header.
        """
        self.message = message
        self.status = status
        self.retry_after = retry_after
        super().__init__(message)

    @property
    def is_rate_limited(self) -> bool:
        """True when the server supplied a retry delay."""
        return self.retry_after is not None

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(message={self.message!r}, "
            f"status={self.status!r}, retry_after={self.retry_after!r})"
        )


class RemoteError(SkrapeError):
    """Raised when the service answers with a non-success response.

    Also raised when a success response carries a body that is not JSON.
    """


class TransportError(SkrapeError):
    """Raised when no response could be obtained.

    Connection refused, DNS failures and timeouts all end up here. The
    status is always 500 so callers can treat it like a server failure.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message, status=500)


class ResultValidationError(SkrapeError):
    """Raised when the extracted result does not match the schema.

    Attributes:
        errors: List of Pydantic validation errors.
        result: The decoded result that failed validation.
        schema_name: Name of the type that was validated against.
    """

    def __init__(
        self,
        errors: list[dict[str, Any]],
        result: Any,
        schema_name: str,
    ) -> None:
        """Initialize the exception.

        Args:
            errors: List of Pydantic validation errors.
            result: The decoded result that failed validation.
            schema_name: Name of the type that was validated against.
        """
        self.errors = errors
        self.result = result
        self.schema_name = schema_name

        error_summary = ", ".join(
            f"{'.'.join(str(part) for part in err['loc']) or '<root>'}: "
            f"{err['msg']}"
            for err in errors
        )
        super().__init__(
            f"Result does not match schema '{schema_name}': {error_summary}"
        )
