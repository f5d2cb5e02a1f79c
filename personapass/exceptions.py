"""Custom exception hierarchy for PersonaPass.

Provides structured error types that the centralized error handler
translates into the ``{success: false, error, message}`` JSON envelope.
"""

from __future__ import annotations


class PersonaPassError(Exception):
    """Base exception for all PersonaPass errors."""

    status_code: int = 500
    error_type: str = "internal_error"

    def __init__(self, message: str = "An internal error occurred") -> None:
        self.message = message
        super().__init__(message)


class ValidationError(PersonaPassError):
    """Missing or malformed request input."""

    status_code = 400
    error_type = "validation_error"


class NotSetUpError(PersonaPassError):
    """A precondition is missing (e.g. TOTP was never set up for the account)."""

    status_code = 400
    error_type = "not_set_up"


class InvalidCodeError(PersonaPassError):
    """A one-time code did not match."""

    status_code = 400
    error_type = "invalid_code"


class RateLimitError(PersonaPassError):
    """Rate limit exceeded."""

    status_code = 429
    error_type = "rate_limit_exceeded"

    def __init__(
        self,
        message: str = "Too many requests, please try again later.",
        retry_after: int = 1,
    ) -> None:
        self.retry_after = retry_after
        super().__init__(message)


class UpstreamUnavailableError(PersonaPassError):
    """An external dependency (PersonaChain RPC) did not answer."""

    status_code = 503
    error_type = "upstream_unavailable"


class InternalError(PersonaPassError):
    """Uncaught failure inside a handler."""

    status_code = 500
    error_type = "internal_error"
