"""
Akademi Backend — Custom Exception Hierarchy
==============================================

What:  Application-specific exceptions for each error scenario the API reports.
How:   Each exception carries a message and an optional context dict.
       Handlers registered in main.py turn them into JSON error responses.
Who:   Raised by the connection manager, services and role gates.

Exception Hierarchy:
    AkademiError (base)
    ├── StoreUnavailableError      → 503 Service Unavailable (retry later)
    ├── ValidationError            → 400 Bad Request
    │   └── InvalidIdentifierError → 400 Bad Request (malformed ObjectId)
    ├── AuthorizationError         → 403 Forbidden
    ├── PaymentRejectedError       → 400 Bad Request (provider message verbatim)
    ├── PaymentNotConfiguredError  → 500 Internal Server Error
    └── DatabaseError              → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class AkademiError(Exception):
    """
    Base exception for all Akademi application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, returned only where a handler says so)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class StoreUnavailableError(AkademiError):
    """
    Raised when the document store has not (yet) produced a connection.

    The condition is retryable: the next request triggers a new connection
    attempt. Mapped to 503 with a Retry-After header.
    """

    def __init__(
        self,
        message: str = (
            "The scholarship database is establishing its connection. "
            "Please retry in a few seconds."
        ),
        retry_after: int = 5,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class ValidationError(AkademiError):
    """Raised when client input fails a business rule (bad role, bad price)."""

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class InvalidIdentifierError(ValidationError):
    """
    Raised when a path identifier is not a valid ObjectId.

    Surfaced as a client error; a malformed id never reaches the store.
    """

    def __init__(
        self,
        resource: str = "resource",
        identifier: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"'{identifier}' is not a valid {resource} identifier"
        ctx = context or {}
        ctx["resource"] = resource
        super().__init__(message=message, field="id", context=ctx)
        self.identifier = identifier


class AuthorizationError(AkademiError):
    """Raised by the role gates when the caller's role is absent or insufficient."""

    def __init__(
        self,
        message: str = "Access denied",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PaymentRejectedError(AkademiError):
    """
    Raised when the payment provider refuses a charge intent.

    The provider's own message is kept verbatim so the checkout UI can show it.
    """

    def __init__(
        self,
        message: str = "The payment provider rejected the request",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PaymentNotConfiguredError(AkademiError):
    """Raised when no payment provider secret key is configured."""

    def __init__(
        self,
        message: str = "Payments are not configured on this server.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(AkademiError):
    """
    Raised when a store operation fails unexpectedly.

    The message returned to the client is generic; driver details are
    logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
