"""
GrocerHub Backend — Custom Exception Hierarchy
================================================

What:  Application-specific exceptions for the error scenarios of the
       marketplace (catalog sync, order placement, fulfilment, auth).
How:   Each exception carries a user-facing message and an optional context
       dict. Global exception handlers (registered in main.py) map every type
       to an HTTP status code and a structured JSON body.
Who:   Raised by services, feed adapters and auth dependencies.

Exception Hierarchy:
    GrocerHubError (base)
    ├── ValidationError            → 400 Bad Request
    ├── ConfigurationError         → 400 Bad Request (store not syncable)
    ├── InvalidTransitionError     → 400 Bad Request (driver status change)
    ├── AuthenticationError        → 401 Unauthorized
    ├── AuthorizationError         → 403 Forbidden
    ├── NotFoundError              → 404 Not Found
    ├── ConflictError              → 409 Conflict (concurrent status write)
    ├── FeedFetchError             → 500 Internal Server Error (sync aborted)
    │   └── CircuitBreakerOpenError → 503 Service Unavailable
    └── DatabaseError              → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class GrocerHubError(Exception):
    """
    Base exception for all GrocerHub application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional info; returned as `details` only by handlers
                  that choose to expose it
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(GrocerHubError):
    """
    Raised when client input fails a business rule.

    When:    Missing order fields, unavailable or unknown cart line,
             malformed coordinates.
    HTTP:    400 Bad Request
    """

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


class ConfigurationError(GrocerHubError):
    """
    Raised when a store cannot be synchronized because its external API
    connection info is incomplete (no base URL, or neither key nor credentials).

    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        message: str = "Store is not configured with API details for synchronization.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class InvalidTransitionError(GrocerHubError):
    """
    Raised when a driver requests a status change outside the driver
    transition table.

    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        source: str,
        target: str,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"Invalid status transition from '{source}' to '{target}'"
        ctx = context or {}
        ctx.update({"from": source, "to": target})
        super().__init__(message=message, context=ctx)
        self.source = source
        self.target = target


class AuthenticationError(GrocerHubError):
    """
    Raised when a request carries no bearer credential or an unknown one.

    HTTP:    401 Unauthorized
    """

    def __init__(
        self,
        message: str = "Not authorized, no valid token",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AuthorizationError(GrocerHubError):
    """
    Raised when the caller's role may not use a route, or the caller does not
    own the resource being read or mutated.

    HTTP:    403 Forbidden
    """

    def __init__(
        self,
        message: str = "Not authorized to access this resource",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(GrocerHubError):
    """
    Raised when a requested resource does not exist.

    When:    Unknown store, order, product, offering, driver, customer or user.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(GrocerHubError):
    """
    Raised when a compare-and-set write loses a race: the row changed between
    the read and the conditional update.

    HTTP:    409 Conflict (client may re-read and retry)
    """

    def __init__(
        self,
        message: str = "The resource was modified concurrently. Reload and try again.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class FeedFetchError(GrocerHubError):
    """
    Raised when a partner store's product feed cannot be fetched or parsed
    after all retries. Aborts the whole sync for that store.

    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "Could not fetch products from the store feed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class CircuitBreakerOpenError(FeedFetchError):
    """
    The provider's circuit is open, so the feed was not called at all.
    `recovery_time` is the cool-down left, in seconds (sent as Retry-After).

    HTTP:    503 Service Unavailable
    """

    def __init__(
        self,
        recovery_time: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Store feed is temporarily unavailable due to repeated failures. "
            f"Synchronization will be retried in approximately {recovery_time} seconds."
        )
        ctx = context or {}
        ctx["recovery_time"] = recovery_time
        super().__init__(message=message, context=ctx)
        self.recovery_time = recovery_time


class DatabaseError(GrocerHubError):
    """
    Raised when database operations fail unexpectedly.

    The message returned to the client is always generic; details are logged
    server-side only.

    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
