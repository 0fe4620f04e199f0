"""
JunkHub Backend — Custom Exception Hierarchy
==============================================

What:  Application-specific exceptions for every failure a request can hit.
How:   Each exception carries a user-facing message, a machine-readable code
       and an optional context dict. Global exception handlers (registered in
       main.py) translate them into JSON error responses.
Who:   Raised by the auth layer and services; caught by global handlers.

Exception Hierarchy:
    MarketplaceError (base)
    ├── UnauthenticatedError        → 401 (missing/invalid/stale credential)
    ├── ForbiddenError              → 403 (wrong role, not the owner)
    │   └── PendingApprovalError    → 403 (owner awaiting admin approval)
    ├── NotFoundError               → 404
    ├── ValidationError             → 400 (field-level input problems)
    ├── BusinessRuleViolation       → 400
    │   ├── InsufficientStockError
    │   ├── InvalidStateError
    │   ├── AlreadyConfirmedError
    │   └── DuplicateEmailError
    ├── RateLimitExceededError      → 429
    └── DatabaseError               → 500
"""

from typing import Any, Dict, List, Optional


class MarketplaceError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        code:     Stable machine-readable identifier
        context:  Additional debug info (logged, never returned to the client)
    """

    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
        code: Optional[str] = None,
    ):
        self.message = message
        self.context = context or {}
        if code:
            self.code = code
        super().__init__(self.message)

    def extra(self) -> Dict[str, Any]:
        """Additional public fields merged into the error response body."""
        return {}


class UnauthenticatedError(MarketplaceError):
    """No credential, a bad credential, or a credential for a deleted account."""

    status_code = 401
    code = "UNAUTHENTICATED"

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ForbiddenError(MarketplaceError):
    """
    The caller is authenticated but may not perform this operation.

    Raised for role mismatches ("Owner access required") and ownership
    mismatches ("Access denied").
    """

    status_code = 403
    code = "FORBIDDEN"

    def __init__(
        self,
        message: str = "Access denied",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PendingApprovalError(ForbiddenError):
    """An owner account exists but an admin has not approved it yet."""

    code = "PENDING_APPROVAL"

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="Your account is pending approval.", context=context)


class NotFoundError(MarketplaceError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing rows; services convert that None into
    this exception so the handler can answer 404.
    """

    status_code = 404
    code = "NOT_FOUND"

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
        message: Optional[str] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = str(resource_id)
        super().__init__(message=message or f"{resource} not found", context=ctx)
        self.resource = resource


class ValidationError(MarketplaceError):
    """
    Raised when client input fails validation outside pydantic.

    `details` is a list of {"field": ..., "message": ...} entries, the same
    shape the request-validation handler produces.
    """

    status_code = 400
    code = "VALIDATION_FAILED"

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        details: Optional[List[Dict[str, str]]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field
        self.details = details or ([{"field": field, "message": message}] if field else [])

    def extra(self) -> Dict[str, Any]:
        return {"details": self.details} if self.details else {}


class BusinessRuleViolation(MarketplaceError):
    """A well-formed request that the current state of the data does not allow."""

    status_code = 400
    code = "BUSINESS_RULE_VIOLATION"


class InsufficientStockError(BusinessRuleViolation):
    """An order line asks for more units than the product has in stock."""

    code = "INSUFFICIENT_STOCK"

    def __init__(
        self,
        product_name: str,
        requested: int,
        available: int,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx.update(product=product_name, requested=requested, available=available)
        super().__init__(message=f"Insufficient stock for {product_name}", context=ctx)
        self.product_name = product_name
        self.requested = requested
        self.available = available


class InvalidStateError(BusinessRuleViolation):
    """The resource is in a state that does not permit the requested transition."""

    code = "INVALID_STATE"


class AlreadyConfirmedError(BusinessRuleViolation):
    """The order already has a receipt; the existing receipt is returned."""

    code = "ALREADY_CONFIRMED"

    def __init__(self, receipt_number: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="Order has already been confirmed", context=context)
        self.receipt_number = receipt_number

    def extra(self) -> Dict[str, Any]:
        return {"receiptNumber": self.receipt_number}


class DuplicateEmailError(BusinessRuleViolation):
    """Registration with an email already taken by an account of the same kind."""

    code = "DUPLICATE_EMAIL"

    def __init__(self, email: str, context: Optional[Dict[str, Any]] = None):
        ctx = context or {}
        ctx["email"] = email
        super().__init__(message="Email already registered", context=ctx)


class DatabaseError(MarketplaceError):
    """
    Raised when database operations fail unexpectedly.

    The message returned to the client is always generic; detailed error info
    is logged server-side only.
    """

    status_code = 500
    code = "DATABASE_ERROR"

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(MarketplaceError):
    """Raised when a client exceeds the per-IP request rate limit."""

    status_code = 429
    code = "RATE_LIMITED"

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after

    def extra(self) -> Dict[str, Any]:
        return {"retry_after": self.retry_after}


def error_body(exc: MarketplaceError, request_id: str = "") -> Dict[str, Any]:
    """The JSON error body shared by exception handlers and middleware."""
    return {"error": exc.message, "code": exc.code, "request_id": request_id, **exc.extra()}
