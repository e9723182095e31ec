"""
Custom domain exceptions for consistent error handling.

These exceptions are mapped to HTTP status codes by the exception handlers
in main.py. Every error carries a stable machine-readable ``code`` and a
human-readable ``message``.
"""
from fastapi import HTTPException, status


class DomainError(HTTPException):
    """Base class for all domain-specific errors."""
    code = "domain_error"

    def __init__(self, message: str, status_code: int = status.HTTP_400_BAD_REQUEST, details: dict | None = None):
        super().__init__(status_code=status_code, detail=message)
        self.message = message
        self.details = details or {}


class ValidationError(DomainError):
    """Malformed input (400)."""
    code = "validation_error"

    def __init__(self, message: str, field: str | None = None, details: dict | None = None):
        if field:
            message = f"Validation error on {field}: {message}"
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST, details=details)


class UnauthorizedError(DomainError):
    """Missing or invalid credentials (401)."""
    code = "unauthorized"

    def __init__(self, message: str = "Unauthorized", details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_401_UNAUTHORIZED, details=details)


class AuthorizationError(DomainError):
    """Actor role not permitted for the requested action (403)."""
    code = "authorization_error"

    def __init__(self, message: str = "Permission denied", details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_403_FORBIDDEN, details=details)


class AdminCannotConfirmDeliveryError(AuthorizationError):
    code = "admin_cannot_confirm_delivery"

    def __init__(self, order_id: int):
        super().__init__(
            "Admin cannot mark an order as delivered. "
            "Only the customer can confirm delivery after receiving the order.",
            details={"order_id": order_id},
        )


class NotFoundError(DomainError):
    """Resource missing or not owned by the caller (404)."""
    code = "not_found"

    def __init__(self, resource_type: str, identifier: str, details: dict | None = None):
        message = f"{resource_type} not found: {identifier}"
        super().__init__(message, status_code=status.HTTP_404_NOT_FOUND, details=details)


class ConflictError(DomainError):
    """Request conflicts with the current state of the resource (409)."""
    code = "conflict"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_409_CONFLICT, details=details)


class OrderTerminalError(ConflictError):
    code = "order_terminal"

    def __init__(self, order_id: int, current_status: str):
        super().__init__(
            f"Order {order_id} is already {current_status}; no further status changes are allowed.",
            details={"order_id": order_id, "current_status": current_status},
        )


class InvalidTransitionError(ConflictError):
    code = "invalid_transition"

    def __init__(self, order_id: int, current_status: str, requested_status: str):
        super().__init__(
            f"Order {order_id} cannot move from {current_status} to {requested_status}.",
            details={
                "order_id": order_id,
                "current_status": current_status,
                "requested_status": requested_status,
            },
        )


class NotDeletableError(ConflictError):
    code = "not_deletable"

    def __init__(self, order_id: int, current_status: str):
        super().__init__(
            "Only delivered or cancelled orders can be deleted.",
            details={"order_id": order_id, "current_status": current_status},
        )


class ConcurrentModificationError(ConflictError):
    code = "concurrent_modification"

    def __init__(self, order_id: int):
        super().__init__(
            f"Order {order_id} was modified by another request. Reload and try again.",
            details={"order_id": order_id},
        )


class TransientError(DomainError):
    """Store unavailable; the caller may retry (503)."""
    code = "transient_error"

    def __init__(self, message: str = "Order store temporarily unavailable", details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_503_SERVICE_UNAVAILABLE, details=details)
