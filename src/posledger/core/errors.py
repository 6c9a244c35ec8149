"""Custom exceptions and error response schemas."""

from typing import Any, Optional

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Standardized error response."""

    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[dict[str, Any]] = Field(None, description="Additional context")


class AppError(Exception):
    """Base exception for all app-level errors."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_response(self) -> ErrorDetail:
        """Convert to API response schema."""
        return ErrorDetail(
            code=self.code,
            message=self.message,
            details=self.details if self.details else None,
        )


class ValidationError(AppError):
    """Raised when input is malformed or out of range."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            code="VALIDATION_ERROR",
            message=message,
            status_code=422,
            details=details,
        )


class NotFoundError(AppError):
    """Raised when resource doesn't exist or lives in another store."""

    def __init__(self, resource: str, resource_id: str):
        super().__init__(
            code="NOT_FOUND",
            message=f"{resource} with ID {resource_id} not found",
            status_code=404,
            details={"resource": resource, "resource_id": resource_id},
        )


class ConflictError(AppError):
    """Raised when resource already exists or operation conflicts."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            code="CONFLICT",
            message=message,
            status_code=409,
            details=details,
        )


class AlreadySettledError(AppError):
    """Raised when paying an instrument whose balance is already zero."""

    def __init__(self, resource: str, resource_id: str):
        super().__init__(
            code="ALREADY_SETTLED",
            message=f"{resource} {resource_id} is already paid in full",
            status_code=409,
            details={"resource": resource, "resource_id": resource_id},
        )


class AlreadyClosedError(AppError):
    """Raised when closing a shift that is no longer open."""

    def __init__(self, shift_id: str):
        super().__init__(
            code="ALREADY_CLOSED",
            message=f"Shift {shift_id} is already closed",
            status_code=409,
            details={"resource": "Shift", "resource_id": shift_id},
        )


class AlreadyReceivedError(AppError):
    """Raised when receiving a purchase order a second time."""

    def __init__(self, purchase_order_id: str):
        super().__init__(
            code="ALREADY_RECEIVED",
            message=f"Purchase order {purchase_order_id} was already received",
            status_code=409,
            details={"resource": "PurchaseOrder", "resource_id": purchase_order_id},
        )


class NoOpenShiftError(AppError):
    """Raised when an operation needs an open shift and the store has none."""

    def __init__(self, store_id: str):
        super().__init__(
            code="NO_OPEN_SHIFT",
            message="Cash register is closed. Open a shift first.",
            status_code=409,
            details={"store_id": store_id},
        )


class UnauthorizedError(AppError):
    """Raised when the tenant context is missing."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(
            code="UNAUTHORIZED",
            message=message,
            status_code=401,
        )


class InternalError(AppError):
    """Raised on unexpected failures; the message never carries storage details."""

    def __init__(self, message: str = "Internal error", details: Optional[dict] = None):
        super().__init__(
            code="INTERNAL_ERROR",
            message=message,
            status_code=500,
            details=details,
        )
