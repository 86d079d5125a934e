# backend/tutorbook/core/exceptions.py
"""
Domain-specific exceptions for the Tutorbook reservation engine.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
Engine errors carry enough context (schedule id, date, payment reference)
in ``details`` to support manual reconciliation.
"""

from datetime import date
from typing import Any, Dict, Optional, Union

from fastapi import HTTPException, status

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when business validation fails (bad date, malformed window)."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    status_code = HTTP_422_UNPROCESSABLE


class UnauthorizedException(DomainException):
    """Raised when the acting user cannot be resolved."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


# Reservation engine exceptions


def booking_context(
    schedule_id: Optional[str] = None,
    scheduled_date: Optional[Union[date, str]] = None,
    payment_reference: Optional[str] = None,
    **extra: Any,
) -> Dict[str, Any]:
    """Build the standard ``details`` payload for reservation errors."""
    context: Dict[str, Any] = {}
    if schedule_id is not None:
        context["schedule_id"] = schedule_id
    if scheduled_date is not None:
        context["scheduled_date"] = (
            scheduled_date.isoformat() if isinstance(scheduled_date, date) else scheduled_date
        )
    if payment_reference is not None:
        context["payment_reference"] = payment_reference
    context.update({k: v for k, v in extra.items() if v is not None})
    return context


class AvailabilityConflictException(ConflictException):
    """Raised when capacity for a date was lost to a concurrent commit."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "This date is no longer available. Please choose another date.",
            code="AVAILABILITY_CONFLICT",
            details=details or {},
        )


class PaymentDeclinedException(DomainException):
    """Raised when the payment processor declines the authorization."""

    status_code = status.HTTP_402_PAYMENT_REQUIRED

    def __init__(
        self,
        reason: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.reason = reason or "Your payment was declined."
        super().__init__(
            message=self.reason,
            code="PAYMENT_DECLINED",
            details=details or {},
        )


class PaymentIndeterminateException(DomainException):
    """
    Raised when the processor outcome is unknown (network error, timeout,
    pending action). The intent stays usable for a retry.
    """

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    retryable = True

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "We could not confirm your payment yet. Please try again.",
            code="PAYMENT_INDETERMINATE",
            details={**(details or {}), "retryable": True},
        )

    def to_http_exception(self) -> HTTPException:
        exc = super().to_http_exception()
        exc.headers = {"Retry-After": "2"}
        return exc


class CommitReconciliationException(ServiceException):
    """
    Payment succeeded but the seat commit failed.

    Never surfaced to the student; logged and recorded for operator follow-up.
    """

    def __init__(
        self,
        message: str,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code="COMMIT_RECONCILIATION_REQUIRED",
            details=details or {},
        )


class InsufficientPointsException(BusinessRuleException):
    """Raised when a redemption exceeds the current loyalty balance."""

    def __init__(self, requested: int, available: int):
        super().__init__(
            message=f"Cannot redeem {requested} points; only {available} available",
            code="INSUFFICIENT_POINTS",
            details={"requested": requested, "available": available},
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """
