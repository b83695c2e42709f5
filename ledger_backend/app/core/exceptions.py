"""
Custom exceptions and error handlers for consistent error responses.

Provides standardized error codes and global exception handlers.
Posting engine failures carry machine-readable reason codes
(ALREADY_POSTED, NOTHING_TO_POST, ACCOUNT_NOT_FOUND, PERIOD_CLOSED, ...).
"""

import logging
from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from typing import Any, Dict

logger = logging.getLogger("ledger.errors")


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class InsufficientPermissionsError(AppException):
    """Raised when user doesn't have permission to perform an action."""

    def __init__(self, message: str = "Insufficient permissions", details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_PERM_001",
            status_code=status.HTTP_403_FORBIDDEN,
            details=details
        )


class ResourceNotFoundError(AppException):
    """Raised when requested resource is not found."""

    def __init__(self, resource: str, resource_id: Any = None):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with ID {resource_id} not found"
        super().__init__(
            message=message,
            error_code="ERR_NOT_FOUND_001",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "id": resource_id}
        )


class AuthenticationError(AppException):
    """Raised for authentication failures."""

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(
            message=message,
            error_code="ERR_AUTH_001",
            status_code=status.HTTP_401_UNAUTHORIZED
        )


class BusinessRuleError(AppException):
    """Raised when a request violates a bookkeeping rule."""

    def __init__(self, message: str, error_code: str = "BUSINESS_RULE_VIOLATION", details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details
        )


# Posting engine errors

class AlreadyPostedError(BusinessRuleError):
    """Entries in the requested scope have already been posted."""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(message, error_code="ALREADY_POSTED", details=details)


class BalanceAlreadyPostedError(BusinessRuleError):
    """Journal entries are reflected in balances; unpost the balance first."""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(message, error_code="BALANCE_ALREADY_POSTED", details=details)


class NothingToPostError(BusinessRuleError):
    """No pending entries exist in the requested scope."""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(message, error_code="NOTHING_TO_POST", details=details)


class NothingToUnpostError(BusinessRuleError):
    """No posted entries exist in the requested scope."""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(message, error_code="NOTHING_TO_UNPOST", details=details)


class PeriodClosedError(BusinessRuleError):
    """The fiscal year has been closed and is immutable."""

    def __init__(self, year: str):
        super().__init__(
            f"Sisa Hasil Usaha for year {year} has been closed and cannot be modified",
            error_code="PERIOD_CLOSED",
            details={"year": year}
        )


class AccountNotFoundError(AppException):
    """A referenced account does not exist (or is soft-deleted)."""

    def __init__(self, kind: str, account_number: str = None, message: str = None):
        if message is None:
            message = f"{kind} account {account_number} not found"
        super().__init__(
            message=message,
            error_code="ACCOUNT_NOT_FOUND",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"account_kind": kind, "account_number": account_number}
        )


class InvalidAmountError(AppException):
    """Monetary input is not a finite number (or is negative where forbidden)."""

    def __init__(self, value: Any, reason: str = "not a finite number"):
        super().__init__(
            message=f"Invalid amount {value!r}: {reason}",
            error_code="INVALID_AMOUNT",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"value": str(value)}
        )


class InvalidDateError(AppException):
    """Date input does not match the operation's expected format."""

    def __init__(self, value: Any, expected_format: str):
        super().__init__(
            message=f"Invalid date {value!r}, expected format {expected_format}",
            error_code="INVALID_DATE",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"value": str(value), "expected_format": expected_format}
        )


class TransientStoreError(AppException):
    """Store kept failing transiently after all retry attempts."""

    def __init__(self, attempts: int, cause: Exception):
        super().__init__(
            message=f"Database temporarily unavailable after {attempts} attempts",
            error_code="TRANSIENT_STORE_FAILURE",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            details={"attempts": attempts, "cause": type(cause).__name__}
        )


# Global Exception Handlers

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for custom application exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "message": exc.message,
            "details": exc.details
        }
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException with standardized format."""
    # Map status code to error code
    error_code_map = {
        400: "ERR_BAD_REQUEST",
        401: "ERR_UNAUTHORIZED",
        403: "ERR_FORBIDDEN",
        404: "ERR_NOT_FOUND",
        500: "ERR_INTERNAL_SERVER"
    }

    error_code = error_code_map.get(exc.status_code, "ERR_UNKNOWN")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": error_code,
            "message": exc.detail,
            "details": {}
        },
        headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for Pydantic validation errors."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error_code": "ERR_VALIDATION",
            "message": "Validation error",
            "details": {
                "errors": [
                    {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
                    for err in exc.errors()
                ]
            }
        }
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions."""
    logger.exception("Unhandled exception: %s", type(exc).__name__)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error_code": "ERR_INTERNAL_SERVER",
            "message": "An internal server error occurred",
            "details": {}
        }
    )
