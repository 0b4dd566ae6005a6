"""
Standardized Error Handling for the Dynamic Table CRUD API
Provides the domain exceptions raised by the storage layer and the
consistent HTTP error response format returned to clients
"""

from typing import Any

from fastapi import HTTPException, status
from pydantic import BaseModel


# Error type constants shared by the exceptions and the HTTP error bodies
class ErrorTypes:
    """Error type constants for consistent error responses."""

    # Validation errors (400)
    INVALID_REQUEST = "invalid_request"
    INVALID_INPUT = "invalid_input"
    TABLE_NOT_FOUND = "table_not_found"
    NO_PRIMARY_KEY = "no_primary_key"
    NO_VALID_COLUMNS = "no_valid_columns"

    # Client errors (4xx)
    NOT_FOUND = "not_found"

    # Server errors (5xx)
    INTERNAL_ERROR = "internal_error"


class CrudError(Exception):
    """Base class for errors raised while serving a table operation."""

    error_type: str = ErrorTypes.INTERNAL_ERROR

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class InvalidRequestError(CrudError):
    """The request is missing something required, such as the table name."""

    error_type = ErrorTypes.INVALID_REQUEST


class NotFoundError(CrudError):
    error_type = ErrorTypes.NOT_FOUND


class TableNotFoundError(NotFoundError):
    """The table or view does not exist, or reports no columns."""

    error_type = ErrorTypes.TABLE_NOT_FOUND


class RowNotFoundError(NotFoundError):
    """No row matches the requested primary key value."""

    error_type = ErrorTypes.NOT_FOUND


class NoPrimaryKeyError(CrudError):
    error_type = ErrorTypes.NO_PRIMARY_KEY


class NoValidColumnsError(CrudError):
    error_type = ErrorTypes.NO_VALID_COLUMNS


class InternalError(CrudError):
    """The store rejected or failed to run a statement."""

    error_type = ErrorTypes.INTERNAL_ERROR


class ErrorDetail(BaseModel):
    """Error detail structure for standardized error responses."""

    error: str  # Error type identifier (required)
    message: str  # Detailed technical message (required)


class StandardErrorResponse(BaseModel):
    """Standard error response format that matches frontend expectations."""

    message: str  # User-friendly message
    status: int  # HTTP status code
    details: ErrorDetail


def create_standard_http_exception(
    status_code: int,
    error_type: str,
    user_message: str,
    technical_message: str,
) -> HTTPException:
    """
    Create a standardized HTTPException with consistent error format.

    Args:
        status_code: HTTP status code
        error_type: Error type from ErrorTypes constants
        user_message: User-friendly message for frontend display
        technical_message: Detailed technical message for debugging

    Returns:
        HTTPException with standardized error format
    """
    detail: dict[str, Any] = {
        "message": user_message,
        "status": status_code,
        "details": {
            "error": error_type,
            "message": technical_message,
        },
    }

    return HTTPException(status_code=status_code, detail=detail)


def validation_error(
    error_type: str = ErrorTypes.INVALID_INPUT,
    message: str = "Request validation failed",
    user_message: str = "Invalid request data. Please check your input.",
) -> HTTPException:
    """Create a standardized 400 validation error."""
    return create_standard_http_exception(
        status_code=status.HTTP_400_BAD_REQUEST,
        error_type=error_type,
        user_message=user_message,
        technical_message=message,
    )


def not_found_error(
    error_type: str = ErrorTypes.NOT_FOUND,
    message: str = "Resource not found in database",
    user_message: str = "The requested resource was not found",
) -> HTTPException:
    """Create a standardized 404 not found error."""
    return create_standard_http_exception(
        status_code=status.HTTP_404_NOT_FOUND,
        error_type=error_type,
        user_message=user_message,
        technical_message=message,
    )


def server_error(
    error_type: str = ErrorTypes.INTERNAL_ERROR,
    message: str = "Internal server error",
    user_message: str = "An internal server error occurred. Please try again later.",
) -> HTTPException:
    """Create a standardized 500 server error."""
    return create_standard_http_exception(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_type=error_type,
        user_message=user_message,
        technical_message=message,
    )


def crud_error_to_http(error: CrudError) -> HTTPException:
    """
    Translate a storage-layer CrudError into the matching standardized HTTP error.

    Table resolution failures are client errors (400) because the table name
    is part of the request path; a missing row is a 404.
    """
    if isinstance(error, RowNotFoundError):
        return not_found_error(
            error_type=error.error_type,
            message=error.message,
            user_message="Item not found",
        )
    if isinstance(error, InternalError):
        return server_error(
            error_type=error.error_type,
            message=f"Internal server error: {error.message}",
        )
    return validation_error(
        error_type=error.error_type,
        message=error.message,
        user_message=error.message,
    )
