"""
Application errors and the shared JSON error body.

Services raise `AppError` subclasses; the handlers registered in `main.py`
turn them into `{"success": false, "error": ..., "status_code": ...}`.
"""
import logging
from typing import Any
from fastapi import HTTPException
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base application error. Subclasses pick the HTTP status and a fallback message."""
    status_code = 500
    default_message = "Something went wrong on our end. Please try again later."

    def __init__(self, message: str | None = None, details: dict | None = None, status_code: int | None = None):
        self.message = message or self.default_message
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    default_message = "Please check your input and try again."


class NotFoundError(AppError):
    status_code = 404
    default_message = "Resource not found"


class ForbiddenError(AppError):
    status_code = 403
    default_message = "Access forbidden"


class ConflictError(AppError):
    """Duplicate record or an action the record's current state does not allow."""
    status_code = 409
    default_message = "This record was changed by another request."


class FileUploadError(AppError):
    """Rejected upload. `details["code"]` names the failed check."""
    status_code = 400
    default_message = "Failed to upload file. Please try again."


class StorageError(AppError):
    """Object storage or image host unreachable or misconfigured."""
    status_code = 502
    default_message = "File storage is temporarily unavailable"


# User-friendly error messages
ERROR_MESSAGES = {
    # Authentication
    "user_not_found": "No account found with this email address.",
    "wrong_password": "Incorrect password.",
    "email_exists": "An account with this email already exists.",
    "account_disabled": "This account has been disabled. Please contact support.",
    "session_expired": "Your session has expired. Please login again.",
    "invalid_reset_token": "This password reset link is invalid or has expired.",
    "invalid_verification_token": "This verification link is invalid or has expired.",

    # File uploads
    "invalid_file_type": "Invalid file type.",

    # Companies
    "company_not_found": "Company not found.",
    "company_forbidden": "You can only manage your own companies.",

    # Jobs
    "job_not_found": "Job posting not found or has been removed.",
    "job_closed": "This job posting is no longer accepting applications.",
    "job_forbidden": "You can only manage your own jobs.",
    "already_applied": "You have already applied to this job.",
    "invalid_job_data": "Job information is incomplete. Please fill in all required fields.",

    # Applications
    "application_not_found": "Application not found. It may have been withdrawn.",
    "no_resume": "Please upload a resume before applying to jobs.",
    "student_not_found": "Student profile not found",
    "cover_letter_too_short": "Cover letter must be at least 50 characters long",
    "application_reviewed": "Cannot delete application that has been reviewed",
    "withdraw_forbidden": "You are not authorized to delete this application",
    "review_forbidden": "You are not authorized to update this application",

    # Admin
    "user_missing": "User not found.",

    # General
    "unauthorized": "Please login to access this feature.",
    "forbidden": "You don't have permission to access this resource.",
    "server_error": "Something went wrong on our end. Please try again later.",
    "database_error": "Database connection issue. Please try again later.",
    "validation_error": "Please check your input and try again.",
}


def get_error_message(error_key: str, default: str | None = None) -> str:
    """Get a user-friendly error message."""
    return ERROR_MESSAGES.get(error_key, default or ERROR_MESSAGES["server_error"])


# Substrings of driver error text, checked in order.
_DB_ERROR_STATUS = (
    (("duplicate", "unique"), 409, "This record already exists. Please check your input."),
    (("foreign key",), 400, "Invalid reference. The related record may have been deleted."),
    (("connection", "operational"), 503, ERROR_MESSAGES["database_error"]),
)


def handle_database_error(error: Exception, operation: str = "") -> HTTPException:
    """Map a failed write to an HTTPException the client can act on."""
    logger.error("Database error during %s: %s", operation, error)
    text = str(error).lower()
    for needles, status, detail in _DB_ERROR_STATUS:
        if any(n in text for n in needles):
            return HTTPException(status_code=status, detail=detail)
    return HTTPException(status_code=500, detail=ERROR_MESSAGES["server_error"])


def create_error_response(status_code: int, message: str, details: dict | None = None) -> JSONResponse:
    content: dict[str, Any] = {"success": False, "error": message, "status_code": status_code}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)
