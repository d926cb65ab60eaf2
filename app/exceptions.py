# =============================================================================
# app/exceptions.py - Custom Exception Handlers
# =============================================================================
# Centralized exception handling for the API.
# Following the principle: "Errors should tell HOW to fix, not just WHAT failed."
# =============================================================================

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse


class SupplierHubException(Exception):
    """
    Base exception for SupplierHub API.

    All custom exceptions inherit from this class.
    Provides structured error responses with actionable suggestions.
    """

    def __init__(
        self,
        message: str,
        code: str = "SUPPLIERHUB_ERROR",
        status_code: int = 500,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.suggestion = suggestion
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response dict."""
        result = {
            "detail": self.message,
            "code": self.code,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Upload Exceptions
# =============================================================================

class InvalidFileTypeError(SupplierHubException):
    """Raised when uploaded file type is not allowed."""

    def __init__(self, filename: str, allowed: list[str]):
        super().__init__(
            message=f"Invalid file type: {filename}",
            code="INVALID_FILE_TYPE",
            status_code=400,
            suggestion=f"Only these file types are supported: {', '.join(allowed)}",
            details={"filename": filename, "allowed_types": allowed}
        )


class FileTooLargeError(SupplierHubException):
    """Raised when uploaded file exceeds size limit."""

    def __init__(self, size_mb: float, max_mb: int):
        super().__init__(
            message=f"File too large: {size_mb:.1f}MB (max: {max_mb}MB)",
            code="FILE_TOO_LARGE",
            status_code=413,
            suggestion=f"Upload a file smaller than {max_mb}MB",
            details={"size_mb": size_mb, "max_mb": max_mb}
        )


class SpreadsheetParseError(SupplierHubException):
    """Raised when the supplier spreadsheet is structurally unreadable."""

    def __init__(self, filename: str, error: str, suggestion: str | None = None):
        super().__init__(
            message=f"Failed to read spreadsheet: {error}",
            code="SPREADSHEET_PARSE_ERROR",
            status_code=400,
            suggestion=suggestion or "Download the template from GET /api/v1/imports/template and fill it in",
            details={"filename": filename, "error": error}
        )


class ArchiveReadError(SupplierHubException):
    """Raised when the image archive is not a readable ZIP file."""

    def __init__(self, filename: str, error: str):
        super().__init__(
            message=f"Failed to read image archive: {error}",
            code="ARCHIVE_READ_ERROR",
            status_code=400,
            suggestion="Upload a .zip file containing images named <code>-<suffix>.<ext>",
            details={"filename": filename, "error": error}
        )


# =============================================================================
# Import Exceptions
# =============================================================================

class ImportValidationError(SupplierHubException):
    """Raised when an import is submitted with rows that fail validation."""

    def __init__(self, errors: dict[str, list[str]]):
        super().__init__(
            message=f"{len(errors)} row(s) failed validation; nothing was imported",
            code="IMPORT_VALIDATION_FAILED",
            status_code=422,
            suggestion="Fix the listed rows and submit the spreadsheet again",
            details={"errors": errors}
        )


class ImportHistoryNotFoundError(SupplierHubException):
    """Raised when an import history ID doesn't exist."""

    def __init__(self, history_id: str):
        super().__init__(
            message=f"Import history not found: {history_id}",
            code="IMPORT_HISTORY_NOT_FOUND",
            status_code=404,
            suggestion="List recent imports with GET /api/v1/imports/history",
            details={"history_id": history_id}
        )


# =============================================================================
# Access Exceptions
# =============================================================================

class AdminRequiredError(SupplierHubException):
    """Raised when a non-admin user calls an admin-only endpoint."""

    def __init__(self, user_id: str):
        super().__init__(
            message="This operation requires an administrator account",
            code="ADMIN_REQUIRED",
            status_code=403,
            suggestion="Sign in with an account whose profile role is 'admin'",
            details={"user_id": user_id}
        )


# =============================================================================
# Storage Exceptions
# =============================================================================

class StorageUploadError(SupplierHubException):
    """Raised when file upload to storage fails."""

    def __init__(self, error: str):
        super().__init__(
            message=f"Failed to upload file to storage: {error}",
            code="STORAGE_UPLOAD_ERROR",
            status_code=500,
            suggestion="Try again later or contact support if the issue persists",
            details={"error": error}
        )


class StorageDownloadError(SupplierHubException):
    """Raised when file download from storage fails."""

    def __init__(self, path: str, error: str):
        super().__init__(
            message=f"Failed to download file from storage: {error}",
            code="STORAGE_DOWNLOAD_ERROR",
            status_code=500,
            suggestion="Try again later or contact support if the issue persists",
            details={"path": path, "error": error}
        )


# =============================================================================
# Exception Handlers
# =============================================================================

async def supplierhub_exception_handler(
    request: Request,
    exc: SupplierHubException
) -> JSONResponse:
    """
    Convert SupplierHubException to JSON response.

    Returns structured error with:
    - detail: Human-readable message
    - code: Machine-readable error code
    - suggestion: How to fix (if available)
    - details: Additional context
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def validation_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """
    Handle Pydantic validation errors.

    Converts validation errors to user-friendly messages.
    """
    return JSONResponse(
        status_code=422,
        content={
            "detail": "Validation error",
            "code": "VALIDATION_ERROR",
            "errors": str(exc)
        }
    )
