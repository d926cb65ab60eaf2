# =============================================================================
# core/models/imports.py - Bulk Import Schemas
# =============================================================================
# These models describe one import run and what gets stored about it:
# - ImportStatus: Outcome of a run (success / partial / error)
# - ImportRunResult: Immutable aggregate produced by the import executor
# - ImportHistoryRecord: Row of the supplier_import_history table
# - ImportPreviewResponse: Review-step payload (errors + image warnings)
#
# Error sets are plain dicts: row key -> ordered list of messages.
# =============================================================================

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

# Row key -> ordered list of human-readable messages
ValidationErrorSet = dict[str, list[str]]

# Supplier code -> ordered list of public image URLs
ImageMap = dict[str, list[str]]

# Key used for errors that are not attributable to a single row
GLOBAL_ERROR_KEY = "global"


class ImportStatus(str, Enum):
    """
    Outcome of an import run.

    - success: every row was created
    - partial: some rows created, some failed
    - error: nothing was created (validation gate or total failure)
    """
    SUCCESS = "success"
    PARTIAL = "partial"
    ERROR = "error"


def resolve_status(success_count: int, error_count: int) -> ImportStatus:
    """Derive the run status from its counters."""
    if error_count == 0:
        return ImportStatus.SUCCESS
    if success_count == 0:
        return ImportStatus.ERROR
    return ImportStatus.PARTIAL


class ImportRunResult(BaseModel):
    """
    Aggregate result of one import run.

    Created once by the import executor and never mutated afterwards.
    `errors` holds execution-time failures, or the validation errors that
    made the run refuse to write anything (validation_failed=True).
    """

    model_config = ConfigDict(frozen=True)

    total_rows: int = Field(..., ge=0, description="Rows in the spreadsheet")
    success_count: int = Field(default=0, ge=0, description="Suppliers created")
    error_count: int = Field(default=0, ge=0, description="Rows that failed")
    errors: ValidationErrorSet = Field(default_factory=dict)
    status: ImportStatus = Field(..., description="Overall outcome")
    validation_failed: bool = Field(
        default=False,
        description="True when the run was refused at the validation gate"
    )
    images_uploaded: int = Field(default=0, ge=0, description="Images stored")
    images_failed: int = Field(default=0, ge=0, description="Images that failed to upload")

    @property
    def succeeded(self) -> bool:
        return self.status == ImportStatus.SUCCESS


class ImportHistoryRecord(BaseModel):
    """
    Audit row stored in supplier_import_history.

    Example:
        {
            "id": "550e8400-...",
            "filename": "fornecedores.xlsx",
            "total_count": 120,
            "success_count": 118,
            "error_count": 2,
            "status": "partial",
            "errors": {"F010": ["import failed: ..."]},
            "imported_by": "660e8400-...",
            "imported_at": "2026-10-19T13:00:00Z"
        }
    """

    id: UUID | None = None
    filename: str = Field(..., min_length=1, max_length=255)
    total_count: int = Field(..., ge=0)
    success_count: int = Field(..., ge=0)
    error_count: int = Field(..., ge=0)
    status: ImportStatus
    errors: ValidationErrorSet = Field(default_factory=dict)
    imported_by: UUID | None = None
    imported_at: datetime | None = None


class ImportPreviewRow(BaseModel):
    """Compact view of one parsed row for the review table."""
    row_number: int
    row_key: str
    code: str
    name: str
    city: str
    state: str
    category_names: list[str]
    image_count: int = 0
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class ImportPreviewResponse(BaseModel):
    """
    Result of the review step (nothing has been written yet).

    is_importable is False as soon as any row carries an error;
    warnings never block the import.
    """
    filename: str
    total_rows: int
    rows: list[ImportPreviewRow]
    errors: ValidationErrorSet = Field(default_factory=dict)
    warnings: ValidationErrorSet = Field(default_factory=dict)
    is_importable: bool


class ImportSubmitResponse(BaseModel):
    """Response when an import run has been queued."""
    task_id: str
    status: str
    message: str
    total_rows: int


def result_to_history_payload(
    result: ImportRunResult,
    filename: str,
    imported_by: str | None,
    imported_at: datetime,
) -> dict[str, Any]:
    """Build the insert payload for supplier_import_history."""
    return {
        "filename": filename,
        "total_count": result.total_rows,
        "success_count": result.success_count,
        "error_count": result.error_count,
        "status": result.status.value,
        "errors": result.errors,
        "imported_by": imported_by,
        "imported_at": imported_at.isoformat(),
    }
