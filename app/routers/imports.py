# =============================================================================
# app/routers/imports.py - Bulk Supplier Import Endpoints
# =============================================================================
# Two-step import flow for administrators:
#   1. POST /imports/preview  - parse + validate, nothing is written
#   2. POST /imports          - stage files, run the import in a worker
#
# Plus the template download and the import history (with CSV error export).
# =============================================================================

import logging
from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Path, Query, UploadFile
from fastapi.responses import Response

from app.auth import AuthUser, require_admin
from app.config import settings
from app.exceptions import (
    ArchiveReadError,
    FileTooLargeError,
    ImportValidationError,
    InvalidFileTypeError,
    SpreadsheetParseError,
)
from core.models.imports import (
    ImportHistoryRecord,
    ImportPreviewResponse,
    ImportPreviewRow,
    ImportSubmitResponse,
    ValidationErrorSet,
)
from core.models.supplier import SupplierRow
from core.services.import_history_service import ImportHistoryService
from core.services.storage_service import StorageService
from core.services.supplier_service import SupplierService
from lib import images as image_archive
from lib.csv_export import errors_to_csv
from lib.spreadsheet import SpreadsheetReadError, build_template, read_supplier_spreadsheet
from lib.validation import find_missing_images, validate_rows

logger = logging.getLogger(__name__)

router = APIRouter()

ARCHIVE_EXTENSIONS = [".zip"]
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
TEMPLATE_FILENAME = "modelo_importacao_fornecedores.xlsx"


# =============================================================================
# Helper Functions
# =============================================================================

def _file_extension(filename: str) -> str:
    return "." + filename.rsplit(".", 1)[-1].lower() if "." in filename else ""


async def _read_upload(
    file: UploadFile,
    allowed: list[str],
    max_bytes: int,
    max_mb: int,
) -> tuple[str, bytes]:
    """Check extension and size of an upload and return (filename, content)."""
    filename = file.filename or ""

    if _file_extension(filename) not in allowed:
        raise InvalidFileTypeError(filename, allowed)

    content = await file.read()
    if len(content) > max_bytes:
        raise FileTooLargeError(len(content) / (1024 * 1024), max_mb)

    return filename, content


def _parse_spreadsheet(filename: str, content: bytes) -> list[SupplierRow]:
    try:
        return read_supplier_spreadsheet(content, filename)
    except SpreadsheetReadError as e:
        raise SpreadsheetParseError(filename, e.message, suggestion=e.suggestion)


def _archive_codes(filename: str, content: bytes | None) -> set[str]:
    if content is None:
        return set()
    try:
        return image_archive.list_archive_codes(content)
    except image_archive.ArchiveReadError as e:
        raise ArchiveReadError(filename, e.message)


def _review(
    rows: list[SupplierRow],
    image_codes: set[str],
) -> tuple[ValidationErrorSet, ValidationErrorSet]:
    """Validate rows against the current snapshot; returns (errors, warnings)."""
    snapshot = SupplierService.load_snapshot()
    errors = validate_rows(rows, snapshot.existing_codes, snapshot.category_index)
    warnings = find_missing_images(rows, image_codes)
    return errors, warnings


# =============================================================================
# Endpoints
# =============================================================================

@router.post("/preview", response_model=ImportPreviewResponse)
async def preview_import(
    spreadsheet: Annotated[UploadFile, File(description="Supplier spreadsheet (.xlsx, .xls, .csv)")],
    archive: Annotated[Optional[UploadFile], File(description="Optional ZIP of supplier images")] = None,
    user: AuthUser = Depends(require_admin),
):
    """
    Parse and validate a spreadsheet without writing anything.

    Returns every row with its errors (blocking) and image warnings
    (non-blocking). is_importable is False when any row has an error.
    """
    filename, content = await _read_upload(
        spreadsheet,
        settings.allowed_spreadsheet_extensions_list,
        settings.max_upload_size_bytes,
        settings.MAX_UPLOAD_SIZE_MB,
    )
    rows = _parse_spreadsheet(filename, content)

    archive_name, archive_content = "", None
    if archive is not None:
        archive_name, archive_content = await _read_upload(
            archive,
            ARCHIVE_EXTENSIONS,
            settings.max_archive_size_bytes,
            settings.MAX_ARCHIVE_SIZE_MB,
        )
    image_codes = _archive_codes(archive_name, archive_content)

    errors, warnings = _review(rows, image_codes)

    image_counts: dict[str, int] = {}
    if archive_content is not None:
        for image in image_archive.iter_archive_images(archive_content):
            image_counts[image.supplier_code] = image_counts.get(image.supplier_code, 0) + 1

    preview_rows = [
        ImportPreviewRow(
            row_number=row.row_number,
            row_key=row.row_key,
            code=row.code,
            name=row.name,
            city=row.city,
            state=row.state,
            category_names=row.category_names,
            image_count=image_counts.get(row.code.strip(), 0),
            errors=errors.get(row.row_key, []),
            warnings=warnings.get(row.row_key, []),
        )
        for row in rows
    ]

    logger.info(
        f"Previewed {filename} for {user.id}: {len(rows)} rows, "
        f"{len(errors)} with errors, {len(warnings)} with warnings"
    )

    return ImportPreviewResponse(
        filename=filename,
        total_rows=len(rows),
        rows=preview_rows,
        errors=errors,
        warnings=warnings,
        is_importable=bool(rows) and not errors,
    )


@router.post("", response_model=ImportSubmitResponse, status_code=202)
async def submit_import(
    spreadsheet: Annotated[UploadFile, File(description="Supplier spreadsheet (.xlsx, .xls, .csv)")],
    archive: Annotated[Optional[UploadFile], File(description="Optional ZIP of supplier images")] = None,
    user: AuthUser = Depends(require_admin),
):
    """
    Queue a bulk import.

    The spreadsheet is validated again here; any error rejects the whole
    import (422) before anything is staged. The worker re-validates once
    more against fresh data right before writing.

    Returns a task_id; poll GET /api/v1/tasks/{task_id} for progress.
    """
    filename, content = await _read_upload(
        spreadsheet,
        settings.allowed_spreadsheet_extensions_list,
        settings.max_upload_size_bytes,
        settings.MAX_UPLOAD_SIZE_MB,
    )
    rows = _parse_spreadsheet(filename, content)

    archive_name, archive_content = "", None
    if archive is not None:
        archive_name, archive_content = await _read_upload(
            archive,
            ARCHIVE_EXTENSIONS,
            settings.max_archive_size_bytes,
            settings.MAX_ARCHIVE_SIZE_MB,
        )
    image_codes = _archive_codes(archive_name, archive_content)

    errors, _ = _review(rows, image_codes)
    if errors:
        raise ImportValidationError(errors)

    spreadsheet_path = StorageService.upload_import_file(
        content,
        filename,
        content_type=spreadsheet.content_type or "application/octet-stream",
    )
    archive_path = None
    if archive_content is not None:
        archive_path = StorageService.upload_import_file(
            archive_content,
            archive_name,
            content_type="application/zip",
        )

    from workers.tasks import run_supplier_import

    task = run_supplier_import.delay(spreadsheet_path, filename, archive_path, str(user.id))
    logger.info(f"Queued import of {filename} ({len(rows)} rows) as task {task.id}")

    return ImportSubmitResponse(
        task_id=task.id,
        status="PENDING",
        message="Import queued. Use GET /api/v1/tasks/{task_id} to follow progress.",
        total_rows=len(rows),
    )


@router.get("/template")
async def download_template():
    """Download the .xlsx import template (header row + two examples)."""
    return Response(
        content=build_template(),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{TEMPLATE_FILENAME}"'},
    )


@router.get("/history", response_model=list[ImportHistoryRecord])
async def list_import_history(
    limit: Annotated[Optional[int], Query(ge=1, le=200, description="Max rows")] = None,
    user: AuthUser = Depends(require_admin),
):
    """List recent imports, newest first."""
    return ImportHistoryService.list_history(limit=limit)


@router.get("/history/{history_id}", response_model=ImportHistoryRecord)
async def get_import_history(
    history_id: Annotated[UUID, Path(description="Import history UUID")],
    user: AuthUser = Depends(require_admin),
):
    """Get one import with its per-row errors."""
    return ImportHistoryService.get_history(history_id)


@router.get("/history/{history_id}/errors.csv")
async def download_import_errors(
    history_id: Annotated[UUID, Path(description="Import history UUID")],
    user: AuthUser = Depends(require_admin),
):
    """Download the errors of one import as CSV (Código,Erro)."""
    record = ImportHistoryService.get_history(history_id)
    csv_text = errors_to_csv(record.get("errors") or {})

    return Response(
        content=csv_text,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="import_errors_{history_id}.csv"'},
    )
