# =============================================================================
# workers/tasks.py - Celery Task Definitions
# =============================================================================
# Defines background tasks for the supplier directory.
#
# Tasks:
# - run_supplier_import: Download staged files, correlate images, import rows
# - rotate_trial_suppliers: Expire or rotate a trial user's supplier subset
# - refresh_active_trials: Periodic sweep fanning out rotate_trial_suppliers
# =============================================================================

import asyncio
import logging
from typing import Any

from celery import shared_task, current_task

logger = logging.getLogger(__name__)


# =============================================================================
# Task State Updates
# =============================================================================

def update_progress(current: int, total: int, message: str = "Processing..."):
    """
    Update task progress for polling.

    Args:
        current: Current step number
        total: Total steps
        message: Status message
    """
    if current_task:
        current_task.update_state(
            state="PROGRESS",
            meta={
                "current": current,
                "total": total,
                "percent": int((current / total) * 100) if total else 100,
                "message": message,
            }
        )


# =============================================================================
# Bulk Import Task
# =============================================================================

@shared_task(bind=True, name="workers.tasks.run_supplier_import")
def run_supplier_import(
    self,
    spreadsheet_path: str,
    filename: str,
    archive_path: str | None = None,
    user_id: str | None = None,
) -> dict[str, Any]:
    """
    Run a bulk supplier import from staged files.

    Pipeline:
    1. Download the spreadsheet (and image archive) from storage
    2. Parse the spreadsheet
    3. Upload archive images and correlate them to supplier codes
    4. Re-validate against fresh data and create suppliers one by one
    5. Record the run in supplier_import_history

    Args:
        spreadsheet_path: Staged spreadsheet path in IMPORT_FILES_BUCKET
        filename: Original spreadsheet filename (kept in the history)
        archive_path: Staged ZIP path, if images were provided
        user_id: Admin who submitted the import

    Returns:
        Dict with:
        - success: bool
        - status: success / partial / error
        - total_rows, success_count, error_count
        - errors: row key -> messages
        - images_uploaded, images_failed
        - history_id: supplier_import_history id (None if recording failed)
    """
    from core.services.import_history_service import ImportHistoryService
    from core.services.storage_service import StorageService
    from core.services.supplier_service import SupplierService
    from lib.images import correlate_images
    from lib.importer import ImportExecutor
    from lib.spreadsheet import read_supplier_spreadsheet

    logger.info(f"Running supplier import of {filename} for user {user_id}")

    staged = [spreadsheet_path] + ([archive_path] if archive_path else [])

    try:
        # Step 1-2: Load and parse (structural failures abort the run)
        update_progress(0, 100, "Reading spreadsheet...")
        content = StorageService.download_raw(spreadsheet_path)
        rows = read_supplier_spreadsheet(content, filename)

        # Step 3: Images
        image_map: dict[str, list[str]] = {}
        images_uploaded = images_failed = 0
        if archive_path:
            update_progress(0, 100, "Uploading images...")
            archive = StorageService.download_raw(archive_path)
            correlation = asyncio.run(correlate_images(archive, StorageService.upload_image))
            image_map = correlation.image_map
            images_uploaded = correlation.uploaded
            images_failed = correlation.failed

    except Exception as e:
        logger.exception(f"Import of {filename} aborted before any write: {e}")
        StorageService.delete_import_files(staged)
        return {
            "success": False,
            "status": "error",
            "filename": filename,
            "error": str(e),
        }

    # Step 4: Validate + create
    def on_progress(percent: int) -> None:
        update_progress(percent, 100, f"Importing suppliers ({percent}%)...")

    executor = ImportExecutor(SupplierService.load_snapshot, SupplierService.create_supplier)
    result = executor.run(
        rows,
        image_map=image_map,
        on_progress=on_progress,
        images_uploaded=images_uploaded,
        images_failed=images_failed,
    )

    # Step 5: Audit trail (best effort)
    record = ImportHistoryService.record(result, filename=filename, imported_by=user_id)
    StorageService.delete_import_files(staged)

    logger.info(
        f"Import of {filename} finished with status {result.status.value}: "
        f"{result.success_count}/{result.total_rows} created"
    )

    return {
        "success": result.succeeded,
        "filename": filename,
        "history_id": record.get("id") if record else None,
        **result.model_dump(mode="json"),
    }


# =============================================================================
# Trial Rotation Task
# =============================================================================

@shared_task(bind=True, name="workers.tasks.rotate_trial_suppliers")
def rotate_trial_suppliers(self, user_id: str) -> dict[str, Any]:
    """
    Keep a trial user's state current.

    Expires the trial if its end date has passed; otherwise rotates the
    allowed supplier subset when the last rotation is old enough.

    Args:
        user_id: User UUID

    Returns:
        Dict with trial_status and whether a rotation happened
    """
    from core.models.access import TrialStatus
    from core.services.trial_service import TrialService

    try:
        status = TrialService.refresh_status(user_id)
        if status is None:
            return {"success": False, "error": f"Profile not found: {user_id}"}

        rotated = False
        if status == TrialStatus.ACTIVE:
            rotated = TrialService.rotate_if_due(user_id)

        return {
            "success": True,
            "user_id": user_id,
            "trial_status": status.value,
            "rotated": rotated,
        }

    except Exception as e:
        logger.exception(f"Trial rotation failed for user {user_id}: {e}")
        return {"success": False, "error": str(e)}


@shared_task(bind=True, name="workers.tasks.refresh_active_trials")
def refresh_active_trials(self) -> dict[str, Any]:
    """
    Queue rotate_trial_suppliers for every active trial.

    Scheduled hourly by celery beat (see CeleryConfig.beat_schedule).

    Returns:
        Dict with the number of users queued
    """
    from lib.supabase_client import SupabaseClient

    try:
        user_ids = SupabaseClient.fetch_active_trial_user_ids()
    except Exception as e:
        logger.exception(f"Trial sweep could not list active trials: {e}")
        return {"success": False, "error": str(e)}

    for user_id in user_ids:
        rotate_trial_suppliers.delay(user_id)

    logger.info(f"Trial sweep queued {len(user_ids)} users")
    return {"success": True, "queued": len(user_ids)}
