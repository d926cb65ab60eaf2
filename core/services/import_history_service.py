# =============================================================================
# core/services/import_history_service.py - Import Audit Trail
# =============================================================================
# Persists one supplier_import_history row per completed run and serves
# the history list for the admin screen.
#
# Recording is best-effort: a failed insert is logged and never turns a
# finished import into a failed one.
# =============================================================================

import logging
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from lib.supabase_client import SupabaseClient, NO_ROWS_CODE
from core.models.imports import ImportRunResult, result_to_history_payload
from app.config import settings
from app.exceptions import ImportHistoryNotFoundError

logger = logging.getLogger(__name__)

TABLE_NAME = "supplier_import_history"


class ImportHistoryService:
    """Service for the supplier import audit trail."""

    @staticmethod
    def record(
        result: ImportRunResult,
        filename: str,
        imported_by: UUID | str | None,
    ) -> dict[str, Any] | None:
        """
        Store the outcome of an import run.

        Args:
            result: Finished run
            filename: Original spreadsheet filename
            imported_by: Admin user id

        Returns:
            The inserted row, or None if recording failed
        """
        payload = result_to_history_payload(
            result,
            filename=filename,
            imported_by=str(imported_by) if imported_by else None,
            imported_at=datetime.now(timezone.utc),
        )

        try:
            client = SupabaseClient.get_client()
            response = (
                client.table(TABLE_NAME)
                .insert(payload)
                .execute()
            )
            if response.data:
                record = response.data[0]
                logger.info(f"Recorded import history {record.get('id')} for {filename}")
                return record

            logger.error(f"Import history insert for {filename} returned no data")
            return None

        except Exception as e:
            logger.error(f"Failed to record import history for {filename}: {e}")
            return None

    @staticmethod
    def list_history(limit: int | None = None) -> list[dict[str, Any]]:
        """
        List recent imports, newest first.

        Args:
            limit: Max rows (defaults to IMPORT_HISTORY_LIMIT)
        """
        client = SupabaseClient.get_client()
        limit = limit or settings.IMPORT_HISTORY_LIMIT

        response = (
            client.table(TABLE_NAME)
            .select("*")
            .order("imported_at", desc=True)
            .limit(limit)
            .execute()
        )
        return response.data or []

    @staticmethod
    def get_history(history_id: UUID | str) -> dict[str, Any]:
        """
        Get one import history row.

        Raises:
            ImportHistoryNotFoundError: If the row doesn't exist
        """
        client = SupabaseClient.get_client()

        try:
            response = (
                client.table(TABLE_NAME)
                .select("*")
                .eq("id", str(history_id))
                .single()
                .execute()
            )
        except Exception as e:
            if NO_ROWS_CODE in str(e):
                raise ImportHistoryNotFoundError(str(history_id))
            raise

        if not response.data:
            raise ImportHistoryNotFoundError(str(history_id))
        return response.data
