# =============================================================================
# core/services/supplier_service.py - Supplier Persistence
# =============================================================================
# Backend adapter used by the import pipeline and the supplier listing:
# - Snapshot of current state (existing codes + category index)
# - Supplier creation (suppliers row + suppliers_categories join rows)
# - Listing for the access-gated supplier directory
# =============================================================================

import logging
from typing import Any

from lib.supabase_client import SupabaseClient
from lib.categories import CategoryIndex
from lib.importer import ImportSnapshot
from core.models.supplier import SupplierCreate

logger = logging.getLogger(__name__)

# Postgres unique_violation, as surfaced by PostgREST
UNIQUE_VIOLATION_CODE = "23505"


class DuplicateSupplierError(Exception):
    """Raised when the backend rejects a supplier code that already exists."""

    def __init__(self, code: str):
        super().__init__(f"code '{code}' already exists.")
        self.code = code


class SupplierService:
    """
    Service for supplier persistence.

    All methods are static; the Supabase client is shared.
    """

    @staticmethod
    def fetch_existing_codes() -> set[str]:
        """Codes already persisted in the suppliers table."""
        return SupabaseClient.fetch_supplier_codes()

    @staticmethod
    def fetch_categories() -> list[dict[str, Any]]:
        """All known categories as {"id", "name"} dicts."""
        return SupabaseClient.fetch_categories()

    @staticmethod
    def load_snapshot() -> ImportSnapshot:
        """
        Load the system state rows are validated against.

        Returns:
            ImportSnapshot with existing codes and the category index

        Raises:
            SupabaseClientError: If either lookup fails
        """
        existing_codes = SupplierService.fetch_existing_codes()
        category_index = CategoryIndex.from_categories(SupplierService.fetch_categories())

        logger.info(
            f"Loaded import snapshot: {len(existing_codes)} codes, {len(category_index)} categories"
        )
        return ImportSnapshot(existing_codes=existing_codes, category_index=category_index)

    @staticmethod
    def create_supplier(payload: SupplierCreate) -> dict[str, Any]:
        """
        Insert a supplier and link its categories.

        Args:
            payload: Canonical supplier shape

        Returns:
            The created suppliers row

        Raises:
            DuplicateSupplierError: If the code violates the unique constraint
            Exception: If the insert fails for any other reason
        """
        client = SupabaseClient.get_client()

        try:
            response = (
                client.table("suppliers")
                .insert(payload.to_table_row())
                .execute()
            )
        except Exception as e:
            message = str(e)
            if UNIQUE_VIOLATION_CODE in message or "duplicate key" in message:
                raise DuplicateSupplierError(payload.code) from e
            raise

        if not response.data:
            raise Exception("Insert returned no data")

        supplier = response.data[0]

        if payload.category_ids:
            links = [
                {"supplier_id": supplier["id"], "category_id": category_id}
                for category_id in payload.category_ids
            ]
            try:
                client.table("suppliers_categories").insert(links).execute()
            except Exception:
                # Undo the supplier row so the code can be imported again
                SupplierService._delete_supplier(supplier["id"])
                raise

        logger.debug(f"Created supplier {payload.code} ({supplier['id']})")
        return supplier

    @staticmethod
    def _delete_supplier(supplier_id: str) -> None:
        client = SupabaseClient.get_client()
        try:
            client.table("suppliers").delete().eq("id", supplier_id).execute()
            logger.warning(f"Removed supplier {supplier_id} after its category links failed")
        except Exception as e:
            logger.error(f"Failed to remove supplier {supplier_id} without categories: {e}")

    @staticmethod
    def list_suppliers(include_hidden: bool = False) -> list[dict[str, Any]]:
        """
        List suppliers for the directory, featured first then by name.

        Args:
            include_hidden: Also return suppliers flagged hidden (admins)

        Returns:
            List of supplier dicts
        """
        def build_query(client):
            query = client.table("suppliers").select("*")
            if not include_hidden:
                query = query.eq("hidden", False)
            return query.order("featured", desc=True).order("name").order("id")

        try:
            return SupabaseClient.fetch_all_rows(build_query)

        except Exception as e:
            logger.error(f"Failed to list suppliers: {e}")
            raise

    @staticmethod
    def list_visible_ids() -> list[str]:
        """Ids of every non-hidden supplier (trial rotation pool)."""
        rows = SupabaseClient.fetch_all_rows(
            lambda client: client.table("suppliers").select("id").eq("hidden", False).order("id")
        )
        return [str(row["id"]) for row in rows]
