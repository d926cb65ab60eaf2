# =============================================================================
# lib/importer.py - Supplier Import Executor
# =============================================================================
# Runs one bulk import:
# 1. Re-load the current snapshot (existing codes + categories)
# 2. Re-validate every row against it - any error aborts with zero writes
# 3. Create rows one by one, recording per-row failures without stopping
# 4. Report progress after every row (0-100, ends at exactly 100)
#
# The backend collaborators are injected, so this module has no Supabase
# dependency and can be tested with plain callables.
#
# Usage:
#   executor = ImportExecutor(SupplierService.load_snapshot, SupplierService.create_supplier)
#   result = executor.run(rows, image_map, on_progress=print)
# =============================================================================

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

from core.models.imports import (
    GLOBAL_ERROR_KEY,
    ImageMap,
    ImportRunResult,
    ImportStatus,
    ValidationErrorSet,
    resolve_status,
)
from core.models.supplier import SupplierCreate, SupplierRow, row_to_supplier_create
from lib.categories import CategoryIndex
from lib.validation import validate_rows

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]


@dataclass
class ImportSnapshot:
    """System state the rows are validated against."""
    existing_codes: set[str] = field(default_factory=set)
    category_index: CategoryIndex = field(default_factory=CategoryIndex)


class ImportExecutor:
    """
    Validates and imports a batch of supplier rows.

    Validation failures are fatal to the whole run; creation failures
    only affect their own row.
    """

    def __init__(
        self,
        snapshot_loader: Callable[[], ImportSnapshot],
        create_supplier: Callable[[SupplierCreate], Any],
    ):
        self._load_snapshot = snapshot_loader
        self._create_supplier = create_supplier

    def run(
        self,
        rows: Sequence[SupplierRow],
        image_map: ImageMap | None = None,
        on_progress: ProgressCallback | None = None,
        images_uploaded: int = 0,
        images_failed: int = 0,
    ) -> ImportRunResult:
        """
        Import a batch of rows.

        Args:
            rows: Parsed spreadsheet rows
            image_map: Supplier code -> public image URLs
            on_progress: Called with the integer percentage after each row
            images_uploaded: Image counter carried into the result
            images_failed: Image counter carried into the result

        Returns:
            ImportRunResult (never raises for backend failures)
        """
        image_map = image_map or {}
        total = len(rows)
        image_counts = {"images_uploaded": images_uploaded, "images_failed": images_failed}

        # Step 1: Fresh snapshot - never trust the one from the review step
        try:
            snapshot = self._load_snapshot()
        except Exception as e:
            logger.error(f"Failed to load import snapshot: {e}")
            return ImportRunResult(
                total_rows=total,
                error_count=total,
                errors={GLOBAL_ERROR_KEY: [f"import aborted: could not load current data ({e})"]},
                status=ImportStatus.ERROR,
                **image_counts,
            )

        # Step 2: Authoritative re-validation (all-or-nothing gate)
        validation_errors = validate_rows(rows, snapshot.existing_codes, snapshot.category_index)
        if validation_errors:
            logger.warning(
                f"Import refused: {len(validation_errors)} of {total} rows failed validation"
            )
            return ImportRunResult(
                total_rows=total,
                success_count=0,
                error_count=len(validation_errors),
                errors=validation_errors,
                status=ImportStatus.ERROR,
                validation_failed=True,
                **image_counts,
            )

        # Step 3: Sequential creation
        errors: ValidationErrorSet = {}
        success_count = 0

        for processed, row in enumerate(rows, start=1):
            try:
                payload = row_to_supplier_create(
                    row,
                    category_ids=snapshot.category_index.resolve_all(row.category_names),
                    images=image_map.get(row.code.strip()),
                )
                self._create_supplier(payload)
                success_count += 1
            except Exception as e:
                logger.error(f"Failed to import supplier {row.row_key}: {e}")
                errors.setdefault(row.row_key, []).append(f"import failed: {e}")

            if on_progress is not None:
                on_progress(processed * 100 // total)

        if total == 0 and on_progress is not None:
            on_progress(100)

        error_count = total - success_count
        logger.info(f"Import finished: {success_count} created, {error_count} failed")

        return ImportRunResult(
            total_rows=total,
            success_count=success_count,
            error_count=error_count,
            errors=errors,
            status=resolve_status(success_count, error_count),
            **image_counts,
        )
