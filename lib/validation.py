# =============================================================================
# lib/validation.py - Supplier Row Validation
# =============================================================================
# Pure validation of parsed spreadsheet rows against a snapshot of the
# system state (existing supplier codes + category index).
#
# No I/O happens here, so the same checks run twice per import:
# once for the review step and once right before writing.
#
# Usage:
#   errors = validate_supplier_row(row, existing_codes, category_index)
#   error_set = validate_rows(rows, existing_codes, category_index)
# =============================================================================

from __future__ import annotations

from collections import Counter
from typing import AbstractSet, Iterable

from core.models.imports import ValidationErrorSet
from core.models.supplier import SupplierRow
from lib.categories import CategoryIndex

REQUIRED_FIELDS = ("code", "name", "description", "city", "state")

MSG_CODE_EXISTS = "code '{code}' already exists."
MSG_CODE_DUPLICATED = "code '{code}' duplicated in spreadsheet."
MSG_INVALID_PRICE = "invalid average price: '{value}' (use low/medium/high or 1-3)."
MSG_NO_CATEGORY = "at least one category is required."
MSG_UNKNOWN_CATEGORY = "category '{name}' not found."
MSG_MISSING_IMAGES = "images referenced but not found in archive."


def validate_supplier_row(
    row: SupplierRow,
    existing_codes: AbstractSet[str],
    category_index: CategoryIndex,
) -> list[str]:
    """
    Validate one supplier row.

    All rules run; a row can carry several errors at once.

    Args:
        row: Parsed spreadsheet row
        existing_codes: Codes already persisted in the system
        category_index: Known categories

    Returns:
        Ordered list of error messages (empty means the row is valid)
    """
    errors: list[str] = []

    # 1. Required fields
    for field in REQUIRED_FIELDS:
        if not getattr(row, field).strip():
            errors.append(f"{field} is required.")

    # 2. Uniqueness against persisted suppliers
    code = row.code.strip()
    if code and code in existing_codes:
        errors.append(MSG_CODE_EXISTS.format(code=code))

    # 3. Average price
    if row.avg_price_text.strip() and row.avg_price is None:
        errors.append(MSG_INVALID_PRICE.format(value=row.avg_price_text.strip()))

    # 4. Categories
    names = row.category_names
    if not names:
        errors.append(MSG_NO_CATEGORY)
    for name in names:
        if category_index.resolve(name) is None:
            errors.append(MSG_UNKNOWN_CATEGORY.format(name=name))

    return errors


def _append(error_set: ValidationErrorSet, key: str, messages: list[str]) -> None:
    if messages:
        error_set.setdefault(key, []).extend(messages)


def validate_rows(
    rows: Iterable[SupplierRow],
    existing_codes: AbstractSet[str],
    category_index: CategoryIndex,
) -> ValidationErrorSet:
    """
    Validate a whole batch.

    Besides the per-row rules, codes repeated inside the batch are flagged
    on every occurrence, since the backend would reject all but the first.

    Returns:
        Row key -> error messages, only for rows that have errors
    """
    rows = list(rows)
    error_set: ValidationErrorSet = {}

    code_counts = Counter(row.code.strip() for row in rows if row.code.strip())

    for row in rows:
        messages = validate_supplier_row(row, existing_codes, category_index)

        code = row.code.strip()
        if code and code_counts[code] > 1:
            messages.append(MSG_CODE_DUPLICATED.format(code=code))

        _append(error_set, row.row_key, messages)

    return error_set


def find_missing_images(
    rows: Iterable[SupplierRow],
    image_codes: AbstractSet[str],
) -> ValidationErrorSet:
    """
    Flag rows that reference images the archive did not provide.

    These are warnings: they never block an import.

    Args:
        rows: Parsed rows
        image_codes: Supplier codes that have at least one image

    Returns:
        Row key -> warning messages
    """
    warnings: ValidationErrorSet = {}
    for row in rows:
        if row.references_images and row.code.strip() not in image_codes:
            _append(warnings, row.row_key, [MSG_MISSING_IMAGES])
    return warnings
