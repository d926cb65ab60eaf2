# =============================================================================
# core/models/ - Pydantic Data Models
# =============================================================================
# This package contains Pydantic schemas for data validation:
# - supplier.py: Spreadsheet rows and the canonical supplier shape
# - imports.py: Import run results, history rows and review payloads
# - access.py: Trial state, feature rules and access decisions
#
# These models define the "contract" between API and clients.
# =============================================================================

# -----------------------------------------------------------------------------
# Supplier Models - Bulk import input
# -----------------------------------------------------------------------------
from .supplier import (
    AvgPrice,
    PaymentMethod,
    ShippingMethod,
    SupplierCreate,
    SupplierRow,
    row_to_supplier_create,
)

# -----------------------------------------------------------------------------
# Import Models - Run results and audit trail
# -----------------------------------------------------------------------------
from .imports import (
    GLOBAL_ERROR_KEY,
    ImageMap,
    ImportHistoryRecord,
    ImportPreviewResponse,
    ImportPreviewRow,
    ImportRunResult,
    ImportStatus,
    ImportSubmitResponse,
    ValidationErrorSet,
    resolve_status,
)

# -----------------------------------------------------------------------------
# Access Models - Trial / feature gate
# -----------------------------------------------------------------------------
from .access import (
    AccessDecision,
    FeatureAccessLevel,
    FeatureAccessRule,
    TrialState,
    TrialStatus,
)

# -----------------------------------------------------------------------------
# __all__ - Explicit public API
# -----------------------------------------------------------------------------
__all__ = [
    # Supplier
    "AvgPrice",
    "PaymentMethod",
    "ShippingMethod",
    "SupplierCreate",
    "SupplierRow",
    "row_to_supplier_create",
    # Imports
    "GLOBAL_ERROR_KEY",
    "ImageMap",
    "ImportHistoryRecord",
    "ImportPreviewResponse",
    "ImportPreviewRow",
    "ImportRunResult",
    "ImportStatus",
    "ImportSubmitResponse",
    "ValidationErrorSet",
    "resolve_status",
    # Access
    "AccessDecision",
    "FeatureAccessLevel",
    "FeatureAccessRule",
    "TrialState",
    "TrialStatus",
]
