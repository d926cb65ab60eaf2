# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================

from .supplier_service import SupplierService, DuplicateSupplierError
from .storage_service import StorageService
from .import_history_service import ImportHistoryService
from .access_service import FeatureAccessService
from .trial_service import TrialService

__all__ = [
    "SupplierService",
    "DuplicateSupplierError",
    "StorageService",
    "ImportHistoryService",
    "FeatureAccessService",
    "TrialService",
]
