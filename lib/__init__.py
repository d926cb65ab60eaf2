# =============================================================================
# lib/ - Standalone Utility Modules
# =============================================================================
# This package contains reusable utilities:
# - supabase_client.py: Typed Supabase wrapper for database operations
# - spreadsheet.py: Supplier spreadsheet reader and template builder
# - categories.py: Normalized category name lookup
# - validation.py: Pure supplier row validation
# - images.py: ZIP image extraction, upload and code correlation
# - importer.py: Import executor (re-validate, create, report progress)
# - access.py: Pure feature-access decisions and entity locking
# - csv_export.py: Error set to CSV
# - utils.py: Shared utilities (error handling, text normalization)
#
# These modules are self-contained and can be tested in isolation.
# =============================================================================

from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.utils import ApplicationError, normalize_uuid

__all__ = [
    # Supabase
    "SupabaseClient",
    "SupabaseClientError",
    # Utils
    "ApplicationError",
    "normalize_uuid",
]
