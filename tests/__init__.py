# =============================================================================
# tests/ - Test Suite
# =============================================================================
# This package contains all tests for the SupplierHub API:
# - test_models.py: Pydantic model parsing and serialization
# - test_spreadsheet.py / test_images.py: file readers
# - test_validation.py / test_categories.py: row validation, category lookup
# - test_importer.py: the import executor
# - test_access.py: feature-access decisions and entity locking
# - test_services.py: Supabase-backed services (mocked)
# - test_auth.py: JWT verification and the admin guard
# - test_api.py: HTTP endpoints with dependencies overridden
# - test_tasks.py: Celery task bodies run in-process
#
# Run tests with: pytest
# =============================================================================
