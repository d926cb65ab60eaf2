# =============================================================================
# app/ - FastAPI Application Package
# =============================================================================
# HTTP layer of SupplierHub:
# - main.py: app entry point, lifespan, error handlers
# - config.py: environment settings
# - exceptions.py: API error types
# - auth/: Supabase JWT verification and the admin guard
# - routers/: imports, tasks, access, suppliers, health
#
# Business logic lives in core/ and lib/.
# =============================================================================
