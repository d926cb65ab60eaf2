# =============================================================================
# app/main.py - FastAPI Application Entry Point
# =============================================================================
# This is the main entry point for the SupplierHub API.
# It configures the FastAPI application with middleware, routers, and handlers.
#
# Usage:
#   uvicorn app.main:app --reload
# =============================================================================

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.exceptions import (
    SupplierHubException,
    supplierhub_exception_handler,
    validation_exception_handler,
)
from app.routers import health, imports, tasks, access, suppliers
from app.auth import routes as auth_routes

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    - Startup: make sure the storage buckets exist
    - Shutdown: log only (connections are per-request)
    """
    from core.services.storage_service import StorageService

    logger.info(f"Starting SupplierHub API in {settings.ENVIRONMENT} mode")
    logger.info(f"CORS origins: {settings.cors_origins_list}")

    try:
        StorageService.ensure_bucket(settings.SUPPLIER_IMAGES_BUCKET, public=True)
        StorageService.ensure_bucket(settings.IMPORT_FILES_BUCKET, public=False)
    except SupplierHubException as e:
        # Readiness check reports it; the API can still serve reads
        logger.warning(f"Storage buckets not verified at startup: {e.message}")

    yield

    logger.info("Shutting down SupplierHub API")


# Create FastAPI application
app = FastAPI(
    title="SupplierHub API",
    description="""
## Supplier Directory Backend

SupplierHub manages a wholesale supplier directory: bulk imports for
administrators and a trial/subscription gate for everyone else.

### Bulk Import

1. **Download the template** - `GET /api/v1/imports/template`
2. **Preview** - upload the spreadsheet (and an optional ZIP of images named
   `<code>-<suffix>.<ext>`) to see per-row errors and image warnings
3. **Import** - submit the same files; the run happens in the background
4. **Follow progress** - `GET /api/v1/tasks/{task_id}`
5. **Review history** - `GET /api/v1/imports/history`, errors as CSV

### Access Gate

| Level | Meaning |
|-------|---------|
| **full** | No restriction |
| **limited_count** | Only the allowed subset is unlocked |
| **limited_blurred** | Everything shown as a locked teaser |
| **none** | Everything locked |
""",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {
            "name": "Auth",
            "description": "Verify JWT tokens and read the current profile",
        },
        {
            "name": "Imports",
            "description": "Bulk supplier import (admin only)",
        },
        {
            "name": "Tasks",
            "description": "Track background import progress",
        },
        {
            "name": "Access",
            "description": "Feature access decisions and free trial",
        },
        {
            "name": "Suppliers",
            "description": "Access-gated supplier directory",
        },
        {
            "name": "Health",
            "description": "API health and readiness checks",
        },
    ],
)


# =============================================================================
# Middleware
# =============================================================================

# CORS middleware - allows cross-origin requests
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list if settings.is_production else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Exception Handlers
# =============================================================================

@app.exception_handler(SupplierHubException)
async def handle_supplierhub_exception(request: Request, exc: SupplierHubException):
    """Handle custom SupplierHub exceptions."""
    return await supplierhub_exception_handler(request, exc)


@app.exception_handler(RequestValidationError)
async def handle_validation_exception(request: Request, exc: RequestValidationError):
    """Handle request validation errors."""
    return await validation_exception_handler(request, exc)


@app.exception_handler(Exception)
async def handle_general_exception(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": "An unexpected error occurred",
            "code": "INTERNAL_ERROR",
        }
    )


# =============================================================================
# Routers
# =============================================================================

# Authentication endpoints
app.include_router(
    auth_routes.router,
    prefix="/api/v1/auth",
    tags=["Auth"]
)

# Health check endpoints
app.include_router(
    health.router,
    prefix="/api/v1",
    tags=["Health"]
)

# Bulk import endpoints
app.include_router(
    imports.router,
    prefix="/api/v1/imports",
    tags=["Imports"]
)

# Task status endpoints
app.include_router(
    tasks.router,
    prefix="/api/v1/tasks",
    tags=["Tasks"]
)

# Feature access endpoints
app.include_router(
    access.router,
    prefix="/api/v1/access",
    tags=["Access"]
)

# Supplier directory endpoints
app.include_router(
    suppliers.router,
    prefix="/api/v1/suppliers",
    tags=["Suppliers"]
)


# =============================================================================
# Root Endpoint
# =============================================================================

@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint - returns API info.
    """
    return {
        "name": "SupplierHub API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/api/v1/health",
    }
